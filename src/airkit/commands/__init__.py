"""Built-in CLI sub-command groups.

* :mod:`airkit.commands.records` -- ``airkit records`` (list, get, create,
  update, delete, resolve).
* :mod:`airkit.commands.cache` -- ``airkit cache`` (stats, clear).
* :mod:`airkit.commands.config` -- ``airkit config`` (show, set).
"""
