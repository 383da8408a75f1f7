"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to an error category and is referenced by the
corresponding :class:`~airkit.exceptions.AirkitError` subclass.  Shell
scripts wrapping the ``airkit`` CLI can branch on the exit code without
parsing stderr.

Example::

    $ airkit records get Tasks recXXXXXXXXXXXXXX
    $ echo $?
    4   # EXIT_NOT_FOUND -- the record does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked incorrectly, or the API rejected the submitted fields."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the credential (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested table or record was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API returned an error that has no more specific category."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
