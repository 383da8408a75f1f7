"""Cache commands -- inspect and empty the record cache.

Provides the ``airkit cache`` sub-command group.  The cache directory is the
``cache.directory`` setting when set, otherwise the XDG cache directory
(``~/.cache/airkit/records``).
"""

from __future__ import annotations

import typer

from airkit.exceptions import AirkitError
from airkit.output import error, format_response, success


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache():  # noqa: ANN202
    """Return the :class:`~airkit.cache.RecordCache` named by the settings."""
    from pathlib import Path

    from airkit.cache import RecordCache
    from airkit.config import get_cache_dir, load_settings

    try:
        settings = load_settings()
    except AirkitError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None
    directory = Path(settings.cache.directory) if settings.cache.directory else get_cache_dir()
    return RecordCache(directory)


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the cache directory and the number of cached entries.

    Example::

        airkit cache stats
        airkit --json cache stats
    """
    format_response(_open_cache().stats())


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached record and list index.

    Example::

        airkit cache clear
    """
    removed = _open_cache().clear()
    success(f"Removed {removed} cache entries.")
