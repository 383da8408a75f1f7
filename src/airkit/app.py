"""Typer application and CLI entry point for airkit.

This module wires together the top-level Typer application and registers the
built-in sub-command groups (``records``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~airkit.exceptions.AirkitError` instances that escape a command map
to their exit code; any other exception is written to a crash log under the
data directory.

See Also:
    :mod:`airkit.config`: Settings and connection configuration resolution.
    :mod:`airkit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from airkit import __version__
from airkit.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="airkit",
    help="Typed, cached access to Airtable-style record APIs.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Sub-commands
# ------------------------------------------------------------------ #

from airkit.commands.cache import cache_app  # noqa: E402
from airkit.commands.config import config_app  # noqa: E402
from airkit.commands.records import records_app  # noqa: E402

app.add_typer(records_app, name="records", help="List, read, and modify records.")
app.add_typer(cache_app, name="cache", help="Record cache management.")
app.add_typer(config_app, name="config", help="Settings management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"airkit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_id: Optional[str] = typer.Option(
        None, "--base-id", "-b", help="Base id (overrides AIRKIT_BASE_ID and settings)."
    ),
    api_key_source: Optional[str] = typer.Option(
        None, "--api-key-source", help="Credential source: env:VAR, file:/path, or prompt."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (cache hits, request errors)."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Neither read nor write the record cache."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~airkit.output.OutputManager` from CLI
    flags, and stores the connection overrides (``base_id``,
    ``api_key_source``, ``no_cache``) in the Typer context so that
    sub-commands can read them via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        base_id: Base id override (highest precedence).
        api_key_source: Credential source override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        no_cache: Bypass the record cache for this invocation.
    """
    from airkit.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["base_id"] = base_id
    ctx.obj["api_key_source"] = api_key_source
    ctx.obj["no_cache"] = no_cache
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from airkit.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``airkit`` console script.

    Unhandled :class:`~airkit.exceptions.AirkitError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from airkit.exceptions import AirkitError
        from airkit.output import error

        if isinstance(exc, AirkitError):
            error(exc.message)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
