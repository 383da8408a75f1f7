"""Config commands -- view and modify the settings file.

Provides the ``airkit config`` sub-command group for reading and updating
the user's :class:`~airkit.models.Settings`.  Settings are persisted in the
airkit config directory and supply the base id, the credential source, and
the request and cache defaults at the lowest precedence.
"""

from __future__ import annotations

import typer

from airkit.exceptions import AirkitError
from airkit.exit_codes import EXIT_INVALID_USAGE
from airkit.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _load():  # noqa: ANN202
    from airkit.config import load_settings

    try:
        return load_settings()
    except AirkitError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None


@config_app.command("show")
def config_show() -> None:
    """Show current settings.

    Prints the config directory path to stderr followed by the settings as
    formatted output (JSON or plain, depending on the active output mode).

    Example::

        airkit config show
        airkit --json config show
    """
    from airkit.config import get_config_dir

    settings = _load()
    info(f"Config directory: {get_config_dir()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Settings key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a settings value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, float, or str). The updated settings
    are validated against :class:`~airkit.models.Settings` before saving.

    Args:
        key: Dot-separated settings key path (e.g. ``request.timeout``).
        value: String value to set; coerced to the target field type.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        airkit config set base_id appXXXXXXXXXXXXXX
        airkit config set api_key_source file:~/.airtable-key
        airkit config set cache.ttl_seconds 600
    """
    from pydantic import ValidationError as PydanticValidationError

    from airkit.config import save_settings
    from airkit.models import Settings

    data = _load().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    # Coerce to the current field type; unset (None) fields take the string.
    current = target[final_key]
    coerced: object = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        kind = type(current)
        try:
            coerced = kind(value)
        except ValueError:
            error(f"Expected {kind.__name__} for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    target[final_key] = coerced

    try:
        settings = Settings.model_validate(data)
    except PydanticValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_settings(settings)
    success(f"Set {key} = {coerced}")
