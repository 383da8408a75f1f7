"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent and per-process configuration for airkit:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.airkit/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Settings** -- A single :class:`~airkit.models.Settings` JSON file storing
  the base id, credential source, request and cache settings.
* **Process configuration** -- :func:`setup` builds the frozen
  :class:`~airkit.models.ClientConfig` that fixes the host prefix and the
  authorization header for the lifetime of a process.
  :func:`resolve_client_config` does the same from CLI flags, environment
  variables and the settings file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  env vars, files, or an interactive prompt.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`), which the record cache reuses for its entries.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from airkit.exceptions import ConfigError
from airkit.models import DEFAULT_ENDPOINT_URL, ClientConfig, Settings

_APP_NAME = "airkit"
_CONFIG_FILENAME = "config.json"

ENV_BASE_ID = "AIRKIT_BASE_ID"
ENV_API_KEY_SOURCE = "AIRKIT_API_KEY_SOURCE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/airkit/`` (default ``~/.config/airkit/``).
    On macOS/Windows: ``~/.airkit/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the record cache directory, creating it if necessary.

    Cached records can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/airkit/records/`` (default
    ``~/.cache/airkit/records/``).
    On macOS/Windows: ``~/.airkit/cache/records/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME / "records"
    else:
        path = _fallback_base_dir() / "cache" / "records"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/airkit/`` (default ``~/.local/share/airkit/``).
    On macOS/Windows: ``~/.airkit/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up and the exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load the user settings from the XDG config directory.

    Returns:
        The deserialised :class:`~airkit.models.Settings`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist the user settings atomically."""
    data = settings.model_dump(mode="json")
    atomic_write(_settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts the user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Airtable API key: ")

    raise ConfigError(
        f"Unknown credential source '{source}'. Use env:VAR, file:/path, or prompt."
    )


# --- Process configuration ---


def setup(base_id: str, api_key: str, **options: Any) -> ClientConfig:
    """Build the process-wide connection configuration.

    Call once at startup and hand the result to
    :class:`~airkit.client.AsyncClient`.

    Args:
        base_id: Identifier of the remote base (e.g. ``appXXXXXXXXXXXXXX``).
        api_key: API credential sent as a bearer token.
        **options: Optional :class:`~airkit.models.ClientConfig` fields
            (``endpoint_url``, ``timeout``, ``verify_ssl``, ``cache_dir``).

    Raises:
        ConfigError: If *base_id* or *api_key* is empty.
    """
    if not base_id:
        raise ConfigError("A base id is required")
    if not api_key:
        raise ConfigError("An API key is required")
    return ClientConfig(base_id=base_id, api_key=api_key, **options)


def resolve_client_config(
    cli_base_id: Optional[str] = None,
    cli_api_key_source: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ClientConfig:
    """Resolve the connection configuration with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_id``, ``cli_api_key_source``)
        2. Environment variables (``AIRKIT_BASE_ID``, ``AIRKIT_API_KEY_SOURCE``)
        3. User settings (``~/.config/airkit/config.json``)
        4. Defaults

    Raises:
        ConfigError: If no base id is configured anywhere or the credential
            source cannot be resolved.
    """
    if settings is None:
        settings = load_settings()

    base_id = settings.base_id
    env_base_id = os.environ.get(ENV_BASE_ID)
    if env_base_id:
        base_id = env_base_id
    if cli_base_id is not None:
        base_id = cli_base_id

    source = settings.api_key_source
    env_source = os.environ.get(ENV_API_KEY_SOURCE)
    if env_source:
        source = env_source
    if cli_api_key_source is not None:
        source = cli_api_key_source

    if not base_id:
        raise ConfigError(
            f"No base id configured. Pass --base-id, set {ENV_BASE_ID}, "
            "or run 'airkit config set base_id <id>'."
        )

    cache_dir = Path(settings.cache.directory) if settings.cache.directory else None
    return setup(
        base_id,
        resolve_credential(source),
        endpoint_url=settings.endpoint_url or DEFAULT_ENDPOINT_URL,
        timeout=settings.request.timeout,
        verify_ssl=settings.request.verify_ssl,
        cache_dir=cache_dir,
    )
