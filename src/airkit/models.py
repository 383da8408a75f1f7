"""Canonical Pydantic models shared across airkit modules.

The models fall into two groups:

**Persisted settings** -- serialised as JSON in the user's config directory
and edited through ``airkit config``:
    :class:`RequestConfig`, :class:`CacheConfig`, :class:`Settings`.

**Runtime configuration** -- built once per process and injected into the
HTTP client:
    :class:`HTTPMethod` and :class:`ClientConfig`.

All models use Pydantic v2.  :class:`ClientConfig` is frozen: once the host
prefix and credential are fixed for a process they are never mutated.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ENDPOINT_URL = "https://api.airtable.com/v0"
DEFAULT_API_KEY_SOURCE = "env:AIRTABLE_API_KEY"


class HTTPMethod(str, enum.Enum):
    """HTTP methods understood by the record API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        """Whether parameters travel in a JSON body rather than the query string."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT)


# --- Persisted settings ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every request."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Record cache settings used by the CLI for ad-hoc table types."""

    enabled: bool = Field(default=True, description="Cache records read by the CLI")
    ttl_seconds: int = Field(default=300, description="Cache TTL in seconds")
    directory: Optional[str] = Field(
        default=None, description="Cache directory (defaults to the XDG cache dir)"
    )


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/airkit/config.json``.

    Loaded and saved by :func:`~airkit.config.load_settings` and
    :func:`~airkit.config.save_settings`.  Fields here have the lowest
    precedence; see :func:`~airkit.config.resolve_client_config`.
    """

    base_id: Optional[str] = Field(default=None, description="Base (application) id")
    api_key_source: str = Field(
        default=DEFAULT_API_KEY_SOURCE,
        description="Credential source: env:VAR, file:/path, prompt",
    )
    endpoint_url: str = Field(default=DEFAULT_ENDPOINT_URL, description="API root URL")
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Runtime configuration ---


class ClientConfig(BaseModel):
    """Immutable connection configuration for one process.

    Built by :func:`~airkit.config.setup` (or
    :func:`~airkit.config.resolve_client_config`) and passed to
    :class:`~airkit.client.AsyncClient`.

    Example::

        config = ClientConfig(base_id="appXXXXXXXXXXXXXX", api_key="key...")
        config.host_prefix      # "https://api.airtable.com/v0/appXXXXXXXXXXXXXX"
        config.auth_headers     # {"Authorization": "Bearer key..."}
    """

    model_config = ConfigDict(frozen=True)

    base_id: str
    api_key: str = Field(repr=False)
    endpoint_url: str = DEFAULT_ENDPOINT_URL
    timeout: float = 30.0
    verify_ssl: bool = True
    cache_dir: Optional[Path] = None

    @property
    def host_prefix(self) -> str:
        """URL prefix every request path is appended to."""
        return f"{self.endpoint_url.rstrip('/')}/{self.base_id}"

    @property
    def auth_headers(self) -> dict[str, str]:
        """Headers carried by every request."""
        return {"Authorization": f"Bearer {self.api_key}"}
