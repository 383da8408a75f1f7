"""Asynchronous HTTP client for the record API.

This module provides :class:`AsyncClient`, which wraps
:class:`httpx.AsyncClient` and executes :class:`~airkit.client.request.Request`
descriptors:

- **Auth injection** -- the bearer header from the process
  :class:`~airkit.models.ClientConfig` is set on every request.
- **Single attempt** -- there is no retry or backoff; one attempt either
  returns a payload or raises one classified error.
- **Error mapping** -- error bodies and transport failures become
  :class:`~airkit.exceptions.ApiError` subclasses via
  :mod:`airkit.client.response`.
- **Record cache** -- the client owns the
  :class:`~airkit.cache.RecordCache` that record operations consult.

All completions happen on the event loop that awaits the client, so record
callers see a single, ordered completion context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, TypeVar

import httpx

from airkit.cache import RecordCache
from airkit.client.request import Request
from airkit.client.response import decode_payload, transport_error
from airkit.exceptions import ApiError
from airkit.models import ClientConfig
from airkit.output import get_output

if TYPE_CHECKING:
    from airkit.records.record import Record

R = TypeVar("R", bound="Record")


class AsyncClient:
    """Asynchronous client for record API calls.

    Must be used as an async context manager so that the underlying
    transport is opened and closed.

    Args:
        config: The process connection configuration.
        cache: Record cache to use.  Defaults to one rooted at
            ``config.cache_dir`` or the XDG cache directory, created on first
            use.
        transport: Optional :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        config = setup("appXXXXXXXXXXXXXX", api_key)
        async with AsyncClient(config) as client:
            tasks = await Task.list(client, view="Grid view")
    """

    def __init__(
        self,
        config: ClientConfig,
        cache: Optional[RecordCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> RecordCache:
        """The record cache shared by every record type using this client."""
        if self._cache is None:
            from airkit.config import get_cache_dir

            self._cache = RecordCache(self._config.cache_dir or get_cache_dir())
        return self._cache

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Request execution
    # ------------------------------------------------------------------ #

    async def send(self, request: Request) -> Optional[dict[str, Any]]:
        """Execute *request* once and return the decoded JSON object.

        Args:
            request: The request descriptor.

        Returns:
            The response object, or ``None`` when a successful response
            body is empty or is not a JSON object.

        Raises:
            ValidationError: The API rejected the submitted fields.
            UncategorizedError: Any other API error, or a transport failure
                (``code == 0``).
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        output = get_output()
        output.debug(request.describe())
        try:
            response = await self._client.send(request.build(self._config))
        except httpx.HTTPError as exc:
            output.debug(f"Server error on request: {request.describe()}: {exc!r}")
            raise transport_error(exc) from exc

        try:
            return decode_payload(response)
        except ApiError:
            output.debug(
                f"Application error on request: {request.describe()} "
                f"HTTP {response.status_code}: {response.text[:200]}"
            )
            raise

    async def fetch(
        self,
        request: Request,
        record_type: type[R],
        cache: bool = True,
    ) -> Optional[R]:
        """Execute *request* and build a single record from the response.

        Args:
            request: The request descriptor.
            record_type: The record class to construct.
            cache: Whether a caching record type may write the payload to
                the cache.  Create and update pass ``False``.

        Returns:
            The record, or ``None`` when the response carried no object.
        """
        payload = await self.send(request)
        if payload is None:
            return None
        store = self.cache if cache and record_type.caches() else None
        return record_type(payload, cache=store)

    async def fetch_list(self, request: Request, record_type: type[R]) -> list[R]:
        """Execute *request* and build one record per element of ``"records"``."""
        payload = await self.send(request)
        store = self.cache if record_type.caches() else None
        return record_type.from_list_payload(payload, store)
