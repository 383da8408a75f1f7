"""HTTP client module for airkit.

Provides the request descriptor and the asynchronous client that executes it
against the record API with :mod:`httpx`.

Classes:
    :class:`Request` -- an operation, path, and parameters, not yet sent.
    :class:`AsyncClient` -- executes requests; owns the record cache.

Example::

    from airkit.client import AsyncClient

    async with AsyncClient(config) as client:
        payload = await client.send(Request.get("Tasks/recXXXXXXXXXXXXXX"))
"""

from airkit.client.async_client import AsyncClient
from airkit.client.request import Request

__all__ = ["AsyncClient", "Request"]
