"""Request descriptors -- an operation, a path, and parameters, not yet sent.

A :class:`Request` is what the descriptor-only record operations
(:meth:`~airkit.records.record.Record.list_request` and friends) return.
It becomes an :class:`httpx.Request` only when :meth:`Request.build` is
given the process :class:`~airkit.models.ClientConfig`, which supplies the
host prefix and the bearer authorization header.

Encoding rule:

* ``POST`` / ``PUT`` -- ``params`` are sent as the JSON request body.
* ``GET`` / ``DELETE`` -- ``params`` are sent as the URL query string; keys
  whose value is ``None`` are dropped.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from airkit.models import ClientConfig, HTTPMethod


class Request(BaseModel):
    """A fully described, not-yet-executed API request.

    Example::

        req = Request(method=HTTPMethod.GET, path="Tasks", params={"view": "Grid view"})
        http_request = req.build(config)
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    path: str
    params: Optional[dict[str, Any]] = None

    @classmethod
    def get(cls, path: str, params: Optional[dict[str, Any]] = None) -> Request:
        return cls(method=HTTPMethod.GET, path=path, params=params)

    @classmethod
    def post(cls, path: str, params: Optional[dict[str, Any]] = None) -> Request:
        return cls(method=HTTPMethod.POST, path=path, params=params)

    @classmethod
    def put(cls, path: str, params: Optional[dict[str, Any]] = None) -> Request:
        return cls(method=HTTPMethod.PUT, path=path, params=params)

    @classmethod
    def delete(cls, path: str, params: Optional[dict[str, Any]] = None) -> Request:
        return cls(method=HTTPMethod.DELETE, path=path, params=params)

    def url(self, config: ClientConfig) -> str:
        """Absolute URL of this request under *config*'s host prefix."""
        return f"{config.host_prefix}/{quote(self.path.lstrip('/'), safe='/')}"

    def build(self, config: ClientConfig) -> httpx.Request:
        """Encode this request for the transport.

        Args:
            config: Supplies the host prefix and authorization header.

        Returns:
            An :class:`httpx.Request` ready for ``AsyncClient.send``.
        """
        headers = {"Accept": "application/json", **config.auth_headers}
        if self.method.has_body:
            return httpx.Request(
                self.method.value, self.url(config), headers=headers, json=self.params,
            )
        query = {k: v for k, v in (self.params or {}).items() if v is not None}
        return httpx.Request(
            self.method.value, self.url(config), headers=headers, params=query or None,
        )

    def describe(self) -> str:
        """Short ``METHOD path`` form used in diagnostics."""
        return f"{self.method.value} {self.path}"
