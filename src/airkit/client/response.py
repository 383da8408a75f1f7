"""Response translation -- maps an :class:`httpx.Response` to a payload or an error.

The record API answers with one of:

* a JSON object -- a single record, or ``{"records": [...], "offset": ...}``;
* an error object, either the flat form
  ``{"error": "<reason>", "message": "<text>", "status": <code>}`` or the
  nested form ``{"error": {"type": "<reason>", "message": "<text>"}}``.

:func:`decode_payload` returns the object for the first case and raises the
classified :class:`~airkit.exceptions.ApiError` for the second.  On a
successful status, a body that is empty or decodes to JSON that is not an
object yields ``None`` with no error; callers must treat "no payload" as a
legitimate outcome.  The same body on an error status (400 and above) raises
:class:`~airkit.exceptions.UncategorizedError` with that status.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from airkit.exceptions import ApiError, UncategorizedError, classify_error


def decode_payload(response: httpx.Response) -> Optional[dict[str, Any]]:
    """Extract the JSON object from *response*.

    Args:
        response: The transport response, whatever its status code.

    Returns:
        The decoded object, or ``None`` for an empty body or a non-object
        JSON value on a successful status.

    Raises:
        ApiError: If the body is an error object.
        UncategorizedError: If the body is not valid JSON, or is empty or
            not an object on an error status (``code`` is the HTTP status).
    """
    if not response.content:
        if response.is_error:
            raise _status_error(response)
        return None
    try:
        body = response.json()
    except ValueError as exc:
        raise UncategorizedError(
            f"Could not decode response body: {exc}", response.status_code
        ) from exc
    if not isinstance(body, dict):
        if response.is_error:
            raise _status_error(response)
        return None

    error = extract_error(body, response.status_code)
    if error is not None:
        raise error
    return body


def extract_error(body: dict[str, Any], http_status: int) -> Optional[ApiError]:
    """Return the classified error carried by *body*, or ``None`` if it is not an error object.

    A flat ``error`` string without a ``message`` is only an error when the
    HTTP status says so; otherwise the object is an ordinary payload.
    """
    reason = body.get("error")

    if isinstance(reason, str):
        message = body.get("message")
        if not isinstance(message, str):
            if http_status < 400:
                return None
            message = reason
        status = body.get("status")
        if isinstance(status, bool) or not isinstance(status, int):
            status = http_status if http_status >= 400 else 0
        return classify_error(reason, message, status)

    if isinstance(reason, dict):
        kind = reason.get("type")
        message = reason.get("message")
        if not isinstance(kind, str) and not isinstance(message, str):
            return None
        return classify_error(
            kind if isinstance(kind, str) else None,
            message if isinstance(message, str) else str(kind),
            http_status,
        )

    return None


def _status_error(response: httpx.Response) -> UncategorizedError:
    """Error for an error status whose body carries no error object."""
    message = response.reason_phrase or f"HTTP {response.status_code}"
    text = response.text.strip()
    if text:
        message = f"{message}: {text[:200]}"
    return UncategorizedError(message, response.status_code)


def transport_error(exc: httpx.HTTPError) -> UncategorizedError:
    """Wrap a transport-layer failure (connect, timeout, protocol) with code ``0``."""
    message = str(exc) or type(exc).__name__
    return UncategorizedError(message, 0)
