"""Exception hierarchy for airkit.

All exceptions inherit from :class:`AirkitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`airkit.exit_codes`.
Library callers catch :class:`ApiError` (or one of its two subclasses) around
record operations; the CLI entry point in :func:`airkit.app.main` catches
``AirkitError`` and exits with the matching code.

Subclass hierarchy::

    AirkitError (exit 1)
    +-- ConfigError             (exit 1)
    +-- ApiError                (exit 5)
        +-- ValidationError     (exit 2)
        +-- UncategorizedError  (exit 3/4/5/6 depending on ``code``)

Errors reported by the remote API are classified by :func:`classify_error`.
"""

from __future__ import annotations

from airkit.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

VALIDATION_REASON = "validation_error"


class AirkitError(Exception):
    """Base exception for all airkit errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AirkitError):
    """Raised for configuration problems (missing base id, bad credential source, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiError(AirkitError):
    """An error reported by the remote API or by the transport underneath it.

    Args:
        message: The message reported by the API (or the transport).
        code: HTTP status code, ``0`` when unknown.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code})"


class ValidationError(ApiError):
    """The API rejected the submitted fields (reason ``validation_error``, HTTP 400)."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str):
        super().__init__(message, code=400)


class UncategorizedError(ApiError):
    """Any other API error object, or a transport failure (``code == 0``)."""

    def __init__(self, message: str, code: int = 0):
        super().__init__(message, code)
        if code == 0:
            self.exit_code = EXIT_CONNECTION_ERROR
        elif code in (401, 403):
            self.exit_code = EXIT_AUTH_FAILURE
        elif code == 404:
            self.exit_code = EXIT_NOT_FOUND


def classify_error(reason: str | None, message: str, code: int) -> ApiError:
    """Map an API error reason code and HTTP status to an exception instance.

    Only ``validation_error`` together with HTTP 400 is a
    :class:`ValidationError`; everything else is uncategorized.

    Args:
        reason: The API's reason code (``"error"`` field), if any.
        message: The human-readable message.
        code: The HTTP status, ``0`` when unknown.

    Returns:
        The classified (not raised) exception.
    """
    if code == 400 and reason == VALIDATION_REASON:
        return ValidationError(message)
    return UncategorizedError(message, code)
