"""Exception hierarchy for punchclock.

All exceptions inherit from :class:`PunchclockError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`punchclock.exit_codes`.  Every failure surfaced by the request layer
is an :class:`ApiError` whose ``kind`` and ``code`` let callers branch on
"offline", "session expired" and "the server rejected this" without
string-matching on the message.

Subclass hierarchy::

    PunchclockError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- AuthError               (exit 3)
    +-- ApiError
        +-- UnauthenticatedError (exit 3)  kind=unauthenticated
        +-- NetworkError         (exit 6)  kind=network
        +-- RequestTimeoutError  (exit 7)  kind=timeout
        +-- ApplicationError     (exit 3/4/5/8 by status)  kind=application
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from punchclock.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_REJECTED,
    EXIT_SERVER_ERROR,
    EXIT_TIMEOUT,
)


class PunchclockError(Exception):
    """Base exception for all punchclock errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PunchclockError):
    """Raised for invalid arguments (bad passcode format, malformed query pairs)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(PunchclockError):
    """Raised for configuration problems (invalid JSON, missing base URL)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(PunchclockError):
    """Raised when a login flow completes without producing a usable token."""

    exit_code = EXIT_AUTH_FAILURE


class ErrorKind(str, enum.Enum):
    """Discriminates the four failure classes of the request layer."""

    UNAUTHENTICATED = "unauthenticated"
    NETWORK = "network"
    TIMEOUT = "timeout"
    APPLICATION = "application"


class ApiError(PunchclockError):
    """Structured failure raised by :class:`~punchclock.client.RequestExecutor`.

    Attributes:
        status: HTTP status code, ``0`` when no response was received.
        code: Machine-readable code (``NETWORK_ERROR``, ``HTTP_422``, or a
            server-provided code such as ``VALIDATION_FAILED``).
        message: Human-readable message.
        details: Structured details supplied by the server, if any.
        data: The decoded response body, if any.
        url: The fully-qualified request URL.
        method: The normalised HTTP method.
    """

    kind: ErrorKind = ErrorKind.APPLICATION
    default_code: str = ""

    def __init__(
        self,
        message: str,
        *,
        status: int = 0,
        code: str = "",
        details: Any = None,
        data: Any = None,
        url: str = "",
        method: str = "GET",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code or self.default_code or (f"HTTP_{status}" if status else "NETWORK_ERROR")
        self.details = details
        self.data = data
        self.url = url
        self.method = method

    @property
    def timeout(self) -> bool:
        """Whether the failure was a timeout rather than a dropped transfer."""
        return self.kind is ErrorKind.TIMEOUT

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of the error for output."""
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "status": self.status,
            "code": self.code,
            "message": self.message,
            "method": self.method,
            "url": self.url,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


class UnauthenticatedError(ApiError):
    """A request required a credential but none is stored; nothing was sent."""

    kind = ErrorKind.UNAUTHENTICATED
    default_code = "NO_TOKEN"
    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str = "No auth token", **kwargs: Any) -> None:
        kwargs.setdefault("status", 401)
        super().__init__(message, **kwargs)


class NetworkError(ApiError):
    """The transfer could not complete (DNS, refused connection, offline)."""

    kind = ErrorKind.NETWORK
    default_code = "NETWORK_ERROR"
    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str = "Network error", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RequestTimeoutError(ApiError):
    """The transfer exceeded its timeout and was aborted.

    Deliberately not a :class:`NetworkError` subclass: timeouts are never
    retried.
    """

    kind = ErrorKind.TIMEOUT
    default_code = "REQUEST_TIMEOUT"
    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str = "Request timeout", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ApplicationError(ApiError):
    """The API responded but signalled failure (bad status or ``"ok": false``)."""

    kind = ErrorKind.APPLICATION

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.exit_code = _exit_code_for_status(self.status)

    @classmethod
    def from_envelope(
        cls,
        status: int,
        payload: Any,
        url: str = "",
        method: str = "GET",
    ) -> ApplicationError:
        """Build an error from a decoded response envelope.

        The envelope carries ``{"ok": false, "error": {"code", "message",
        "details"}}``; ``error`` may also be a bare string.  Missing pieces
        fall back to ``HTTP_<status>`` and ``Request failed: <status>``.
        """
        envelope = payload if isinstance(payload, dict) else {}
        error = envelope.get("error")

        message: Optional[str] = None
        code: Optional[str] = None
        details: Any = None
        if isinstance(error, dict):
            message = error.get("message")
            code = error.get("code")
            details = error.get("details")
        elif isinstance(error, str) and error:
            message = error

        return cls(
            str(message or f"Request failed: {status}"),
            status=status,
            code=str(code or f"HTTP_{status}"),
            details=details,
            data=payload,
            url=url,
            method=method,
        )


def _exit_code_for_status(status: int) -> int:
    if status in (401, 403):
        return EXIT_AUTH_FAILURE
    if status == 404:
        return EXIT_NOT_FOUND
    if status >= 500:
        return EXIT_SERVER_ERROR
    return EXIT_REJECTED
