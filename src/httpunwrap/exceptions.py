"""Exception hierarchy for httpunwrap.

All exceptions inherit from :class:`UnwrapError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`httpunwrap.exit_codes`.
The CLI entry point in :func:`httpunwrap.app.main` catches ``UnwrapError``
and exits with the appropriate code. Library callers can catch the specific
subclasses they care about.

Subclass hierarchy::

    UnwrapError                (exit 1)
    +-- InvalidUsageError      (exit 2)
    |   +-- EncodeError        (exit 2)
    +-- MalformedPayloadError  (exit 7)
    +-- HTTPStatusError        (exit 1)
    |   +-- ClientError        (exit 4)
    |   +-- ServerError        (exit 5)
    +-- ConnectionError_       (exit 6)
    +-- ConfigError            (exit 1)

Format detection never raises: an undetected payload is returned raw and
is reported through :attr:`~httpunwrap.models.DecodedPayload.is_raw`
instead of an exception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from httpunwrap.exit_codes import (
    EXIT_CLIENT_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MALFORMED_PAYLOAD,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from httpunwrap.models import DecodedPayload, PayloadFormat


class UnwrapError(Exception):
    """Base exception for all httpunwrap errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`httpunwrap.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(UnwrapError):
    """Raised for invalid CLI arguments or unsupported input values."""

    exit_code = EXIT_INVALID_USAGE


class EncodeError(InvalidUsageError):
    """Raised when a value cannot be rendered as XML (e.g. a key that is not a valid tag name)."""


class MalformedPayloadError(UnwrapError):
    """Raised when the parser for a detected format rejects the payload.

    Not retried internally. The offending body and the format it was
    detected as are attached so callers can log or fall back to the raw
    content themselves.

    Args:
        message: Human-readable error description.
        content: The raw body that failed to parse.
        format: The format the body was detected as.
    """

    exit_code = EXIT_MALFORMED_PAYLOAD

    def __init__(
        self,
        message: str,
        content: bytes = b"",
        format: Optional[PayloadFormat] = None,
    ):
        super().__init__(message)
        self.content = content
        self.format = format


class HTTPStatusError(UnwrapError):
    """Raised when the remote endpoint answers with an error status.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code of the response.
        payload: The decoded response body, when one could be decoded.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        payload: Optional[DecodedPayload] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def data(self) -> Any:
        """The decoded error body, or ``None`` if none was available."""
        return self.payload.data if self.payload is not None else None


class ClientError(HTTPStatusError):
    """Raised when the remote endpoint returns an HTTP 4xx status."""

    exit_code = EXIT_CLIENT_ERROR


class ServerError(HTTPStatusError):
    """Raised when the remote endpoint returns an HTTP 5xx status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(UnwrapError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(UnwrapError):
    """Raised for configuration problems (unreadable or invalid config files)."""

    exit_code = EXIT_GENERIC_FAILURE
