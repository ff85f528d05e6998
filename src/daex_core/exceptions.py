"""Exception hierarchy for daex_core.

All exceptions inherit from :class:`DaexError`. Configuration-time errors
(:class:`ConfigurationError`, :class:`CryptoInitError`) are raised while
building the TLS setup of the shared HTTP client; the client factory
reports them and falls back to the transport defaults. Call-level errors
(:class:`ServiceResponseError`, :class:`DeserializationError`,
:class:`CertificateVerificationError`) always reach the caller.

Hierarchy::

    DaexError
    +-- ConfigurationError
    +-- CryptoInitError
    +-- CertificateVerificationError
    +-- DeserializationError
    +-- ServiceResponseError   (tagged with a ResponseErrorKind)

Failed HTTP calls are not modelled as one subclass per status code.
:class:`ServiceResponseError` carries a :class:`ResponseErrorKind` tag
instead, so callers branch on ``exc.kind``::

    try:
        raise_for_status(response)
    except ServiceResponseError as exc:
        if exc.kind is ResponseErrorKind.NOT_FOUND:
            ...
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    import httpx


class DaexError(Exception):
    """Base exception for all daex_core errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(DaexError):
    """Raised for invalid client configuration or an unexpected trust-store shape."""


class CryptoInitError(DaexError):
    """Raised when the TLS context or trust store cannot be initialised."""


class CertificateVerificationError(DaexError):
    """Raised when a certificate chain or hostname is rejected by a validator."""


class DeserializationError(DaexError):
    """Raised when a value cannot be converted into the requested type.

    Args:
        message: Human-readable error description.
        target_type: The type the conversion was aiming for.
        errors: Structured validation errors as reported by pydantic,
            or an empty list when the value could not even be encoded.
    """

    def __init__(
        self,
        message: str,
        target_type: Any = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.target_type = target_type
        self.errors = errors or []

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.message, self.target_type, self.errors))


class ResponseErrorKind(str, enum.Enum):
    """Closed set of failure classes a non-2xx HTTP response maps to."""

    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    REQUEST_TOO_LARGE = "request_too_large"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    TOO_MANY_REQUESTS = "too_many_requests"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    SERVICE_RESPONSE = "service_response"


class ServiceResponseError(DaexError):
    """Raised (or returned by the mapper) for an HTTP response with an error status.

    Args:
        kind: The failure class of the response.
        status_code: Numeric HTTP status of the response.
        message: Error message extracted from the response body.
        response: The originating :class:`httpx.Response`, kept for
            diagnostics. ``None`` when the error was built without one.
    """

    def __init__(
        self,
        kind: ResponseErrorKind,
        status_code: int,
        message: str,
        response: Optional[httpx.Response] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.response = response
        self.headers: dict[str, str] = dict(response.headers) if response is not None else {}

    def __reduce__(self) -> tuple[Any, ...]:
        # The live response holds a stream and a request; only its headers travel.
        return (
            type(self),
            (self.kind, self.status_code, self.message),
            {"headers": dict(self.headers)},
        )

    def __str__(self) -> str:
        if self.message:
            return f"HTTP {self.status_code}: {self.message}"
        return f"HTTP {self.status_code}"

    def __repr__(self) -> str:
        return (
            f"ServiceResponseError(kind={self.kind.value!r}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )

    @property
    def body(self) -> Any:
        """The decoded response body (JSON, text, or ``None``)."""
        if self.response is None:
            return None
        from daex_core.client.response import extract_response_data

        return extract_response_data(self.response)

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds from the ``Retry-After`` header, if given as an integer."""
        value = self.headers.get("retry-after") or self.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return max(int(value.strip()), 0)
        except ValueError:
            # HTTP-date form is not interpreted.
            return None
