"""Mapping of HTTP error responses to :class:`~daex_core.exceptions.ServiceResponseError`.

:func:`map_status` is the pure status-to-kind mapper. It is total: every
integer yields exactly one :class:`~daex_core.exceptions.ResponseErrorKind`,
falling back to ``SERVICE_RESPONSE`` for codes without a dedicated kind.
:func:`error_from_response` adds message extraction from the body, and
:func:`raise_for_status` is what service code calls after each request.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from daex_core import http_status
from daex_core.exceptions import ResponseErrorKind, ServiceResponseError

_KIND_BY_STATUS: dict[int, ResponseErrorKind] = {
    http_status.BAD_REQUEST: ResponseErrorKind.BAD_REQUEST,
    http_status.FORBIDDEN: ResponseErrorKind.FORBIDDEN,
    http_status.NOT_FOUND: ResponseErrorKind.NOT_FOUND,
    http_status.CONFLICT: ResponseErrorKind.CONFLICT,
    http_status.REQUEST_TOO_LONG: ResponseErrorKind.REQUEST_TOO_LARGE,
    http_status.UNSUPPORTED_MEDIA_TYPE: ResponseErrorKind.UNSUPPORTED_MEDIA_TYPE,
    http_status.TOO_MANY_REQUESTS: ResponseErrorKind.TOO_MANY_REQUESTS,
    http_status.SERVICE_UNAVAILABLE: ResponseErrorKind.SERVICE_UNAVAILABLE,
}

# Keys tried, in order, when pulling an error message out of a JSON body.
_MESSAGE_KEYS = ("error", "message", "errorMessage", "detail", "description")
_MAX_TEXT_MESSAGE = 200


def kind_for_status(code: int) -> ResponseErrorKind:
    """Return the :class:`ResponseErrorKind` for status *code*."""
    kind = _KIND_BY_STATUS.get(code)
    if kind is not None:
        return kind
    if http_status.SERVER_ERROR_MIN <= code <= http_status.SERVER_ERROR_MAX:
        return ResponseErrorKind.INTERNAL_SERVER_ERROR
    return ResponseErrorKind.SERVICE_RESPONSE


def map_status(
    code: int,
    message: str,
    response: Optional[httpx.Response] = None,
) -> ServiceResponseError:
    """Build the error value for a failed call. Never raises.

    Args:
        code: HTTP status code of the response.
        message: Human-readable error message.
        response: The originating response, kept for diagnostics.

    Returns:
        A :class:`ServiceResponseError` whose ``kind`` identifies the
        failure class and whose ``status_code`` is *code* unchanged.
    """
    return ServiceResponseError(kind_for_status(code), code, message, response)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.
    """
    try:
        content = response.content
    except httpx.ResponseNotRead:
        return None
    if not content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text


def extract_error_message(response: httpx.Response) -> str:
    """Pull a human-readable error message out of *response*.

    Looks for the usual message keys in a JSON object body, then falls
    back to the (truncated) text body, then to the reason phrase.
    """
    data = extract_response_data(response)
    if isinstance(data, dict):
        for key in _MESSAGE_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    elif isinstance(data, str) and data.strip():
        return data.strip()[:_MAX_TEXT_MESSAGE]
    return response.reason_phrase or ""


def _read_error_body(response: httpx.Response) -> None:
    """Load the body of a streamed response so the message can be extracted.

    A stream that was already consumed or closed is left alone; the
    message then falls back to the reason phrase.
    """
    try:
        response.read()
    except httpx.StreamError:
        pass


def error_from_response(response: httpx.Response) -> ServiceResponseError:
    """Map *response* to a :class:`ServiceResponseError` with an extracted message."""
    _read_error_body(response)
    return map_status(response.status_code, extract_error_message(response), response)


def raise_for_status(response: httpx.Response) -> httpx.Response:
    """Return *response* unchanged unless its status is 400 or above.

    Raises:
        ServiceResponseError: For any status >= 400, tagged with the
            matching :class:`ResponseErrorKind`.
    """
    if response.status_code < http_status.CLIENT_ERROR_MIN:
        return response
    raise error_from_response(response)
