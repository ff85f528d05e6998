"""Network logging attached to derived clients as httpx event hooks.

:class:`HttpLoggingHook` writes one line per request and per response
through :func:`daex_core.output.debug`, so nothing is printed unless the
host application enabled verbose diagnostics. Higher
:class:`~daex_core.models.HttpLogLevel` values add headers and bodies.
Credential-bearing headers are always redacted.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from daex_core.models import HttpLogLevel
from daex_core.output import get_output

REDACTED_HEADERS = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie", "x-api-key"}
)
"""Header names whose values never appear in logs (compared lower-case)."""

_MAX_BODY_CHARS = 2048


def redact_headers(headers: httpx.Headers) -> list[tuple[str, str]]:
    """Return header pairs with credential values replaced by ``██``."""
    return [
        (name, "██" if name.lower() in REDACTED_HEADERS else value)
        for name, value in headers.multi_items()
    ]


class HttpLoggingHook:
    """Request/response logger for :class:`httpx.Client` event hooks.

    Args:
        level: How much of each exchange to log. ``NONE`` logs nothing.
    """

    def __init__(self, level: HttpLogLevel = HttpLogLevel.NONE) -> None:
        self.level = level

    def event_hooks(self) -> dict[str, list[Callable[..., Any]]]:
        """Hooks in the shape :class:`httpx.Client` expects."""
        if self.level is HttpLogLevel.NONE:
            return {"request": [], "response": []}
        return {"request": [self.on_request], "response": [self.on_response]}

    def on_request(self, request: httpx.Request) -> None:
        output = get_output()
        output.debug(f"--> {request.method} {request.url}")
        if self.level in (HttpLogLevel.HEADERS, HttpLogLevel.BODY):
            for name, value in redact_headers(request.headers):
                output.debug(f"    {name}: {value}")
        if self.level is HttpLogLevel.BODY:
            try:
                content = request.content
            except httpx.RequestNotRead:
                output.debug("    (streaming body)")
            else:
                if content:
                    output.debug(f"    {_truncate(content)}")

    def on_response(self, response: httpx.Response) -> None:
        output = get_output()
        request = response.request
        output.debug(
            f"<-- {response.status_code} {response.reason_phrase} "
            f"{request.method} {request.url}"
        )
        if self.level in (HttpLogLevel.HEADERS, HttpLogLevel.BODY):
            for name, value in redact_headers(response.headers):
                output.debug(f"    {name}: {value}")
        if self.level is HttpLogLevel.BODY:
            response.read()
            if response.content:
                output.debug(f"    {_truncate(response.content)}")


def _truncate(content: bytes) -> str:
    text = content.decode("utf-8", errors="replace")
    if len(text) > _MAX_BODY_CHARS:
        return f"{text[:_MAX_BODY_CHARS]}... ({len(text)} chars)"
    return text
