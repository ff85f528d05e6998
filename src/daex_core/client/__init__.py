"""HTTP client module for daex_core.

Provides the shared client factory, the network logging hook, and the
mapping of error responses to typed exceptions.

Example::

    from daex_core.client import derive_client, raise_for_status

    with derive_client(base_url="https://api.example.com") as client:
        response = raise_for_status(client.get("/v1/items"))
"""

from daex_core.client.factory import (
    HttpClientFactory,
    derive_client,
    get_shared_configuration,
    get_shared_factory,
    initialize,
    reset_shared_factory,
)
from daex_core.client.hooks import HttpLoggingHook
from daex_core.client.response import (
    error_from_response,
    extract_response_data,
    map_status,
    raise_for_status,
)

__all__ = [
    "HttpClientFactory",
    "HttpLoggingHook",
    "derive_client",
    "error_from_response",
    "extract_response_data",
    "get_shared_configuration",
    "get_shared_factory",
    "initialize",
    "map_status",
    "raise_for_status",
    "reset_shared_factory",
]
