"""Named HTTP status codes referenced by the response error mapper.

Only the codes that :func:`~daex_core.client.response.map_status` treats
specially are listed here, plus the class boundaries used to tell client
errors from server errors.

Example::

    >>> from daex_core import http_status
    >>> http_status.NOT_FOUND
    404
"""

OK = 200
"""The request succeeded."""

BAD_REQUEST = 400
"""The request was malformed or failed validation."""

UNAUTHORIZED = 401
"""No valid credentials were supplied."""

FORBIDDEN = 403
"""The credentials were valid but lack permission for the resource."""

NOT_FOUND = 404
"""The requested resource does not exist."""

CONFLICT = 409
"""The request conflicts with the current state of the resource."""

REQUEST_TOO_LONG = 413
"""The request entity is larger than the service accepts."""

UNSUPPORTED_MEDIA_TYPE = 415
"""The request ``Content-Type`` is not supported by the endpoint."""

TOO_MANY_REQUESTS = 429
"""The caller exceeded the service rate limit."""

INTERNAL_SERVER_ERROR = 500
"""The service failed while handling the request."""

SERVICE_UNAVAILABLE = 503
"""The service is temporarily unable to handle the request."""

CLIENT_ERROR_MIN = 400
"""First status code of the 4xx class."""

SERVER_ERROR_MIN = 500
"""First status code of the 5xx class."""

SERVER_ERROR_MAX = 599
"""Last status code of the 5xx class."""
