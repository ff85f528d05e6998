"""daex_core -- shared HTTP plumbing for the DAEX Python SDK.

Service packages build on three pieces:

* a process-wide HTTP client factory with a single connection pool and a
  deliberate TLS trust policy (:mod:`daex_core.client`,
  :mod:`daex_core.security`),
* typed errors for failed calls (:mod:`daex_core.exceptions`),
* conversion of loosely-typed model properties into concrete types
  (:mod:`daex_core.serialization`, :class:`daex_core.models.DynamicModel`).

Modules:
    client: Client factory, logging hook, response error mapping.
    config: Client configuration loading.
    exceptions: Exception hierarchy.
    http_status: Named HTTP status codes.
    models: Pydantic models shared across the package.
    output: stderr diagnostics with Rich support.
    security: Certificate and hostname trust policies.
    serialization: Dynamic property conversion.
"""

__version__ = "0.3.0"
