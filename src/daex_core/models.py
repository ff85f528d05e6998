"""Pydantic models shared across daex_core.

**Client configuration** -- the immutable record the shared HTTP client
factory is built from:
    :class:`TrustPolicy`, :class:`ConnectionSpec`, :class:`HttpLogLevel`,
    and :class:`ClientConfiguration`.

**Dynamic models** -- :class:`DynamicModel`, the base for loosely-typed
service models whose unknown properties are preserved and converted to a
concrete type on demand.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


# --- Client configuration ---


class TrustPolicy(str, enum.Enum):
    """Which certificate-chain validation rule issued clients use.

    ``TRUST_ALL`` accepts every certificate and every hostname. It is
    insecure by design and exists only for disposable or self-signed
    test endpoints; :class:`ClientConfiguration` refuses it unless
    ``allow_insecure`` is also set.
    """

    PLATFORM_DEFAULT = "platform_default"
    TRUST_ALL = "trust_all"


class ConnectionSpec(str, enum.Enum):
    """Connection profiles a client may negotiate.

    ``MODERN_TLS`` restricts TLS to 1.2+ with forward-secret AEAD suites,
    ``COMPATIBLE_TLS`` keeps TLS 1.2+ but with the OpenSSL default cipher
    list, and ``CLEARTEXT`` permits plain ``http://`` URLs.
    """

    MODERN_TLS = "modern_tls"
    COMPATIBLE_TLS = "compatible_tls"
    CLEARTEXT = "cleartext"


class HttpLogLevel(str, enum.Enum):
    """Verbosity of the network logging hook."""

    NONE = "none"
    BASIC = "basic"
    HEADERS = "headers"
    BODY = "body"


class ClientConfiguration(BaseModel):
    """Immutable settings for the shared HTTP client.

    Built once per process (see :func:`~daex_core.client.factory.initialize`)
    and never mutated afterwards. Derived clients inherit everything here
    except cookie state, which is always fresh.

    Example::

        ClientConfiguration(
            trust_policy=TrustPolicy.TRUST_ALL,
            allow_insecure=True,
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    connect_timeout: float = Field(default=60.0, gt=0, description="Connect timeout in seconds")
    write_timeout: float = Field(default=60.0, gt=0, description="Write timeout in seconds")
    read_timeout: float = Field(default=90.0, gt=0, description="Read timeout in seconds")
    pool_timeout: Optional[float] = Field(
        default=None, description="Seconds to wait for a pooled connection; None waits forever"
    )
    connection_specs: tuple[ConnectionSpec, ...] = Field(
        default=(ConnectionSpec.MODERN_TLS, ConnectionSpec.CLEARTEXT),
        description="Allowed connection profiles, in order of preference",
    )
    trust_policy: TrustPolicy = Field(
        default=TrustPolicy.PLATFORM_DEFAULT,
        description="Certificate validation rule",
    )
    allow_insecure: bool = Field(
        default=False,
        description="Required alongside trust_all; acknowledges disabled TLS checks",
    )
    ca_bundle: Optional[str] = Field(
        default=None, description="PEM bundle replacing the default trust store"
    )
    http_log_level: HttpLogLevel = Field(
        default=HttpLogLevel.NONE, description="Network logging verbosity"
    )
    max_connections: int = Field(default=100, gt=0)
    max_keepalive_connections: int = Field(default=20, ge=0)
    follow_redirects: bool = True

    @model_validator(mode="after")
    def check_consistency(self) -> ClientConfiguration:
        if self.trust_policy is TrustPolicy.TRUST_ALL and not self.allow_insecure:
            raise ValueError(
                "trust_policy 'trust_all' disables certificate and hostname checks; "
                "set allow_insecure=True to opt in explicitly"
            )
        if not self.connection_specs:
            raise ValueError("connection_specs must name at least one connection profile")
        return self

    @property
    def allows_cleartext(self) -> bool:
        """Whether plain ``http://`` requests are permitted."""
        return ConnectionSpec.CLEARTEXT in self.connection_specs

    @property
    def tls_specs(self) -> tuple[ConnectionSpec, ...]:
        """The TLS connection profiles, without ``CLEARTEXT``."""
        return tuple(s for s in self.connection_specs if s is not ConnectionSpec.CLEARTEXT)


# --- Dynamic models ---


class DynamicModel(BaseModel):
    """Base for service models with loosely-typed extra properties.

    Unknown keys are preserved in ``model_extra`` as plain JSON values.
    :meth:`get_property` turns one of them into a concrete type, which is
    how a generically decoded nested object is reinterpreted as a specific
    model.

    Example::

        class Workspace(DynamicModel):
            name: str

        ws = Workspace.model_validate({"name": "a", "owner": {"id": 7}})
        owner = ws.get_property("owner", Owner)
    """

    model_config = ConfigDict(extra="allow")

    def get_property(self, name: str, target_type: type[T]) -> Optional[T]:
        """Return property *name* converted to *target_type*.

        Declared fields and extra properties are both looked up. Returns
        ``None`` when the property is absent.

        Raises:
            DeserializationError: If the value does not fit *target_type*.
        """
        from daex_core.serialization import convert

        value = self.get_raw_property(name)
        if value is None:
            return None
        return convert(value, target_type)

    def get_raw_property(self, name: str) -> Any:
        """Return property *name* as stored, or ``None`` when absent."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)
