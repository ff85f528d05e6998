"""TLS trust configuration for the shared HTTP client.

Exposes the two trust policies (platform default and the insecure
trust-all escape hatch) as certificate/hostname validator pairs, and the
:class:`ssl.SSLContext` builder the client factory installs on its
transport.
"""

from daex_core.security.trust import (
    MODERN_CIPHERS,
    CertificateValidator,
    HostnameValidator,
    StoreCertificateValidator,
    StrictHostnameValidator,
    TrustAllCertificateValidator,
    TrustAllHostnameVerifier,
    build_ssl_context,
    build_trust_policy,
    load_trust_store,
)

__all__ = [
    "MODERN_CIPHERS",
    "CertificateValidator",
    "HostnameValidator",
    "StoreCertificateValidator",
    "StrictHostnameValidator",
    "TrustAllCertificateValidator",
    "TrustAllHostnameVerifier",
    "build_ssl_context",
    "build_trust_policy",
    "load_trust_store",
]
