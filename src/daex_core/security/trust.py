"""Certificate and hostname validation policies.

:func:`build_trust_policy` returns the validator pair for a
:class:`~daex_core.models.TrustPolicy`:

* ``PLATFORM_DEFAULT`` -- chains must lead to a CA in the default trust
  store (the ``certifi`` bundle, the same store httpx verifies against)
  or in an explicitly configured CA bundle, and the leaf must name the
  host.
* ``TRUST_ALL`` -- every chain and every hostname is accepted. Insecure
  by design; only for disposable or self-signed test endpoints.

:func:`build_ssl_context` applies the same policy to the
:class:`ssl.SSLContext` used for real connections, so the validators and
the transport never disagree.
"""

from __future__ import annotations

import ipaddress
import re
import ssl
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

import certifi
from cryptography import x509
from cryptography.x509.oid import ExtensionOID
from cryptography.x509.verification import (
    PolicyBuilder,
    Store,
    VerificationError,
)

from daex_core.exceptions import (
    CertificateVerificationError,
    ConfigurationError,
    CryptoInitError,
)
from daex_core.models import ClientConfiguration, ConnectionSpec, TrustPolicy
from daex_core.output import get_output

MODERN_CIPHERS = (
    "ECDHE+AESGCM:ECDHE+CHACHA20:DHE+AESGCM:DHE+CHACHA20:"
    "!aNULL:!eNULL:!MD5:!DSS:!RC4:!3DES"
)
"""OpenSSL cipher string for ``MODERN_TLS`` (TLS 1.2 suites; 1.3 suites are fixed)."""

COMPATIBLE_CIPHERS = "DEFAULT:!aNULL:!eNULL:!MD5"
"""OpenSSL cipher string for ``COMPATIBLE_TLS``."""

_PEM_CERT_RE = re.compile(
    rb"-----BEGIN CERTIFICATE-----\r?\n.+?\r?\n-----END CERTIFICATE-----",
    re.DOTALL,
)


class CertificateValidator(Protocol):
    """Decides whether a server certificate chain is acceptable."""

    def check_server_trusted(self, chain: Sequence[x509.Certificate], hostname: str) -> None:
        """Return silently if *chain* is trusted for *hostname*.

        Raises:
            CertificateVerificationError: If the chain is rejected.
        """
        ...


class HostnameValidator(Protocol):
    """Decides whether a certificate's subject matches the connected host."""

    def verify(self, hostname: str, certificate: x509.Certificate) -> bool:
        ...


# --- Trust store ---


def load_trust_store(ca_bundle: Union[str, Path, None] = None) -> list[x509.Certificate]:
    """Load the CA certificates of a PEM bundle.

    Args:
        ca_bundle: PEM file to read. Defaults to the ``certifi`` bundle.

    Returns:
        The parsed CA certificates. Entries that fail to parse are skipped.

    Raises:
        CryptoInitError: If the bundle cannot be read.
        ConfigurationError: If the bundle holds no usable certificate.
    """
    path = Path(ca_bundle) if ca_bundle is not None else Path(certifi.where())
    try:
        pem = path.read_bytes()
    except OSError as exc:
        raise CryptoInitError(f"Cannot read trust store {path}: {exc}") from exc

    certificates: list[x509.Certificate] = []
    skipped = 0
    for block in _PEM_CERT_RE.findall(pem):
        try:
            certificates.append(x509.load_pem_x509_certificate(block))
        except ValueError:
            skipped += 1

    if skipped:
        get_output().debug(f"Skipped {skipped} unparseable certificate(s) in {path}")
    if not certificates:
        raise ConfigurationError(f"Unexpected trust store shape: no CA certificates in {path}")
    return certificates


# --- Platform default policy ---


class StoreCertificateValidator:
    """Validates server chains against a fixed set of trust anchors.

    Path building and name checks are delegated to
    :mod:`cryptography.x509.verification` using the web PKI server profile.

    Args:
        anchors: Trusted CA certificates. Must not be empty.
    """

    def __init__(self, anchors: Sequence[x509.Certificate]) -> None:
        if not anchors:
            raise ConfigurationError("A certificate validator needs at least one trust anchor")
        self._store = Store(list(anchors))
        self.anchor_count = len(anchors)

    def check_server_trusted(self, chain: Sequence[x509.Certificate], hostname: str) -> None:
        if not chain:
            raise CertificateVerificationError("Empty certificate chain")
        try:
            subject = _subject_for(hostname)
            verifier = PolicyBuilder().store(self._store).build_server_verifier(subject)
        except ValueError as exc:
            raise CertificateVerificationError(f"Invalid hostname {hostname!r}: {exc}") from exc

        try:
            verifier.verify(chain[0], list(chain[1:]))
        except VerificationError as exc:
            raise CertificateVerificationError(
                f"Certificate chain for {hostname} is not trusted: {exc}"
            ) from exc


class StrictHostnameValidator:
    """Matches a hostname against the certificate's subjectAltName entries.

    DNS names compare case-insensitively; a ``*`` is honoured only as the
    whole left-most label and matches exactly one label. IP addresses
    compare against ``iPAddress`` entries. The subject CN is not consulted.
    """

    def verify(self, hostname: str, certificate: x509.Certificate) -> bool:
        try:
            san = certificate.extensions.get_extension_for_oid(
                ExtensionOID.SUBJECT_ALTERNATIVE_NAME
            ).value
        except x509.ExtensionNotFound:
            return False

        try:
            address = ipaddress.ip_address(hostname)
        except ValueError:
            address = None

        if address is not None:
            return address in san.get_values_for_type(x509.IPAddress)

        host = hostname.rstrip(".").lower()
        return any(
            _dns_name_matches(pattern.lower(), host)
            for pattern in san.get_values_for_type(x509.DNSName)
        )


# --- Trust-all policy ---


class TrustAllCertificateValidator:
    """Accepts every certificate chain without any check. INSECURE."""

    def check_server_trusted(self, chain: Sequence[x509.Certificate], hostname: str) -> None:
        return None


class TrustAllHostnameVerifier:
    """Accepts every hostname without any check. INSECURE."""

    def verify(self, hostname: str, certificate: x509.Certificate) -> bool:
        return True


# --- Builders ---


def build_trust_policy(
    policy: TrustPolicy,
    ca_bundle: Union[str, Path, None] = None,
) -> tuple[CertificateValidator, HostnameValidator]:
    """Return the ``(certificate validator, hostname validator)`` pair for *policy*.

    Raises:
        ConfigurationError: If the trust store holds no usable certificate.
        CryptoInitError: If the trust store cannot be read.
    """
    if policy is TrustPolicy.TRUST_ALL:
        get_output().warning(
            "TLS trust-all mode is active: certificate and hostname checks are disabled"
        )
        return TrustAllCertificateValidator(), TrustAllHostnameVerifier()

    anchors = load_trust_store(ca_bundle)
    return StoreCertificateValidator(anchors), StrictHostnameValidator()


def build_ssl_context(config: ClientConfiguration) -> ssl.SSLContext:
    """Create the client :class:`ssl.SSLContext` for *config*.

    TLS 1.2 is the minimum version. The cipher list follows the first TLS
    connection spec in ``config.connection_specs``.

    Raises:
        ConfigurationError: If the trust store holds no certificate.
        CryptoInitError: If the context, trust store, or cipher list
            cannot be initialised.
    """
    if config.trust_policy is TrustPolicy.TRUST_ALL:
        get_output().warning(
            "TLS trust-all mode is active: certificate and hostname checks are disabled"
        )
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    else:
        cafile = config.ca_bundle or certifi.where()
        # Checked first so an empty bundle is a shape error, not an SSLError.
        load_trust_store(cafile)
        try:
            context = ssl.create_default_context(cafile=cafile)
        except (ssl.SSLError, OSError) as exc:
            raise CryptoInitError(f"Cannot initialise TLS context from {cafile}: {exc}") from exc

    context.minimum_version = ssl.TLSVersion.TLSv1_2

    ciphers = _cipher_string(config.tls_specs)
    if ciphers is not None:
        try:
            context.set_ciphers(ciphers)
        except ssl.SSLError as exc:
            raise CryptoInitError(f"Invalid cipher string '{ciphers}': {exc}") from exc
    return context


def _cipher_string(specs: Sequence[ConnectionSpec]) -> Optional[str]:
    for spec in specs:
        if spec is ConnectionSpec.MODERN_TLS:
            return MODERN_CIPHERS
        if spec is ConnectionSpec.COMPATIBLE_TLS:
            return COMPATIBLE_CIPHERS
    return None


def _subject_for(hostname: str) -> Union[x509.DNSName, x509.IPAddress]:
    try:
        return x509.IPAddress(ipaddress.ip_address(hostname))
    except ValueError:
        return x509.DNSName(hostname.rstrip("."))


def _dns_name_matches(pattern: str, host: str) -> bool:
    pattern = pattern.rstrip(".")
    if not pattern.startswith("*."):
        return pattern == host
    suffix = pattern[1:]
    if not host.endswith(suffix):
        return False
    label = host[: -len(suffix)]
    return bool(label) and "." not in label
