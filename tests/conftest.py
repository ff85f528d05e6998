"""Shared test fixtures for daex_core.

Provides reusable fixtures for isolating configuration, resetting the
process-wide output and client factory, capturing diagnostics, and
minting throwaway certificates.
"""

from __future__ import annotations

import datetime
import ipaddress
from io import StringIO
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from daex_core.client.factory import reset_shared_factory
from daex_core.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals() -> None:
    """Drop the global OutputManager and shared client factory after every test."""
    yield
    reset_shared_factory()
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME at a subdirectory of tmp_path and clears
    DAEX_SDK_CONFIG so that tests never read a real user config file.

    Returns:
        The XDG config home used for the test.
    """
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("DAEX_SDK_CONFIG", raising=False)
    monkeypatch.setattr("daex_core.config._is_xdg_platform", lambda: True)
    return config_home


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def captured_output() -> StringIO:
    """Install a verbose, colourless OutputManager writing into a buffer."""
    buffer = StringIO()
    set_output(OutputManager(no_color=True, verbose=True, file=buffer))
    yield buffer
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless OutputManager for tests that ignore diagnostics."""
    output = OutputManager(no_color=True, quiet=True, file=StringIO())
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Certificate fixtures
# ---------------------------------------------------------------------------


def make_certificate(
    common_name: str = "localhost",
    dns_names: tuple[str, ...] = ("localhost",),
    ip_addresses: tuple[str, ...] = (),
    issuer: tuple[x509.Certificate, ec.EllipticCurvePrivateKey] | None = None,
    is_ca: bool = False,
) -> tuple[x509.Certificate, ec.EllipticCurvePrivateKey]:
    """Create a certificate, self-signed unless *issuer* is given."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)

    if issuer is None:
        issuer_name, signing_key = subject, key
    else:
        issuer_name, signing_key = issuer[0].subject, issuer[1]

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer_name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    alt_names: list[x509.GeneralName] = [x509.DNSName(n) for n in dns_names]
    alt_names += [x509.IPAddress(ipaddress.ip_address(a)) for a in ip_addresses]
    if alt_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(alt_names), critical=False)

    return builder.sign(signing_key, hashes.SHA256()), key


@pytest.fixture
def self_signed_cert() -> x509.Certificate:
    """A self-signed leaf certificate for ``localhost``."""
    cert, _ = make_certificate()
    return cert


@pytest.fixture
def self_signed_pem(tmp_path: Path, self_signed_cert: x509.Certificate) -> Path:
    """The self-signed certificate written as a PEM bundle."""
    path = tmp_path / "self-signed.pem"
    path.write_bytes(self_signed_cert.public_bytes(serialization.Encoding.PEM))
    return path


@pytest.fixture
def certificate_factory():
    """The :func:`make_certificate` helper, for tests that need custom chains."""
    return make_certificate
