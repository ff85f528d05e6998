"""Tests for the shared pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from daex_core.models import ClientConfiguration, ConnectionSpec, HttpLogLevel, TrustPolicy


class TestClientConfiguration:
    def test_is_frozen(self) -> None:
        config = ClientConfiguration()
        with pytest.raises(ValidationError):
            config.read_timeout = 1

    def test_is_hashable_and_comparable(self) -> None:
        assert ClientConfiguration() == ClientConfiguration()
        assert hash(ClientConfiguration()) == hash(ClientConfiguration())

    def test_trust_all_needs_allow_insecure(self) -> None:
        with pytest.raises(ValidationError, match="allow_insecure"):
            ClientConfiguration(trust_policy=TrustPolicy.TRUST_ALL)

    def test_allow_insecure_alone_keeps_platform_default(self) -> None:
        config = ClientConfiguration(allow_insecure=True)
        assert config.trust_policy is TrustPolicy.PLATFORM_DEFAULT

    def test_connection_specs_must_not_be_empty(self) -> None:
        with pytest.raises(ValidationError, match="connection_specs"):
            ClientConfiguration(connection_specs=())

    def test_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfiguration(connect_timeout=0)

    def test_cleartext_helpers(self) -> None:
        config = ClientConfiguration()
        assert config.allows_cleartext is True
        assert config.tls_specs == (ConnectionSpec.MODERN_TLS,)

        tls_only = ClientConfiguration(connection_specs=("modern_tls",))
        assert tls_only.allows_cleartext is False

    def test_enum_values_from_strings(self) -> None:
        config = ClientConfiguration(http_log_level="body")
        assert config.http_log_level is HttpLogLevel.BODY
