"""Shared HTTP client factory.

httpx performs best when one connection pool is reused for every call, so
the SDK keeps a single :class:`HttpClientFactory` per process. The factory
owns the transport (connection pool and TLS context); each call gets its
own :class:`httpx.Client` from :meth:`HttpClientFactory.create_client`,
sharing that transport but starting with an empty cookie jar.

Lifecycle of the process-wide instance:

* :func:`initialize` -- builds the factory exactly once. Safe under
  concurrent first use (double-checked lock).
* :func:`get_shared_factory` / :func:`get_shared_configuration` -- lazily
  initialise from :func:`~daex_core.config.load_client_config`.
* :func:`derive_client` -- a fresh per-call client from the shared factory.
* :func:`reset_shared_factory` -- closes the pool and forgets the instance.

TLS setup never aborts start-up: if the trust store or TLS context cannot
be initialised, the error is reported and the transport keeps httpx's
default verification.
"""

from __future__ import annotations

import ssl
import threading
from functools import cached_property
from typing import Any, Optional

import httpx

from daex_core.client.hooks import HttpLoggingHook
from daex_core.config import load_client_config
from daex_core.exceptions import ConfigurationError, CryptoInitError
from daex_core.models import ClientConfiguration
from daex_core.output import get_output
from daex_core.security.trust import (
    CertificateValidator,
    HostnameValidator,
    build_ssl_context,
    build_trust_policy,
)


class _SharedTransport(httpx.BaseTransport):
    """Delegates to the factory's transport but ignores ``close()``.

    Closing a derived client must not tear down the pool every other
    derived client is using. The factory closes the real transport.
    """

    def __init__(self, transport: httpx.BaseTransport) -> None:
        self._transport = transport

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._transport.handle_request(request)

    def close(self) -> None:
        pass


def _refuse_cleartext(request: httpx.Request) -> None:
    if request.url.scheme == "http":
        raise ConfigurationError(
            f"Cleartext HTTP is not enabled in connection_specs; refusing {request.url}"
        )


class HttpClientFactory:
    """Builds per-call :class:`httpx.Client` instances over one shared pool.

    Args:
        config: Settings for timeouts, TLS, pooling and logging. Defaults
            to the built-in :class:`~daex_core.models.ClientConfiguration`.
        transport: Optional transport replacing the network transport
            (e.g. :class:`httpx.MockTransport` in tests). The factory
            takes ownership and closes it in :meth:`close`.

    Attributes:
        ssl_context: The customised TLS context, or ``None`` when TLS
            setup failed and httpx defaults are in use.
        tls_customized: ``True`` when :attr:`ssl_context` is installed.

    Example::

        with HttpClientFactory() as factory:
            with factory.create_client(base_url="https://api.example.com") as client:
                response = client.get("/v1/items")
    """

    def __init__(
        self,
        config: Optional[ClientConfiguration] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config if config is not None else ClientConfiguration()
        self.ssl_context: Optional[ssl.SSLContext] = self._configure_tls()
        self.tls_customized = self.ssl_context is not None

        if transport is None:
            transport = httpx.HTTPTransport(
                verify=self.ssl_context if self.ssl_context is not None else True,
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive_connections,
                ),
            )
        self._transport = transport
        self._shared_transport = _SharedTransport(transport)
        self._timeout = httpx.Timeout(
            connect=self.config.connect_timeout,
            read=self.config.read_timeout,
            write=self.config.write_timeout,
            pool=self.config.pool_timeout,
        )
        self._logging_hook = HttpLoggingHook(self.config.http_log_level)
        self._closed = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpClientFactory:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def timeout(self) -> httpx.Timeout:
        """The timeouts every derived client uses."""
        return self._timeout

    @property
    def closed(self) -> bool:
        return self._closed

    @cached_property
    def validators(self) -> tuple[CertificateValidator, HostnameValidator]:
        """Certificate and hostname validators for the configured trust policy.

        Useful for checking a certificate chain obtained out of band
        against the same rule the transport applies.
        """
        return build_trust_policy(self.config.trust_policy, self.config.ca_bundle)

    def create_client(self, **kwargs: Any) -> httpx.Client:
        """Return a new client sharing this factory's pool, with empty cookies.

        Args:
            **kwargs: Extra :class:`httpx.Client` arguments such as
                ``base_url``, ``headers`` or ``auth``. ``transport``,
                ``cookies``, ``timeout`` and ``event_hooks`` are managed
                by the factory and cannot be overridden.

        Raises:
            ConfigurationError: If the factory has been closed, or a
                managed argument is passed.
        """
        if self._closed:
            raise ConfigurationError("HTTP client factory is closed")
        managed = {"transport", "cookies", "timeout", "event_hooks", "verify"} & kwargs.keys()
        if managed:
            raise ConfigurationError(
                f"Cannot override factory-managed client settings: {', '.join(sorted(managed))}"
            )

        event_hooks = self._logging_hook.event_hooks()
        if not self.config.allows_cleartext:
            event_hooks["request"].insert(0, _refuse_cleartext)

        kwargs.setdefault("follow_redirects", self.config.follow_redirects)
        return httpx.Client(
            transport=self._shared_transport,
            timeout=self._timeout,
            cookies=self._new_cookie_jar(),
            event_hooks=event_hooks,
            **kwargs,
        )

    def close(self) -> None:
        """Close the shared transport. Derived clients stop working."""
        if not self._closed:
            self._closed = True
            self._transport.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _new_cookie_jar() -> httpx.Cookies:
        return httpx.Cookies()

    def _configure_tls(self) -> Optional[ssl.SSLContext]:
        """Build the TLS context, or report the failure and return ``None``."""
        try:
            return build_ssl_context(self.config)
        except ConfigurationError as exc:
            get_output().error(
                f"Unexpected default trust store, using transport TLS defaults: {exc}"
            )
        except CryptoInitError as exc:
            get_output().error(
                f"Error initializing the TLS context, using transport TLS defaults: {exc}"
            )
        return None


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_shared_factory: Optional[HttpClientFactory] = None
_shared_lock = threading.Lock()


def initialize(
    config: Optional[ClientConfiguration] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> HttpClientFactory:
    """Create the process-wide factory once and return it.

    Later calls return the same instance. Concurrent first calls construct
    exactly one factory.

    Args:
        config: Configuration for the first construction. When omitted,
            :func:`~daex_core.config.load_client_config` supplies it.
        transport: Optional transport override for the first construction.
            It is only accepted by the call that builds the factory.

    Raises:
        ConfigurationError: If *config* differs from the configuration the
            shared factory was already built with, if *transport* is given
            once the factory exists, or if the config file is invalid.
    """
    global _shared_factory
    created = False
    factory = _shared_factory
    if factory is None:
        with _shared_lock:
            if _shared_factory is None:
                effective = config if config is not None else load_client_config()
                _shared_factory = HttpClientFactory(effective, transport=transport)
                created = True
                get_output().debug("Shared HTTP client factory created")
            factory = _shared_factory

    if transport is not None and not created:
        raise ConfigurationError(
            "Shared HTTP client factory is already initialised; a transport can only be "
            "supplied by the call that creates it"
        )
    if config is not None and config != factory.config:
        raise ConfigurationError(
            "Shared HTTP client factory is already initialised with a different configuration"
        )
    return factory


def get_shared_factory() -> HttpClientFactory:
    """Return the process-wide factory, initialising it on first use."""
    return initialize()


def get_shared_configuration() -> ClientConfiguration:
    """Return the process-wide :class:`~daex_core.models.ClientConfiguration`."""
    return initialize().config


def derive_client(
    config: Optional[ClientConfiguration] = None,
    **kwargs: Any,
) -> httpx.Client:
    """Return a per-call client over the shared pool with its own cookie jar.

    Args:
        config: Expected shared configuration. Initialises the shared
            factory with it on first use; must match afterwards.
        **kwargs: Forwarded to :meth:`HttpClientFactory.create_client`.
    """
    return initialize(config).create_client(**kwargs)


def reset_shared_factory() -> None:
    """Close and drop the process-wide factory.

    Intended for shutdown and for test suites that need a clean slate.
    """
    global _shared_factory
    with _shared_lock:
        factory = _shared_factory
        _shared_factory = None
    if factory is not None:
        factory.close()
        get_output().debug("Shared HTTP client factory closed")
