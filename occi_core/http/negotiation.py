"""Connection negotiation: build the transport, probe the server, fall back.

``negotiate`` walks the authentication states for one connection attempt and
returns the :class:`ConnectionContext` every later request is issued with.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from occi_core.errors import AuthenticationError

from . import keystone
from .auth import AuthMethod, Authentication
from .security import build_client_ssl_context, redact_headers, trust_location
from .transport import DEFAULT_TIMEOUT_SECONDS, ConnectionContext, HttpResponse, Transport, join_url

logger = logging.getLogger(__name__)

MODEL_PATH = "/-/"

_HTTP_AUTH: dict[AuthMethod, Callable[[str, str], AuthBase]] = {
    AuthMethod.BASIC: HTTPBasicAuth,
    AuthMethod.DIGEST: HTTPDigestAuth,
}

_FALLBACK_HANDLERS: dict[
    AuthMethod, Callable[[Authentication, ConnectionContext, HttpResponse], ConnectionContext]
] = {
    AuthMethod.KEYSTONE: keystone.authenticate,
}


class _ScopedAuth(AuthBase):
    """Attach credentials only to requests addressed to the OCCI host."""

    def __init__(self, netloc: str, delegate: AuthBase) -> None:
        self.netloc = netloc
        self.delegate = delegate

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        if urlsplit(request.url or "").netloc == self.netloc:
            return self.delegate(request)
        return request


class _TLSAdapter(HTTPAdapter):
    """HTTP adapter presenting a client certificate on every TLS handshake."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any) -> None:
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self.ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any) -> Any:
        kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def build_transport(
    authentication: Authentication,
    endpoint: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> Transport:
    if not authentication.transport_capable:
        raise AuthenticationError(
            f"'{authentication.method.value}' authentication cannot open a connection"
        )
    session = session or requests.Session()
    try:
        session.verify = trust_location(authentication.ca_file, authentication.ca_path)
        http_auth = _HTTP_AUTH.get(authentication.method)
        if http_auth is not None:
            session.auth = _ScopedAuth(
                urlsplit(endpoint).netloc,
                http_auth(authentication.username or "", authentication.password or ""),
            )
        if authentication.uses_certificate:
            context = build_client_ssl_context(
                authentication.certificate or "",
                authentication.password,
                ca_file=authentication.ca_file,
                ca_path=authentication.ca_path,
            )
            session.mount("https://", _TLSAdapter(context))
    except Exception:
        session.close()
        raise
    return Transport(session, timeout_seconds=timeout_seconds)


def negotiate(
    authentication: Authentication,
    endpoint: str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> ConnectionContext:
    """Authenticate against ``endpoint`` and return the live connection context.

    The transport is closed before any failure propagates.
    """

    transport = build_transport(
        authentication, endpoint, timeout_seconds=timeout_seconds, session=session
    )
    context = ConnectionContext(transport, tuple((headers or {}).items()))
    try:
        return _probe(authentication, endpoint, context)
    except Exception:
        transport.close()
        raise


def _probe(
    authentication: Authentication,
    endpoint: str,
    context: ConnectionContext,
) -> ConnectionContext:
    response = context.transport.request(
        "HEAD", join_url(endpoint, MODEL_PATH), headers=context.request_headers()
    )
    if response.status == 200:
        logger.debug("authenticated against %s using %s", endpoint, authentication.method.value)
        return context

    fallback = authentication.fallback
    if response.status == 401 and fallback is not None:
        logger.debug("probe challenged, delegating to %s", fallback.value)
        return _FALLBACK_HANDLERS[fallback](authentication, context, response)

    logger.error(
        "authentication failed: %s headers=%s body=%s",
        response.status_line,
        redact_headers(response.headers),
        response.body,
    )
    raise AuthenticationError(response.status_line)
