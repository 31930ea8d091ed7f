"""Transport, authentication and the Keystone fallback."""

from .auth import (
    AuthMethod,
    Authentication,
    basic_auth,
    digest_auth,
    no_auth,
    voms_auth,
    x509_auth,
)
from .negotiation import MODEL_PATH, build_transport, negotiate
from .transport import DEFAULT_TIMEOUT_SECONDS, ConnectionContext, HttpResponse, Transport, join_url

__all__ = [
    "AuthMethod",
    "Authentication",
    "ConnectionContext",
    "DEFAULT_TIMEOUT_SECONDS",
    "HttpResponse",
    "MODEL_PATH",
    "Transport",
    "basic_auth",
    "build_transport",
    "digest_auth",
    "join_url",
    "negotiate",
    "no_auth",
    "voms_auth",
    "x509_auth",
]
