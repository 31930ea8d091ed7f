"""Authentication strategies understood by the OCCI client."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class AuthMethod(str, Enum):
    NONE = "none"
    BASIC = "basic"
    DIGEST = "digest"
    X509 = "x509"
    VOMS = "voms"
    KEYSTONE = "keystone"


PASSWORD_METHODS = frozenset({AuthMethod.BASIC, AuthMethod.DIGEST})
CERTIFICATE_METHODS = frozenset({AuthMethod.X509, AuthMethod.VOMS})

# Strategy a method falls back to after a 401 probe; absent means none.
FALLBACKS: dict[AuthMethod, AuthMethod] = {
    AuthMethod.BASIC: AuthMethod.KEYSTONE,
    AuthMethod.DIGEST: AuthMethod.KEYSTONE,
    AuthMethod.X509: AuthMethod.KEYSTONE,
    AuthMethod.VOMS: AuthMethod.KEYSTONE,
}


@dataclass(frozen=True)
class Authentication:
    """A credential strategy plus the trust material used to reach the server.

    Keystone is only entered as the fallback of another method and cannot
    drive a connection on its own.
    """

    method: AuthMethod = AuthMethod.NONE
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    certificate: str | None = None
    ca_file: str | None = None
    ca_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", AuthMethod(self.method))
        if self.method in PASSWORD_METHODS and not self.username:
            raise ValueError(f"{self.method.value} authentication requires a username.")
        if self.method in CERTIFICATE_METHODS and not self.certificate:
            raise ValueError(f"{self.method.value} authentication requires a certificate.")
        if self.method is AuthMethod.X509 and not self.password:
            raise ValueError("password cannot be empty")

    @property
    def fallback(self) -> AuthMethod | None:
        return FALLBACKS.get(self.method)

    @property
    def transport_capable(self) -> bool:
        return self.method is not AuthMethod.KEYSTONE

    @property
    def uses_certificate(self) -> bool:
        return self.method in CERTIFICATE_METHODS

    def with_trust(self, *, ca_file: str | None = None, ca_path: str | None = None) -> "Authentication":
        return replace(self, ca_file=ca_file, ca_path=ca_path)


def no_auth(*, ca_file: str | None = None, ca_path: str | None = None) -> Authentication:
    return Authentication(AuthMethod.NONE, ca_file=ca_file, ca_path=ca_path)


def basic_auth(username: str, password: str, **trust: str | None) -> Authentication:
    return Authentication(AuthMethod.BASIC, username=username, password=password, **trust)


def digest_auth(username: str, password: str, **trust: str | None) -> Authentication:
    return Authentication(AuthMethod.DIGEST, username=username, password=password, **trust)


def x509_auth(certificate: str, password: str, **trust: str | None) -> Authentication:
    return Authentication(AuthMethod.X509, certificate=certificate, password=password, **trust)


def voms_auth(certificate: str, **trust: str | None) -> Authentication:
    return Authentication(AuthMethod.VOMS, certificate=certificate, password="", **trust)
