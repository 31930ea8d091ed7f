"""Redaction and TLS helpers for OCCI connections."""

from __future__ import annotations

import logging
import os
import ssl
import tempfile
from pathlib import Path
from typing import Mapping

from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)

from occi_core.errors import AuthenticationError

logger = logging.getLogger(__name__)

_SENSITIVE_HEADERS = ("authorization", "x-auth-token", "proxy-authorization")
_SENSITIVE_KEYS = ("password", "token")


def redact_token(value: str) -> str:
    if not value:
        return value
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-2:]}"


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    redacted: dict[str, str] = {}
    for name, value in (headers or {}).items():
        if name.lower() in _SENSITIVE_HEADERS:
            redacted[name] = redact_token(str(value))
        else:
            redacted[name] = str(value)
    return redacted


def redact_payload(payload: object) -> object:
    """Mask secrets in a Keystone JSON payload before it is logged."""

    if isinstance(payload, Mapping):
        return {
            key: "***" if any(marker in str(key).lower() for marker in _SENSITIVE_KEYS) else redact_payload(value)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    return payload


def trust_location(ca_file: str | None, ca_path: str | None) -> str | bool:
    """Return the ``verify`` value for requests: a CA file, a CA directory or the system store."""

    if ca_file:
        return ca_file
    if ca_path:
        if not Path(ca_path).is_dir():
            raise AuthenticationError(f"'{ca_path}' is not a directory.")
        return ca_path
    return True


def build_client_ssl_context(
    certificate: str,
    password: str | None,
    *,
    ca_file: str | None = None,
    ca_path: str | None = None,
) -> ssl.SSLContext:
    """Build a TLS context carrying the user certificate and private key.

    PEM files must hold the certificate chain and the key; ``.p12`` files are
    converted to PEM first.
    """

    trust_location(ca_file, ca_path)
    try:
        context = ssl.create_default_context(cafile=ca_file or None, capath=None if ca_file else ca_path or None)
    except (ssl.SSLError, OSError) as exc:
        raise AuthenticationError(f"cannot load CA certificates: {exc}") from exc

    if certificate.endswith(".p12"):
        pem = _pkcs12_to_pem(certificate, password)
        handle, temp_path = tempfile.mkstemp(suffix=".pem")
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(pem)
            _load_chain(context, temp_path, password)
        finally:
            os.unlink(temp_path)
    else:
        _load_chain(context, certificate, password)
    logger.debug("loaded client certificate %s", certificate)
    return context


def _load_chain(context: ssl.SSLContext, path: str, password: str | None) -> None:
    try:
        context.load_cert_chain(certfile=path, password=password or None)
    except (ssl.SSLError, OSError) as exc:
        raise AuthenticationError(f"cannot load user certificate '{path}': {exc}") from exc


def _pkcs12_to_pem(path: str, password: str | None) -> bytes:
    secret = password.encode("utf-8") if password else None
    try:
        key, cert, extra = pkcs12.load_key_and_certificates(Path(path).read_bytes(), secret)
    except (OSError, ValueError) as exc:
        raise AuthenticationError(f"cannot read PKCS12 file '{path}': {exc}") from exc
    if key is None or cert is None:
        raise AuthenticationError(f"PKCS12 file '{path}' lacks a certificate or a private key")
    encryption = BestAvailableEncryption(secret) if secret else NoEncryption()
    chunks = [cert.public_bytes(Encoding.PEM)]
    chunks.extend(item.public_bytes(Encoding.PEM) for item in extra or ())
    chunks.append(key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, encryption))
    return b"".join(chunks)
