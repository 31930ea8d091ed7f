"""Keystone token exchange used as the fallback after a 401 challenge.

The server names the identity service in ``WWW-Authenticate``. An unscoped
token is obtained first, then every tenant the principal can see is tried in
order until one yields a scoped token. Failures for individual tenants are
expected and skipped.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from occi_core.errors import AuthenticationError, CommunicationError

from .auth import AuthMethod, Authentication
from .security import redact_payload, redact_token
from .transport import ConnectionContext, HttpResponse, Transport

logger = logging.getLogger(__name__)

HEADER_WWW_AUTHENTICATE = "WWW-Authenticate"
HEADER_X_AUTH_TOKEN = "X-Auth-Token"
KEYSTONE_PATH = "/v2.0"
_CHALLENGE_RE = re.compile(r"^(?:Keystone|snf-auth) uri='(?P<uri>.+)'$")


def _voms_payload(_: Authentication) -> dict[str, Any]:
    return {"voms": True}


def _password_payload(authentication: Authentication) -> dict[str, Any]:
    return {
        "passwordCredentials": {
            "username": authentication.username,
            "password": authentication.password,
        }
    }


CREDENTIAL_PAYLOADS: dict[AuthMethod, Callable[[Authentication], dict[str, Any]]] = {
    AuthMethod.X509: _voms_payload,
    AuthMethod.VOMS: _voms_payload,
    AuthMethod.BASIC: _password_payload,
    AuthMethod.DIGEST: _password_payload,
}


def parse_challenge(headers: Mapping[str, str]) -> str:
    """Return the identity service URI announced by a 401 response."""

    value = headers.get(HEADER_WWW_AUTHENTICATE)
    if value is None:
        raise AuthenticationError(f"missing '{HEADER_WWW_AUTHENTICATE}' header")
    match = _CHALLENGE_RE.match(value.strip())
    if not match:
        raise AuthenticationError(f"incorrect {HEADER_WWW_AUTHENTICATE} content: {value!r}")
    return match.group("uri")


def keystone_base(uri: str) -> str:
    """Normalize the service URI so that it ends with the v2.0 API path."""

    parts = urlsplit(uri)
    if not parts.scheme or not parts.netloc:
        raise AuthenticationError(f"invalid keystone uri '{uri}'")
    path = parts.path.rstrip("/")
    if not path.endswith(KEYSTONE_PATH):
        path = f"{path}{KEYSTONE_PATH}"
    return f"{parts.scheme}://{parts.netloc}{path}"


def request_body(authentication: Authentication, tenant: str | None = None) -> dict[str, Any]:
    builder = CREDENTIAL_PAYLOADS.get(authentication.method)
    if builder is None:
        raise AuthenticationError(
            f"authentication method '{authentication.method.value}' cannot obtain a keystone token"
        )
    auth = builder(authentication)
    if tenant is not None:
        auth["tenantName"] = tenant
    return {"auth": auth}


def authenticate(
    authentication: Authentication,
    context: ConnectionContext,
    challenge: HttpResponse,
) -> ConnectionContext:
    """Run the exchange and return ``context`` carrying the scoped token."""

    base = keystone_base(parse_challenge(challenge.headers))
    logger.debug("running keystone fallback against %s", base)
    transport = context.transport

    unscoped = request_token(transport, base, authentication)
    tenants = list_tenants(transport, base, unscoped)
    scoped = scoped_token(transport, base, authentication, unscoped, tenants)
    logger.debug("scoped token: %s", redact_token(scoped))
    return context.with_token(HEADER_X_AUTH_TOKEN, scoped)


def request_token(
    transport: Transport,
    base: str,
    authentication: Authentication,
    *,
    tenant: str | None = None,
    token: str | None = None,
) -> str:
    payload = request_body(authentication, tenant)
    logger.debug("keystone token request %s", redact_payload(payload))
    response = transport.expect(
        "POST",
        f"{base}/tokens",
        headers=_json_headers(token),
        body=json.dumps(payload),
    )
    document = _json(response)
    try:
        token_id = document["access"]["token"]["id"]
    except (KeyError, TypeError) as exc:
        raise CommunicationError("keystone response carries no access.token.id") from exc
    return str(token_id)


def list_tenants(transport: Transport, base: str, token: str) -> list[str]:
    response = transport.expect("GET", f"{base}/tenants", headers=_json_headers(token))
    document = _json(response)
    tenants = document.get("tenants") if isinstance(document, dict) else None
    if not isinstance(tenants, list):
        raise CommunicationError("keystone tenant listing carries no 'tenants' array")
    names = [
        str(item["name"])
        for item in tenants
        if isinstance(item, dict) and item.get("name") is not None
    ]
    logger.debug("keystone tenants: %s", names)
    return names


def scoped_token(
    transport: Transport,
    base: str,
    authentication: Authentication,
    unscoped: str,
    tenants: list[str],
) -> str:
    for tenant in tenants:
        try:
            return request_token(transport, base, authentication, tenant=tenant, token=unscoped)
        except CommunicationError as exc:
            logger.debug("tenant %r rejected: %s", tenant, exc)
    raise AuthenticationError("no suitable tenant found")


def _json_headers(token: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if token:
        headers[HEADER_X_AUTH_TOKEN] = token
    return headers


def _json(response: HttpResponse) -> Any:
    try:
        return json.loads(response.body)
    except json.JSONDecodeError as exc:
        raise CommunicationError(f"invalid keystone JSON: {exc}") from exc
