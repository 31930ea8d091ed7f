"""Synchronous HTTP transport and the per-connection header context."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Mapping

import requests
from requests.exceptions import RequestException

from occi_core.errors import CommunicationError
from occi_core.render.media import normalize_media_type

from .security import redact_headers

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    headers: Mapping[str, str]
    body: str

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".strip()

    @property
    def media_type(self) -> str:
        return normalize_media_type(self.headers.get("Content-Type"))


def join_url(endpoint: str, location: str) -> str:
    """Resolve ``location`` against ``endpoint`` unless it already names a host."""

    if "://" in location:
        return location
    return f"{endpoint.rstrip('/')}/{location.lstrip('/')}"


class Transport:
    """Thin wrapper around a single ``requests.Session``."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout_seconds = max(float(timeout_seconds), 0.1)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        request_headers = dict(headers or {})
        logger.debug("%s %s headers=%s", method, url, redact_headers(request_headers))
        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                data=body.encode("utf-8") if body else None,
                timeout=self.timeout_seconds,
            )
        except RequestException as exc:
            raise CommunicationError(f"{method} {url} failed: {exc}") from exc
        result = HttpResponse(
            status=response.status_code,
            reason=response.reason or "",
            headers=response.headers,
            body=response.text if method != "HEAD" else "",
        )
        logger.debug("%s %s -> %s", method, url, result.status_line)
        return result

    def expect(
        self,
        method: str,
        url: str,
        status: int = 200,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        """Run a request and raise unless the response carries ``status``."""

        response = self.request(method, url, headers=headers, body=body)
        if response.status != status:
            logger.debug(
                "unexpected response %s headers=%s body=%s",
                response.status_line,
                redact_headers(response.headers),
                response.body,
            )
            raise CommunicationError(f"{response.status_line}\n{response.body}".rstrip())
        return response

    def close(self) -> None:
        self.session.close()


@dataclass(frozen=True)
class ConnectionContext:
    """Transport handle plus the header set shared by every request.

    Values are never mutated; authentication returns a new context with the
    extra headers installed.
    """

    transport: Transport
    headers: tuple[tuple[str, str], ...] = ()
    token: str | None = field(default=None, repr=False)

    def with_header(self, name: str, value: str) -> "ConnectionContext":
        kept = tuple((key, val) for key, val in self.headers if key.lower() != name.lower())
        return replace(self, headers=(*kept, (name, value)))

    def with_media_type(self, media_type: str) -> "ConnectionContext":
        return self.with_header("Content-Type", media_type).with_header("Accept", media_type)

    def with_token(self, header: str, token: str) -> "ConnectionContext":
        return replace(self.with_header(header, token), token=token)

    def request_headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        merged = dict(self.headers)
        merged.update(extra or {})
        return merged
