"""Client configuration and the YAML settings file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from platformdirs import user_config_dir

from occi_core.http.auth import AuthMethod, Authentication
from occi_core.http.transport import DEFAULT_TIMEOUT_SECONDS
from occi_core.render.media import TEXT_PLAIN

DEFAULT_APP_NAME = "occi"
CONFIG_FILE_NAME = "client.yml"


def default_config_path() -> Path:
    """Return the platform-specific default settings file for the OCCI client."""

    base_dir = Path(user_config_dir(DEFAULT_APP_NAME, appauthor=False))
    return base_dir / CONFIG_FILE_NAME


def _ensure_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if isinstance(data, Mapping):
        return data
    raise ValueError(f"expected mapping for {what}")


@dataclass(frozen=True)
class ClientConfig:
    media_type: str = TEXT_PLAIN
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    ca_file: str | None = None
    ca_path: str | None = None
    autoconnect: bool = False
    user_agent: str = "occi-client"


@dataclass(frozen=True)
class AuthConfig:
    method: str = AuthMethod.NONE.value
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    certificate: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthConfig":
        raw = _ensure_mapping(data, "auth configuration")
        return cls(
            method=str(raw.get("method", AuthMethod.NONE.value)).lower(),
            username=_optional(raw.get("username")),
            password=_optional(raw.get("password")),
            certificate=_optional(raw.get("certificate")),
        )

    def to_authentication(
        self, *, ca_file: str | None = None, ca_path: str | None = None
    ) -> Authentication:
        try:
            method = AuthMethod(self.method.lower())
        except ValueError as exc:
            raise ValueError(f"unknown authentication method '{self.method}'") from exc
        if method is AuthMethod.KEYSTONE:
            raise ValueError("keystone is only reachable as a fallback")
        return Authentication(
            method,
            username=self.username,
            password=self.password,
            certificate=self.certificate,
            ca_file=ca_file,
            ca_path=ca_path,
        )


@dataclass(frozen=True)
class ClientSettings:
    endpoint: str | None = None
    config: ClientConfig = field(default_factory=ClientConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    def authentication(self) -> Authentication:
        return self.auth.to_authentication(ca_file=self.config.ca_file, ca_path=self.config.ca_path)


def load_client_settings(path: Path | str | None = None) -> ClientSettings:
    """Read client settings from YAML; a missing file yields the defaults."""

    config_path = Path(path).expanduser() if path else default_config_path()
    if not config_path.exists():
        return ClientSettings()
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return ClientSettings()
    data = _ensure_mapping(raw, f"client settings in {config_path}")

    timeout = data.get("timeout", DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout_seconds = float(timeout)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid timeout {timeout!r} in {config_path}") from exc

    config = ClientConfig(
        media_type=str(data.get("media_type") or TEXT_PLAIN),
        timeout_seconds=timeout_seconds,
        ca_file=_optional(data.get("ca_file")),
        ca_path=_optional(data.get("ca_path")),
        autoconnect=bool(data.get("autoconnect", False)),
        user_agent=str(data.get("user_agent") or ClientConfig.user_agent),
    )
    auth_raw = data.get("auth")
    auth = AuthConfig.from_dict(auth_raw) if auth_raw is not None else AuthConfig()
    return ClientSettings(endpoint=_optional(data.get("endpoint")), config=config, auth=auth)


def _optional(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
