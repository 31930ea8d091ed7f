"""Media types and lexical helpers for the OCCI text renderings."""

from __future__ import annotations

from typing import Any, Mapping

TEXT_PLAIN = "text/plain"
TEXT_OCCI = "text/occi"
URI_LIST = "text/uri-list"
SUPPORTED_MEDIA_TYPES = (TEXT_PLAIN, TEXT_OCCI)

HEADER_CATEGORY = "Category"
HEADER_LINK = "Link"
HEADER_ATTRIBUTE = "X-OCCI-Attribute"
HEADER_LOCATION = "X-OCCI-Location"


def normalize_media_type(value: str | None) -> str:
    """Drop parameters such as ``;charset=utf-8`` and lowercase the type."""

    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


def split_outside_quotes(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\" and in_quotes:
            current.append(char)
            escaped = True
            continue
        if char == '"':
            in_quotes = not in_quotes
        if char == separator and not in_quotes:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        inner = value[1:-1]
        return inner.replace('\\"', '"').replace("\\\\", "\\")
    return value


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_value(raw: str) -> Any:
    """Decode an attribute value: quoted string, bool, int, float or bare text."""

    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return unquote(raw)
    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return quote(str(value))


def header_values(headers: Mapping[str, str] | None, name: str) -> list[str]:
    """Return every comma separated value carried by header ``name``."""

    if not headers:
        return []
    wanted = name.lower()
    values: list[str] = []
    for key, raw in headers.items():
        if key.lower() != wanted or raw is None:
            continue
        values.extend(split_outside_quotes(str(raw), ","))
    return values
