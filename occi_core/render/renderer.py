"""Encoding of entities and action instances for requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from occi_core.errors import RenderingError
from occi_core.model import Action, ActionInstance, Entity, Kind, Link, Mixin, Resource

from .media import (
    HEADER_ATTRIBUTE,
    HEADER_CATEGORY,
    HEADER_LINK,
    TEXT_OCCI,
    TEXT_PLAIN,
    normalize_media_type,
    quote,
    render_value,
)


@dataclass(frozen=True)
class RenderedMessage:
    """Headers and body to attach to a request."""

    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def render_entity(entity: Entity, media_type: str) -> RenderedMessage:
    if entity.kind is None:
        raise RenderingError("entity has no kind")
    lines: list[tuple[str, str]] = [(HEADER_CATEGORY, render_category(entity.kind, "kind"))]
    lines.extend((HEADER_CATEGORY, render_category(mixin, "mixin")) for mixin in entity.mixins.values())
    if isinstance(entity, Resource):
        lines.extend((HEADER_LINK, render_link(link)) for link in entity.links)
    lines.extend((HEADER_ATTRIBUTE, value) for value in _entity_attributes(entity))
    return _pack(lines, media_type)


def render_action_instance(action_instance: ActionInstance, media_type: str) -> RenderedMessage:
    lines: list[tuple[str, str]] = [
        (HEADER_CATEGORY, render_category(action_instance.action, "action"))
    ]
    lines.extend(
        (HEADER_ATTRIBUTE, _attribute(name, value))
        for name, value in action_instance.attributes.items()
    )
    return _pack(lines, media_type)


def render_category(category: Kind | Mixin | Action, cls: str) -> str:
    return f'{category.term}; scheme={quote(category.scheme)}; class="{cls}"'


def render_link(link: Link) -> str:
    if not link.target:
        raise RenderingError(f"link {link.id} has no target")
    parts = [f"<{link.target}>"]
    if link.relation:
        parts.append(f"rel={quote(link.relation)}")
    if link.location:
        parts.append(f"self={quote(link.location)}")
    categories = " ".join([link.kind.identifier, *link.mixins])
    parts.append(f"category={quote(categories)}")
    parts.append(_attribute("occi.core.id", link.id))
    if link.title:
        parts.append(_attribute("occi.core.title", link.title))
    parts.extend(_attribute(name, value) for name, value in link.attributes.items())
    return "; ".join(parts)


def _entity_attributes(entity: Entity) -> Iterable[str]:
    yield _attribute("occi.core.id", entity.id)
    if entity.title:
        yield _attribute("occi.core.title", entity.title)
    if isinstance(entity, Resource) and entity.summary:
        yield _attribute("occi.core.summary", entity.summary)
    if isinstance(entity, Link):
        if entity.source:
            yield _attribute("occi.core.source", entity.source)
        if entity.target:
            yield _attribute("occi.core.target", entity.target)
    for name, value in entity.attributes.items():
        yield _attribute(name, value)


def _attribute(name: str, value: Any) -> str:
    return f"{name}={render_value(value)}"


def _pack(lines: list[tuple[str, str]], media_type: str) -> RenderedMessage:
    media = normalize_media_type(media_type)
    if media == TEXT_PLAIN:
        body = "".join(f"{name}: {value}\n" for name, value in lines)
        return RenderedMessage(headers={}, body=body)
    if media == TEXT_OCCI:
        headers: dict[str, str] = {}
        for name, value in lines:
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
        return RenderedMessage(headers=headers, body="")
    raise RenderingError(f"unsupported media type '{media_type}'")
