"""Decoding of OCCI ``text/plain``, ``text/occi`` and ``text/uri-list`` messages."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from occi_core.errors import ParsingError
from occi_core.model import (
    CORE_KINDS,
    Action,
    Attribute,
    Collection,
    CollectionType,
    Kind,
    Link,
    Mixin,
    Model,
    Resource,
    new_entity_id,
)

from .media import (
    HEADER_ATTRIBUTE,
    HEADER_CATEGORY,
    HEADER_LINK,
    HEADER_LOCATION,
    TEXT_OCCI,
    TEXT_PLAIN,
    URI_LIST,
    header_values,
    normalize_media_type,
    parse_value,
    split_outside_quotes,
    unquote,
)

logger = logging.getLogger(__name__)

_ATTRIBUTE_DEF_RE = re.compile(r"([^\s{}]+)(?:\{([^}]*)\})?")


@dataclass(frozen=True)
class CategoryRecord:
    term: str
    scheme: str
    cls: str
    title: str | None = None
    rel: tuple[str, ...] = ()
    location: str | None = None
    attributes: tuple[Attribute, ...] = ()
    actions: tuple[str, ...] = ()

    @property
    def identifier(self) -> str:
        return f"{self.scheme}{self.term}"


@dataclass
class _Message:
    values: dict[str, list[str]] = field(default_factory=dict)

    def get(self, name: str) -> list[str]:
        return self.values.get(name.lower(), [])


def parse_model(media_type: str, body: str, headers: Mapping[str, str] | None = None) -> Model:
    """Decode the discovery document into a new :class:`Model`."""

    message = _read_message(media_type, body, headers)
    records = [parse_category(value) for value in message.get(HEADER_CATEGORY)]

    model = Model()
    kind_records: dict[str, CategoryRecord] = {}
    for record in records:
        if record.cls == "kind":
            kind_records[record.identifier] = record
        elif record.cls == "mixin":
            model.add_mixin(
                Mixin.create(
                    record.scheme,
                    record.term,
                    title=record.title,
                    location=record.location,
                    attributes=record.attributes,
                    actions=record.actions,
                    related=record.rel,
                )
            )
        elif record.cls == "action":
            model.add_action(
                Action.create(record.scheme, record.term, title=record.title, attributes=record.attributes)
            )
        else:
            raise ParsingError(f"unknown category class '{record.cls}' for {record.identifier}")

    for kind in _build_kinds(kind_records):
        model.add_kind(kind)
    logger.debug("decoded model %r", model)
    return model


def parse_locations(
    media_type: str,
    body: str,
    headers: Mapping[str, str] | None = None,
) -> list[str]:
    media = normalize_media_type(media_type)
    if media == URI_LIST:
        return [
            line.strip()
            for line in (body or "").splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]
    message = _read_message(media, body, headers)
    locations = message.get(HEADER_LOCATION)
    if not locations and media == TEXT_OCCI:
        locations = header_values(headers, "Location")
    return [location.strip() for location in locations]


def parse_collection(
    media_type: str,
    body: str,
    headers: Mapping[str, str] | None,
    collection_type: CollectionType,
    model: Model | None = None,
) -> Collection:
    """Decode a single rendered entity into a :class:`Collection`."""

    message = _read_message(media_type, body, headers)
    if model is None:
        model = Model()
    collection = Collection()
    if not message.get(HEADER_CATEGORY):
        return collection

    kind, mixins = _entity_categories(message.get(HEADER_CATEGORY), model)
    attributes = _parse_attributes(message.get(HEADER_ATTRIBUTE))
    entity_id = attributes.pop("occi.core.id", None)
    if entity_id is None or entity_id == "":
        raise ParsingError(f"entity of kind {kind.identifier} has no occi.core.id")
    title = attributes.pop("occi.core.title", None)

    if collection_type is CollectionType.LINK:
        link = Link(
            id=str(entity_id),
            kind=kind,
            title=title,
            attributes=attributes,
            model=model,
            source=_optional_str(attributes.pop("occi.core.source", None)),
            target=_optional_str(attributes.pop("occi.core.target", None)),
            relation=_optional_str(attributes.pop("occi.core.target.kind", None)),
        )
        for mixin in mixins:
            link.add_mixin(mixin)
        collection.links.append(link)
        return collection

    resource = Resource(
        id=str(entity_id),
        kind=kind,
        title=title,
        attributes=attributes,
        model=model,
        summary=_optional_str(attributes.pop("occi.core.summary", None)),
    )
    for mixin in mixins:
        resource.add_mixin(mixin)
    for value in message.get(HEADER_LINK):
        link = parse_link(value, model)
        if link is None:
            continue
        if link.source is None:
            link.source = resource.location
        resource.add_link(link)
    collection.resources.append(resource)
    return collection


def parse_category(value: str) -> CategoryRecord:
    parts = split_outside_quotes(value, ";")
    if not parts:
        raise ParsingError(f"empty category: {value!r}")
    params = _parameters(parts[1:])
    scheme = params.get("scheme")
    cls = params.get("class")
    if not scheme or not cls:
        raise ParsingError(f"category '{parts[0]}' lacks scheme or class")
    return CategoryRecord(
        term=parts[0].strip(),
        scheme=scheme,
        cls=cls.lower(),
        title=params.get("title") or None,
        rel=tuple(params.get("rel", "").split()),
        location=params.get("location") or None,
        attributes=parse_attribute_definitions(params.get("attributes", "")),
        actions=tuple(params.get("actions", "").split()),
    )


def parse_attribute_definitions(text: str) -> tuple[Attribute, ...]:
    definitions: list[Attribute] = []
    for name, flags in _ATTRIBUTE_DEF_RE.findall(text):
        flag_set = set(flags.split())
        definitions.append(
            Attribute(name, required="required" in flag_set, mutable="immutable" not in flag_set)
        )
    return tuple(definitions)


def parse_link(value: str, model: Model) -> Link | None:
    """Decode a ``Link`` value; action links yield ``None``."""

    parts = split_outside_quotes(value, ";")
    if not parts:
        raise ParsingError(f"empty link: {value!r}")
    target = parts[0].strip()
    if not (target.startswith("<") and target.endswith(">")):
        raise ParsingError(f"link target must be enclosed in '<>': {target!r}")
    target = target[1:-1].strip()
    if "?action=" in target:
        return None

    params = _parameters(parts[1:])
    location = params.pop("self", None)
    relation = params.pop("rel", None)
    categories = params.pop("category", "").split()
    attributes = {name: parse_value(raw) for name, raw in _raw_parameters(parts[1:]) if "." in name}

    kind: Kind | None = None
    mixins: list[Mixin] = []
    for identifier in categories:
        found_kind = model.find_kind(identifier)
        if found_kind is not None and kind is None:
            kind = found_kind
            continue
        found_mixin = model.find_mixin(identifier)
        if found_mixin is not None:
            mixins.append(found_mixin)
    if kind is None:
        unknown = [identifier for identifier in categories if model.find_mixin(identifier) is None]
        kind = _fallback_kind(unknown[0]) if unknown else _core_kind("link")

    link_id = attributes.pop("occi.core.id", None)
    if not link_id and location:
        link_id = location.rstrip("/").rsplit("/", 1)[-1]
    link = Link(
        id=str(link_id or new_entity_id()),
        kind=kind,
        title=_optional_str(attributes.pop("occi.core.title", None)),
        attributes=attributes,
        model=model,
        source=_optional_str(attributes.pop("occi.core.source", None)),
        target=target,
        relation=relation.split()[0] if relation else None,
    )
    attributes.pop("occi.core.target", None)
    for mixin in mixins:
        link.add_mixin(mixin)
    return link


def _read_message(media_type: str, body: str, headers: Mapping[str, str] | None) -> _Message:
    media = normalize_media_type(media_type)
    message = _Message()
    if media == TEXT_OCCI:
        for name in (HEADER_CATEGORY, HEADER_LINK, HEADER_ATTRIBUTE, HEADER_LOCATION):
            values = header_values(headers, name)
            if values:
                message.values[name.lower()] = values
        return message
    if media == TEXT_PLAIN:
        for number, line in enumerate((body or "").splitlines(), start=1):
            stripped = line.strip()
            if not stripped:
                continue
            name, sep, value = stripped.partition(":")
            if not sep:
                raise ParsingError(f"line {number} is not a 'Name: value' pair: {stripped!r}")
            message.values.setdefault(name.strip().lower(), []).extend(
                split_outside_quotes(value, ",")
            )
        return message
    raise ParsingError(f"unsupported media type '{media_type}'")


def _raw_parameters(parts: list[str]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for part in parts:
        key, sep, raw = part.partition("=")
        if not sep:
            raise ParsingError(f"malformed parameter {part!r}")
        pairs.append((key.strip(), raw.strip()))
    return pairs


def _parameters(parts: list[str]) -> dict[str, str]:
    return {key.lower(): unquote(raw) for key, raw in _raw_parameters(parts)}


def _parse_attributes(values: list[str]) -> dict[str, Any]:
    attributes: dict[str, Any] = {}
    for value in values:
        name, sep, raw = value.partition("=")
        if not sep:
            raise ParsingError(f"malformed attribute {value!r}")
        attributes[name.strip()] = parse_value(raw)
    return attributes


def _entity_categories(values: list[str], model: Model) -> tuple[Kind, list[Mixin]]:
    kind: Kind | None = None
    mixins: list[Mixin] = []
    for value in values:
        record = parse_category(value)
        if record.cls == "kind":
            if kind is not None and kind.identifier != record.identifier:
                raise ParsingError("only one kind may define an entity")
            kind = model.find_kind(record.identifier) or _fallback_kind(
                record.identifier, record.title, record.location
            )
        elif record.cls == "mixin":
            mixins.append(
                model.find_mixin(record.identifier)
                or Mixin.create(record.scheme, record.term, title=record.title, location=record.location)
            )
        else:
            raise ParsingError(f"{record.identifier}: entity category must be a kind or a mixin")
    if kind is None:
        raise ParsingError("entity has no kind")
    return kind, mixins


def _build_kinds(records: Mapping[str, CategoryRecord]) -> list[Kind]:
    built: dict[str, Kind] = {}

    def build(identifier: str, path: tuple[str, ...]) -> Kind | None:
        if identifier in built:
            return built[identifier]
        record = records.get(identifier)
        if record is None:
            return _CORE_BY_ID.get(identifier)
        if identifier in path:
            raise ParsingError(f"cyclic kind hierarchy through {identifier}")
        parent_id = record.rel[0] if record.rel else None
        parent: Kind | str | None = parent_id
        if parent_id:
            parent = build(parent_id, (*path, identifier)) or parent_id
        kind = Kind.create(
            record.scheme,
            record.term,
            title=record.title,
            location=record.location,
            attributes=record.attributes,
            actions=record.actions,
            parent=parent,
        )
        built[identifier] = kind
        return kind

    return [kind for kind in (build(identifier, ()) for identifier in records) if kind is not None]


def _split_identifier(identifier: str) -> tuple[str, str]:
    scheme, sep, term = identifier.partition("#")
    if not sep or not term:
        raise ParsingError(f"invalid category identifier '{identifier}'")
    return f"{scheme}#", term


def _fallback_kind(identifier: str, title: str | None = None, location: str | None = None) -> Kind:
    core = _CORE_BY_ID.get(identifier)
    if core is not None:
        return core
    scheme, term = _split_identifier(identifier)
    return Kind.create(scheme, term, title=title, location=location)


def _core_kind(term: str) -> Kind:
    return next(kind for kind in CORE_KINDS if kind.term == term)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


_CORE_BY_ID = {kind.identifier: kind for kind in CORE_KINDS}
