"""Entity instances (resources and links) and action invocations."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from .category import Action, Kind, Mixin

if TYPE_CHECKING:
    from .model import Model


def new_entity_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class Entity:
    """Common state of resources and links.

    Kinds and mixins are shared with the model; an entity never copies them.
    """

    id: str
    kind: Kind
    title: str | None = None
    mixins: dict[str, Mixin] = field(default_factory=dict)
    attributes: dict[str, Any] = field(default_factory=dict)
    model: "Model | None" = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("entity id cannot be empty.")
        if self.kind is None:
            raise ValueError("entity kind cannot be None.")

    def add_mixin(self, mixin: Mixin) -> None:
        self.mixins[mixin.identifier] = mixin

    def remove_mixin(self, identifier: str) -> Mixin | None:
        return self.mixins.pop(identifier, None)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def get_attribute(self, name: str, default: Any | None = None) -> Any | None:
        return self.attributes.get(name, default)

    @property
    def identifier(self) -> str:
        """Identifier of the owning kind."""

        return self.kind.identifier

    @property
    def location(self) -> str | None:
        if not self.kind.location:
            return None
        return f"{self.kind.location.rstrip('/')}/{self.id}"


@dataclass(eq=False)
class Link(Entity):
    source: str | None = None
    target: str | None = None
    relation: str | None = None


@dataclass(eq=False)
class Resource(Entity):
    summary: str | None = None
    links: list[Link] = field(default_factory=list)

    def add_link(self, link: Link) -> None:
        self.links.append(link)


@dataclass(eq=False)
class ActionInstance:
    action: Action
    attributes: dict[str, Any] = field(default_factory=dict)
    model: "Model | None" = field(default=None, repr=False)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    @property
    def term(self) -> str:
        return self.action.term


@dataclass
class Collection:
    """Resources and links decoded from one or more responses."""

    resources: list[Resource] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    def merge(self, other: "Collection") -> None:
        self.resources.extend(other.resources)
        self.links.extend(other.links)

    def entities(self) -> list[Entity]:
        """Links first, then resources."""

        return [*self.links, *self.resources]

    def __len__(self) -> int:
        return len(self.resources) + len(self.links)

    @classmethod
    def of(cls, entities: Iterable[Entity]) -> "Collection":
        collection = cls()
        for entity in entities:
            if isinstance(entity, Link):
                collection.links.append(entity)
            elif isinstance(entity, Resource):
                collection.resources.append(entity)
        return collection
