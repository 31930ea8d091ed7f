"""Category value types: kinds, mixins, actions and their attributes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

CORE_SCHEME = "http://schemas.ogf.org/occi/core#"


class CollectionType(str, Enum):
    """How instances of a kind are shaped on the wire."""

    RESOURCE = "resource"
    LINK = "link"


@dataclass(frozen=True)
class Attribute:
    name: str
    required: bool = False
    mutable: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("attribute name cannot be empty.")


@dataclass(frozen=True)
class Category:
    """Identity shared by every kind, mixin and action."""

    scheme: str
    term: str
    title: str | None = None

    def __post_init__(self) -> None:
        if not self.scheme:
            raise ValueError("scheme cannot be empty.")
        if not self.term:
            raise ValueError("term cannot be empty.")

    @property
    def identifier(self) -> str:
        """Return the ``scheme + term`` identifier for this category."""

        return f"{self.scheme}{self.term}"

    def __str__(self) -> str:
        return self.identifier


def _attributes(attributes: Iterable[Attribute | str]) -> tuple[Attribute, ...]:
    normalized: list[Attribute] = []
    for item in attributes:
        normalized.append(item if isinstance(item, Attribute) else Attribute(str(item)))
    return tuple(normalized)


class _Categorized:
    category: Category

    @property
    def scheme(self) -> str:
        return self.category.scheme

    @property
    def term(self) -> str:
        return self.category.term

    @property
    def title(self) -> str | None:
        return self.category.title

    @property
    def identifier(self) -> str:
        return self.category.identifier

    def attribute(self, name: str) -> Attribute | None:
        for item in self.attributes:  # type: ignore[attr-defined]
            if item.name == name:
                return item
        return None

    def __str__(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class Action(_Categorized):
    category: Category
    attributes: tuple[Attribute, ...] = ()

    @classmethod
    def create(
        cls,
        scheme: str,
        term: str,
        *,
        title: str | None = None,
        attributes: Iterable[Attribute | str] = (),
    ) -> "Action":
        return cls(category=Category(scheme, term, title), attributes=_attributes(attributes))


@dataclass(frozen=True)
class Kind(_Categorized):
    """A resource or link type.

    ``parent`` holds the identifier of the parent kind and ``ancestors`` the
    precomputed identifiers of every kind above it, so the inheritance graph
    never needs object references.
    """

    category: Category
    location: str | None = None
    attributes: tuple[Attribute, ...] = ()
    actions: tuple[str, ...] = ()
    parent: str | None = None
    ancestors: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.category.identifier in self.ancestors:
            raise ValueError(f"kind {self.category.identifier} cannot be its own ancestor.")
        if self.parent is not None and self.parent not in self.ancestors:
            object.__setattr__(self, "ancestors", self.ancestors | {self.parent})

    @classmethod
    def create(
        cls,
        scheme: str,
        term: str,
        *,
        title: str | None = None,
        location: str | None = None,
        attributes: Iterable[Attribute | str] = (),
        actions: Iterable[Action | str] = (),
        parent: "Kind | str | None" = None,
    ) -> "Kind":
        parent_id: str | None = None
        ancestors: frozenset[str] = frozenset()
        if isinstance(parent, Kind):
            parent_id = parent.identifier
            ancestors = parent.relations
        elif parent:
            parent_id = parent
            ancestors = frozenset({parent})
        return cls(
            category=Category(scheme, term, title),
            location=location,
            attributes=_attributes(attributes),
            actions=tuple(str(action) for action in actions),
            parent=parent_id,
            ancestors=ancestors,
        )

    @property
    def relations(self) -> frozenset[str]:
        """Identifiers of this kind and all of its ancestors."""

        return self.ancestors | {self.identifier}

    def derives_from(self, identifier: str) -> bool:
        return identifier in self.relations


@dataclass(frozen=True)
class Mixin(_Categorized):
    category: Category
    location: str | None = None
    attributes: tuple[Attribute, ...] = ()
    actions: tuple[str, ...] = ()
    related: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        scheme: str,
        term: str,
        *,
        title: str | None = None,
        location: str | None = None,
        attributes: Iterable[Attribute | str] = (),
        actions: Iterable[Action | str] = (),
        related: Iterable["Mixin | Kind | str"] = (),
    ) -> "Mixin":
        return cls(
            category=Category(scheme, term, title),
            location=location,
            attributes=_attributes(attributes),
            actions=tuple(str(action) for action in actions),
            related=frozenset(str(item) for item in related),
        )


ENTITY_KIND = Kind.create(
    CORE_SCHEME,
    "entity",
    title="Entity",
    location="/entity/",
    attributes=(
        Attribute("occi.core.id", required=True, mutable=False),
        Attribute("occi.core.title"),
    ),
)

RESOURCE_KIND = Kind.create(
    CORE_SCHEME,
    "resource",
    title="Resource",
    location="/resource/",
    attributes=(Attribute("occi.core.summary"),),
    parent=ENTITY_KIND,
)

LINK_KIND = Kind.create(
    CORE_SCHEME,
    "link",
    title="Link",
    location="/link/",
    attributes=(
        Attribute("occi.core.source", required=True),
        Attribute("occi.core.target", required=True),
    ),
    parent=ENTITY_KIND,
)

CORE_KINDS: tuple[Kind, ...] = (ENTITY_KIND, RESOURCE_KIND, LINK_KIND)
