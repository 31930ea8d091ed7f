"""In-memory category model for a single OCCI connection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, TypeVar
from urllib.parse import urlsplit

from occi_core.errors import AmbiguousIdentifierError

from .category import LINK_KIND, RESOURCE_KIND, Action, CollectionType, Kind, Mixin

C = TypeVar("C", Kind, Mixin, Action)


class ResolutionStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Resolution(Generic[C]):
    """Outcome of a lookup by term or identifier."""

    query: str
    status: ResolutionStatus
    category: C | None = None
    candidates: tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    @property
    def ambiguous(self) -> bool:
        return self.status is ResolutionStatus.AMBIGUOUS

    def unwrap(self) -> C | None:
        """Return the category, ``None`` when missing, raise when ambiguous."""

        if self.status is ResolutionStatus.AMBIGUOUS:
            raise AmbiguousIdentifierError(self.query, self.candidates)
        return self.category


def is_identifier(value: str) -> bool:
    """Full identifiers carry the scheme, which always ends with ``#``."""

    return "#" in value


def _path_of(location: str) -> str:
    return urlsplit(location).path or "/"


class Model:
    """Kinds, mixins and actions indexed by identifier and by term."""

    def __init__(
        self,
        kinds: Iterable[Kind] = (),
        mixins: Iterable[Mixin] = (),
        actions: Iterable[Action] = (),
    ) -> None:
        self._kinds: dict[str, Kind] = {}
        self._mixins: dict[str, Mixin] = {}
        self._actions: dict[str, Action] = {}
        for kind in kinds:
            self.add_kind(kind)
        for mixin in mixins:
            self.add_mixin(mixin)
        for action in actions:
            self.add_action(action)

    # mutators

    def add_kind(self, kind: Kind) -> None:
        self._kinds[kind.identifier] = kind

    def add_mixin(self, mixin: Mixin) -> None:
        self._mixins[mixin.identifier] = mixin

    def add_action(self, action: Action) -> None:
        self._actions[action.identifier] = action

    def remove_kind(self, identifier: str) -> Kind | None:
        return self._kinds.pop(identifier, None)

    def remove_mixin(self, identifier: str) -> Mixin | None:
        return self._mixins.pop(identifier, None)

    def remove_action(self, identifier: str) -> Action | None:
        return self._actions.pop(identifier, None)

    # views

    @property
    def kinds(self) -> tuple[Kind, ...]:
        return tuple(self._kinds.values())

    @property
    def mixins(self) -> tuple[Mixin, ...]:
        return tuple(self._mixins.values())

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions.values())

    def __len__(self) -> int:
        return len(self._kinds) + len(self._mixins) + len(self._actions)

    def __repr__(self) -> str:
        return (
            f"Model(kinds={len(self._kinds)}, mixins={len(self._mixins)}, "
            f"actions={len(self._actions)})"
        )

    # resolution

    def resolve_kind(self, term_or_identifier: str) -> Resolution[Kind]:
        return _resolve(self._kinds, term_or_identifier)

    def resolve_mixin(self, term_or_identifier: str) -> Resolution[Mixin]:
        return _resolve(self._mixins, term_or_identifier)

    def resolve_action(self, term_or_identifier: str) -> Resolution[Action]:
        return _resolve(self._actions, term_or_identifier)

    def find_kind(self, term_or_identifier: str) -> Kind | None:
        """Find a kind by identifier or term; ambiguous terms raise."""

        return self.resolve_kind(term_or_identifier).unwrap()

    def find_mixin(self, term_or_identifier: str) -> Mixin | None:
        return self.resolve_mixin(term_or_identifier).unwrap()

    def find_action(self, term_or_identifier: str) -> Action | None:
        return self.resolve_action(term_or_identifier).unwrap()

    def find_kind_by_location(self, location: str) -> Kind | None:
        """Return the kind with the longest location that prefixes ``location``."""

        path = _path_of(location)
        best: Kind | None = None
        best_len = -1
        for kind in self._kinds.values():
            if not kind.location:
                continue
            prefix = _path_of(kind.location)
            if not prefix.endswith("/"):
                prefix = f"{prefix}/"
            if path.startswith(prefix) and len(prefix) > best_len:
                best = kind
                best_len = len(prefix)
        return best

    def collection_type_of(self, kind: Kind | str) -> CollectionType | None:
        """Tell whether instances of ``kind`` decode as resources or links.

        Returns ``None`` when neither core root is reachable from the kind.
        """

        if isinstance(kind, str):
            if kind.startswith("/") or "://" in kind:
                resolved = self.find_kind_by_location(kind)
            else:
                resolved = self.find_kind(kind)
            if resolved is None:
                return None
            kind = resolved
        relations = self._relations_of(kind)
        if LINK_KIND.identifier in relations:
            return CollectionType.LINK
        if RESOURCE_KIND.identifier in relations:
            return CollectionType.RESOURCE
        return None

    def find_related_mixins(self, term_or_identifier: str) -> tuple[Mixin, ...]:
        """Return mixins that relate, directly or transitively, to a category."""

        target = self.find_mixin(term_or_identifier) or self.find_kind(term_or_identifier)
        if target is None:
            return ()
        identifier = target.identifier
        return tuple(
            mixin
            for mixin in self._mixins.values()
            if mixin.identifier != identifier and identifier in self._mixin_relations(mixin)
        )

    def _relations_of(self, kind: Kind) -> frozenset[str]:
        relations = set(kind.relations)
        parent = kind.parent
        seen: set[str] = {kind.identifier}
        # Parents known to the model may carry a deeper chain than the kind recorded.
        while parent and parent not in seen:
            seen.add(parent)
            parent_kind = self._kinds.get(parent)
            if parent_kind is None:
                break
            relations |= parent_kind.relations
            parent = parent_kind.parent
        return frozenset(relations)

    def _mixin_relations(self, mixin: Mixin) -> frozenset[str]:
        seen: set[str] = set()
        pending = list(mixin.related)
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            related = self._mixins.get(current)
            if related is not None:
                pending.extend(related.related)
        return frozenset(seen)


def _resolve(index: dict[str, C], query: str) -> Resolution[C]:
    if is_identifier(query):
        category = index.get(query)
        if category is None:
            return Resolution(query, ResolutionStatus.NOT_FOUND)
        return Resolution(query, ResolutionStatus.FOUND, category)

    matches = [category for category in index.values() if category.term == query]
    if not matches:
        return Resolution(query, ResolutionStatus.NOT_FOUND)
    if len(matches) > 1:
        candidates = tuple(sorted(category.identifier for category in matches))
        return Resolution(query, ResolutionStatus.AMBIGUOUS, candidates=candidates)
    return Resolution(query, ResolutionStatus.FOUND, matches[0])
