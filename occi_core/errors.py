"""Typed OCCI client errors."""

from __future__ import annotations

from typing import Sequence


class OcciError(RuntimeError):
    """Base OCCI error."""


class CommunicationError(OcciError):
    """Request failed, returned an unexpected status or could not be decoded."""


class AuthenticationError(CommunicationError):
    """Credentials, trust material or the Keystone exchange were rejected."""


class AmbiguousIdentifierError(OcciError):
    """Raised when a term matches categories from more than one scheme."""

    def __init__(self, term: str, candidates: Sequence[str]) -> None:
        message = f"{term!r} matches multiple categories: {', '.join(candidates)}"
        super().__init__(message)
        self.term = term
        self.candidates = tuple(candidates)


class EntityBuildingError(OcciError):
    """A category needed to build an entity could not be resolved."""


class ParsingError(OcciError):
    """Server data could not be decoded."""


class RenderingError(OcciError):
    """An entity or action instance could not be encoded."""
