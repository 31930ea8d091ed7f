"""OCCI text renderings (``text/plain`` and ``text/occi``)."""

from .media import (
    SUPPORTED_MEDIA_TYPES,
    TEXT_OCCI,
    TEXT_PLAIN,
    URI_LIST,
    normalize_media_type,
)
from .parser import parse_collection, parse_locations, parse_model
from .renderer import RenderedMessage, render_action_instance, render_entity

__all__ = [
    "RenderedMessage",
    "SUPPORTED_MEDIA_TYPES",
    "TEXT_OCCI",
    "TEXT_PLAIN",
    "URI_LIST",
    "normalize_media_type",
    "parse_collection",
    "parse_locations",
    "parse_model",
    "render_action_instance",
    "render_entity",
]
