"""Category model and entity types."""

from .category import (
    CORE_KINDS,
    CORE_SCHEME,
    ENTITY_KIND,
    LINK_KIND,
    RESOURCE_KIND,
    Action,
    Attribute,
    Category,
    CollectionType,
    Kind,
    Mixin,
)
from .entity import ActionInstance, Collection, Entity, Link, Resource, new_entity_id
from .model import Model, Resolution, ResolutionStatus, is_identifier

__all__ = [
    "Action",
    "ActionInstance",
    "Attribute",
    "Category",
    "Collection",
    "CollectionType",
    "CORE_KINDS",
    "CORE_SCHEME",
    "ENTITY_KIND",
    "Entity",
    "Kind",
    "LINK_KIND",
    "Link",
    "Mixin",
    "Model",
    "RESOURCE_KIND",
    "Resolution",
    "ResolutionStatus",
    "Resource",
    "is_identifier",
    "new_entity_id",
]
