"""Client library for OCCI 1.1 cloud endpoints."""

from .builder import EntityBuilder
from .client import Client
from .config import AuthConfig, ClientConfig, ClientSettings, default_config_path, load_client_settings
from .errors import (
    AmbiguousIdentifierError,
    AuthenticationError,
    CommunicationError,
    EntityBuildingError,
    OcciError,
    ParsingError,
    RenderingError,
)
from .http import (
    AuthMethod,
    Authentication,
    basic_auth,
    digest_auth,
    no_auth,
    voms_auth,
    x509_auth,
)
from .model import ActionInstance, Collection, CollectionType, Entity, Kind, Link, Mixin, Model, Resource

__all__ = [
    "ActionInstance",
    "AmbiguousIdentifierError",
    "AuthConfig",
    "AuthMethod",
    "Authentication",
    "AuthenticationError",
    "Client",
    "ClientConfig",
    "ClientSettings",
    "Collection",
    "CollectionType",
    "CommunicationError",
    "Entity",
    "EntityBuilder",
    "EntityBuildingError",
    "Kind",
    "Link",
    "Mixin",
    "Model",
    "OcciError",
    "ParsingError",
    "RenderingError",
    "Resource",
    "basic_auth",
    "default_config_path",
    "digest_auth",
    "load_client_settings",
    "no_auth",
    "voms_auth",
    "x509_auth",
]
