"""OCCI client: connection management and the collection operations."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from occi_core.builder import EntityBuilder
from occi_core.config import ClientConfig, ClientSettings
from occi_core.errors import CommunicationError, ParsingError, RenderingError
from occi_core.http import (
    MODEL_PATH,
    Authentication,
    ConnectionContext,
    HttpResponse,
    join_url,
    negotiate,
    no_auth,
)
from occi_core.model import ActionInstance, Collection, CollectionType, Entity, Kind, Model
from occi_core.render import (
    SUPPORTED_MEDIA_TYPES,
    TEXT_OCCI,
    TEXT_PLAIN,
    RenderedMessage,
    normalize_media_type,
    parse_collection,
    parse_locations,
    parse_model,
    render_action_instance,
    render_entity,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Client:
    """Synchronous OCCI client bound to a single endpoint.

    Every operation connects first when the client is not connected yet. The
    client is not thread-safe; use one instance per thread.
    """

    def __init__(
        self,
        endpoint: str,
        authentication: Authentication | None = None,
        media_type: str = TEXT_PLAIN,
        autoconnect: bool = False,
        config: ClientConfig | None = None,
    ) -> None:
        if endpoint is None:
            raise ValueError("endpoint cannot be None")
        self.config = config or ClientConfig()
        self._endpoint = endpoint.rstrip("/")
        self._authentication = authentication or no_auth(
            ca_file=self.config.ca_file, ca_path=self.config.ca_path
        )
        self._media_type = _checked_media_type(media_type)
        self._model = Model()
        self._context: ConnectionContext | None = None
        self._connected = False
        if autoconnect:
            self.connect()

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        authentication: Authentication | None = None,
    ) -> "Client":
        if not settings.endpoint:
            raise ValueError("settings carry no endpoint")
        return cls(
            settings.endpoint,
            authentication or settings.authentication(),
            media_type=settings.config.media_type,
            autoconnect=settings.config.autoconnect,
            config=settings.config,
        )

    # accessors

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def authentication(self) -> Authentication:
        return self._authentication

    @property
    def model(self) -> Model:
        return self._model

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def media_type(self) -> str:
        return self._media_type

    @media_type.setter
    def media_type(self, value: str) -> None:
        self._media_type = _checked_media_type(value)
        if self._context is not None:
            self._context = self._context.with_media_type(self._media_type)

    def builder(self) -> EntityBuilder:
        """Return an entity builder bound to the current model."""

        self._ensure_connected()
        return EntityBuilder(self._model)

    # connection

    def connect(self) -> None:
        """Authenticate and load the category model."""

        headers: dict[str, str] = {}
        if self._context is not None:
            headers.update(self._context.headers)
        headers["User-Agent"] = self.config.user_agent
        headers["Content-Type"] = self._media_type
        headers["Accept"] = self._media_type

        context = negotiate(
            self._authentication,
            self._endpoint,
            headers=headers,
            timeout_seconds=self.config.timeout_seconds,
        )
        self._release()
        self._context = context
        self._connected = True
        logger.debug("connected to %s", self._endpoint)
        self._load_model()

    def refresh(self) -> None:
        """Fetch the model document again without authenticating again.

        A client that is not connected yet connects first.
        """

        if not self._connected:
            self.connect()
        else:
            self._load_model()

    def _load_model(self) -> None:
        response = self._request("GET", MODEL_PATH)
        self._model = self._decode(
            lambda media: parse_model(media, response.body, response.headers), response
        )
        logger.debug("loaded model %r", self._model)

    def close(self) -> None:
        self._release()
        self._connected = False

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # operations

    def list(self, target: str | None = None) -> list[str]:
        """Return instance locations of every entity, or of one kind."""

        self._ensure_connected()
        if target is None:
            return self._locations("/")
        return self._locations(self._kind_location(self._require_kind(target)))

    def describe(self, target: str | None = None) -> list[Entity]:
        """Fetch and decode entities: all of them, one kind or one instance.

        Links precede resources in the result.
        """

        self._ensure_connected()
        collection = Collection()
        if target is None:
            for location in self._locations("/"):
                collection.merge(self._describe_location(location))
            return collection.entities()

        kind = self._model.find_kind(target)
        if kind is not None:
            collection_type = self._collection_type(kind)
            for location in self._locations(self._kind_location(kind)):
                collection.merge(self._fetch(location, collection_type))
            return collection.entities()

        if "/" in target:
            return self._describe_location(target).entities()
        raise CommunicationError(f"unknown resource type '{target}'")

    def create(self, entity: Entity) -> str:
        """Create ``entity`` on the server and return its location."""

        self._ensure_connected()
        location = entity.kind.location
        if not location:
            raise CommunicationError(f"kind {entity.kind.identifier} has no location")
        message = self._render(lambda: render_entity(entity, self._media_type))
        response = self._request(
            "POST", location, status=201, headers=message.headers, body=message.body
        )

        media = response.media_type or self._media_type
        # Some servers answer a successful create with a bare "OK" body.
        if media != TEXT_OCCI and response.body.strip() == "OK" and "Location" in response.headers:
            media = TEXT_OCCI
        locations = self._decode(
            lambda _: parse_locations(media, response.body, response.headers), response
        )
        if not locations:
            raise CommunicationError("no location returned")
        logger.debug("created %s at %s", entity.kind.identifier, locations[0])
        return locations[0]

    def delete(self, target: str) -> bool:
        """Delete one instance, or every instance of a kind."""

        self._ensure_connected()
        response = self._request("DELETE", self._target_location(target), status=None)
        return response.status == 200

    def trigger(self, target: str, action_instance: ActionInstance) -> bool:
        """Trigger an action on one instance, or on every instance of a kind."""

        self._ensure_connected()
        location = f"{self._target_location(target)}?action={action_instance.term}"
        message = self._render(lambda: render_action_instance(action_instance, self._media_type))
        response = self._request(
            "POST", location, status=None, headers=message.headers, body=message.body
        )
        return response.status == 200

    # internals

    def _ensure_connected(self) -> None:
        if not self._connected:
            self.connect()

    def _release(self) -> None:
        if self._context is not None:
            self._context.transport.close()

    def _request(
        self,
        method: str,
        location: str,
        *,
        status: int | None = 200,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        if self._context is None:
            raise CommunicationError("client is not connected")
        url = join_url(self._endpoint, location)
        request_headers = self._context.request_headers(headers)
        if status is None:
            return self._context.transport.request(method, url, headers=request_headers, body=body)
        return self._context.transport.expect(
            method, url, status, headers=request_headers, body=body
        )

    def _locations(self, location: str) -> list[str]:
        response = self._request("GET", location)
        locations = self._decode(
            lambda media: parse_locations(media, response.body, response.headers), response
        )
        logger.debug("%s lists %d locations", location, len(locations))
        return locations

    def _describe_location(self, location: str) -> Collection:
        kind = self._model.find_kind_by_location(location)
        if kind is None:
            raise CommunicationError(f"unknown resource identifier '{location}'")
        return self._fetch(location, self._collection_type(kind))

    def _fetch(self, location: str, collection_type: CollectionType) -> Collection:
        response = self._request("GET", location)
        return self._decode(
            lambda media: parse_collection(
                media, response.body, response.headers, collection_type, self._model
            ),
            response,
        )

    def _target_location(self, target: str) -> str:
        kind = self._model.find_kind(target)
        if kind is not None:
            return self._kind_location(kind)
        if "/" in target:
            return join_url(self._endpoint, target)
        raise CommunicationError(f"unknown resource type '{target}'")

    def _require_kind(self, target: str) -> Kind:
        kind = self._model.find_kind(target)
        if kind is None:
            raise CommunicationError(f"unknown resource type '{target}'")
        return kind

    def _collection_type(self, kind: Kind) -> CollectionType:
        collection_type = self._model.collection_type_of(kind)
        if collection_type is None:
            raise CommunicationError(f"cannot tell whether {kind.identifier} is a resource or a link")
        return collection_type

    @staticmethod
    def _kind_location(kind: Kind) -> str:
        if not kind.location:
            raise CommunicationError(f"kind {kind.identifier} has no location")
        return kind.location

    def _decode(self, parse: Callable[[str], T], response: HttpResponse) -> T:
        try:
            return parse(response.media_type or self._media_type)
        except ParsingError as exc:
            raise CommunicationError(str(exc)) from exc

    @staticmethod
    def _render(render: Callable[[], RenderedMessage]) -> RenderedMessage:
        try:
            return render()
        except RenderingError as exc:
            raise CommunicationError(str(exc)) from exc


def _checked_media_type(value: str) -> str:
    media = normalize_media_type(value)
    if media not in SUPPORTED_MEDIA_TYPES:
        raise ValueError(f"unsupported media type '{value}'")
    return media
