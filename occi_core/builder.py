"""Builder that creates new, model-bound OCCI entities."""

from __future__ import annotations

from occi_core.errors import EntityBuildingError
from occi_core.model import (
    Action,
    ActionInstance,
    Kind,
    Link,
    Mixin,
    Model,
    Resource,
    is_identifier,
    new_entity_id,
)
from occi_core.model import infrastructure


class EntityBuilder:
    """Create resources, links and action instances against a model.

    The infrastructure helpers (``build_compute`` and friends) first look the
    standard identifier up in the model, since a server may redefine the
    location or attributes, and otherwise fall back to the built-in default.
    """

    def __init__(self, model: Model) -> None:
        if model is None:
            raise TypeError("model cannot be None")
        self.model = model

    def build_resource(self, kind: str) -> Resource:
        return self._new_resource(self._kind(kind))

    def build_link(self, kind: str) -> Link:
        return self._new_link(self._kind(kind))

    def build_action_instance(self, action: str) -> ActionInstance:
        return ActionInstance(action=self._action(action), model=self.model)

    def build_compute(self, identifier: str | None = None) -> Resource:
        return self._new_resource(self._kind_or_default(identifier, infrastructure.COMPUTE_KIND))

    def build_network(self, identifier: str | None = None) -> Resource:
        return self._new_resource(self._kind_or_default(identifier, infrastructure.NETWORK_KIND))

    def build_storage(self, identifier: str | None = None) -> Resource:
        return self._new_resource(self._kind_or_default(identifier, infrastructure.STORAGE_KIND))

    def build_storage_link(self, identifier: str | None = None) -> Link:
        return self._new_link(self._kind_or_default(identifier, infrastructure.STORAGELINK_KIND))

    def build_network_interface(self, identifier: str | None = None) -> Link:
        return self._new_link(
            self._kind_or_default(identifier, infrastructure.NETWORKINTERFACE_KIND)
        )

    def build_ip_network(
        self,
        kind_identifier: str | None = None,
        mixin_identifier: str | None = None,
    ) -> Resource:
        resource = self.build_network(kind_identifier)
        resource.add_mixin(self._mixin_or_default(mixin_identifier, infrastructure.IPNETWORK_MIXIN))
        return resource

    def build_ip_network_interface(
        self,
        kind_identifier: str | None = None,
        mixin_identifier: str | None = None,
    ) -> Link:
        link = self.build_network_interface(kind_identifier)
        link.add_mixin(
            self._mixin_or_default(mixin_identifier, infrastructure.IPNETWORKINTERFACE_MIXIN)
        )
        return link

    def _new_resource(self, kind: Kind) -> Resource:
        return Resource(id=new_entity_id(), kind=kind, model=self.model)

    def _new_link(self, kind: Kind) -> Link:
        return Link(id=new_entity_id(), kind=kind, model=self.model)

    def _kind(self, type_or_identifier: str) -> Kind:
        kind = self.model.find_kind(type_or_identifier)
        if kind is None:
            raise EntityBuildingError(_unknown(type_or_identifier))
        return kind

    def _action(self, type_or_identifier: str) -> Action:
        action = self.model.find_action(type_or_identifier)
        if action is None:
            raise EntityBuildingError(_unknown(type_or_identifier))
        return action

    def _kind_or_default(self, identifier: str | None, default: Kind) -> Kind:
        if identifier is not None:
            if not is_identifier(identifier):
                raise EntityBuildingError(f"'{identifier}' is not a full kind identifier")
            return self._kind(identifier)
        return self.model.find_kind(default.identifier) or default

    def _mixin_or_default(self, identifier: str | None, default: Mixin) -> Mixin:
        if identifier is not None:
            mixin = self.model.find_mixin(identifier) if is_identifier(identifier) else None
            if mixin is None:
                raise EntityBuildingError(f"unknown identifier '{identifier}'")
            return mixin
        return self.model.find_mixin(default.identifier) or default


def _unknown(type_or_identifier: str) -> str:
    if is_identifier(type_or_identifier):
        return f"unknown identifier '{type_or_identifier}'"
    return f"unknown type '{type_or_identifier}'"
