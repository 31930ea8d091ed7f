from __future__ import annotations

import pytest

from occi_core.errors import AmbiguousIdentifierError
from occi_core.model import (
    CORE_SCHEME,
    LINK_KIND,
    RESOURCE_KIND,
    Collection,
    CollectionType,
    Kind,
    Link,
    Mixin,
    Model,
    Resource,
    ResolutionStatus,
    is_identifier,
)
from occi_core.model import infrastructure

OTHER_SCHEME = "http://occi.example.org/occi/custom#"


def _model() -> Model:
    return Model(
        kinds=(*infrastructure.INFRASTRUCTURE_KINDS, RESOURCE_KIND, LINK_KIND),
        mixins=infrastructure.INFRASTRUCTURE_MIXINS,
        actions=infrastructure.INFRASTRUCTURE_ACTIONS,
    )


def test_term_shared_by_two_schemes_is_ambiguous() -> None:
    model = _model()
    custom = Kind.create(OTHER_SCHEME, "compute", location="/custom/compute/", parent=RESOURCE_KIND)
    model.add_kind(custom)

    with pytest.raises(AmbiguousIdentifierError) as excinfo:
        model.find_kind("compute")

    assert excinfo.value.term == "compute"
    assert excinfo.value.candidates == tuple(
        sorted([custom.identifier, infrastructure.COMPUTE_KIND.identifier])
    )
    assert model.find_kind(custom.identifier) is custom
    assert model.find_kind(infrastructure.COMPUTE_KIND.identifier) is infrastructure.COMPUTE_KIND


def test_resolution_reports_status_without_raising() -> None:
    model = _model()
    model.add_mixin(Mixin.create(OTHER_SCHEME, "os_tpl"))

    ambiguous = model.resolve_mixin("os_tpl")
    missing = model.resolve_mixin("nothing")
    found = model.resolve_mixin("ipnetwork")

    assert ambiguous.status is ResolutionStatus.AMBIGUOUS
    assert ambiguous.category is None
    assert len(ambiguous.candidates) == 2
    assert missing.status is ResolutionStatus.NOT_FOUND
    assert missing.unwrap() is None
    assert found.found
    assert found.unwrap() is infrastructure.IPNETWORK_MIXIN


def test_identifier_and_term_lookups_agree_for_unique_terms() -> None:
    model = _model()

    for kind in model.kinds:
        assert model.find_kind(kind.identifier) is model.find_kind(kind.term)


def test_adding_same_identifier_replaces_category() -> None:
    model = _model()
    replacement = Kind.create(
        infrastructure.INFRASTRUCTURE_SCHEME,
        "compute",
        location="/vm/",
        parent=RESOURCE_KIND,
    )
    before = len(model)

    model.add_kind(replacement)

    assert len(model) == before
    assert model.find_kind("compute") is replacement


def test_collection_type_follows_inheritance_chain() -> None:
    model = _model()

    assert model.collection_type_of(infrastructure.COMPUTE_KIND) is CollectionType.RESOURCE
    assert model.collection_type_of(infrastructure.STORAGELINK_KIND) is CollectionType.LINK
    assert model.collection_type_of("networkinterface") is CollectionType.LINK
    assert model.collection_type_of("/storage/") is CollectionType.RESOURCE


def test_collection_type_walks_parents_known_to_the_model() -> None:
    model = _model()
    vm = Kind.create(OTHER_SCHEME, "vm", location="/vm/", parent=infrastructure.COMPUTE_KIND.identifier)
    model.add_kind(vm)

    assert vm.ancestors == frozenset({infrastructure.COMPUTE_KIND.identifier})
    assert model.collection_type_of(vm) is CollectionType.RESOURCE


def test_collection_type_is_unknown_without_core_root() -> None:
    model = Model()
    orphan = Kind.create(OTHER_SCHEME, "orphan", location="/orphan/")
    model.add_kind(orphan)

    assert model.collection_type_of(orphan) is None
    assert model.collection_type_of("missing") is None


def test_kind_cannot_be_its_own_ancestor() -> None:
    with pytest.raises(ValueError):
        Kind.create(OTHER_SCHEME, "loop", parent=f"{OTHER_SCHEME}loop")


def test_find_kind_by_location_prefers_longest_prefix() -> None:
    model = _model()

    assert model.find_kind_by_location("/link/storagelink/abc") is infrastructure.STORAGELINK_KIND
    assert model.find_kind_by_location("http://occi.example.org:11443/link/xyz") is LINK_KIND
    assert model.find_kind_by_location("/compute/1") is infrastructure.COMPUTE_KIND
    assert model.find_kind_by_location("/unknown/1") is None


def test_find_related_mixins_includes_transitive_relations() -> None:
    model = _model()
    debian = Mixin.create(OTHER_SCHEME, "debian", related=[infrastructure.OS_TPL_MIXIN])
    debian_lts = Mixin.create(OTHER_SCHEME, "debian_lts", related=[debian])
    unrelated = Mixin.create(OTHER_SCHEME, "small", related=[infrastructure.RESOURCE_TPL_MIXIN])
    for mixin in (debian, debian_lts, unrelated):
        model.add_mixin(mixin)

    related = model.find_related_mixins(infrastructure.OS_TPL_MIXIN.identifier)

    assert set(related) == {debian, debian_lts}
    assert model.find_related_mixins("nothing") == ()


def test_remove_category_returns_removed_value() -> None:
    model = _model()

    removed = model.remove_kind(infrastructure.STORAGE_KIND.identifier)

    assert removed is infrastructure.STORAGE_KIND
    assert model.find_kind("storage") is None
    assert model.remove_kind(infrastructure.STORAGE_KIND.identifier) is None


def test_is_identifier_distinguishes_terms() -> None:
    assert is_identifier(f"{CORE_SCHEME}resource")
    assert not is_identifier("resource")


def test_collection_keeps_links_before_resources() -> None:
    resource = Resource(id="vm1", kind=infrastructure.COMPUTE_KIND)
    link = Link(id="sl1", kind=infrastructure.STORAGELINK_KIND, target="/storage/1")

    collection = Collection.of([resource, link])
    collection.merge(Collection(resources=[Resource(id="vm2", kind=infrastructure.COMPUTE_KIND)]))

    assert [entity.id for entity in collection.entities()] == ["sl1", "vm1", "vm2"]
    assert len(collection) == 3
    assert resource.location == "/compute/vm1"
    assert link.identifier == infrastructure.STORAGELINK_KIND.identifier


def test_entity_requires_id_and_kind() -> None:
    with pytest.raises(ValueError):
        Resource(id="", kind=infrastructure.COMPUTE_KIND)
    with pytest.raises(ValueError):
        Resource(id="x", kind=None)  # type: ignore[arg-type]
