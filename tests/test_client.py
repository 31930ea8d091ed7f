from __future__ import annotations

import json

import pytest

from occi_core.client import Client
from occi_core.config import ClientConfig
from occi_core.errors import AmbiguousIdentifierError, CommunicationError
from occi_core.http import basic_auth
from occi_core.model import Link, Resource

from conftest import INFRA, MODEL_DOCUMENT, MockServer, Recorded, Reply

COMPUTE_BODY = "\n".join(
    [
        f'Category: compute; scheme="{INFRA}"; class="kind"',
        'X-OCCI-Attribute: occi.core.id="vm1"',
        'X-OCCI-Attribute: occi.core.title="web"',
        "X-OCCI-Attribute: occi.compute.cores=2",
        "",
    ]
)
STORAGELINK_BODY = "\n".join(
    [
        f'Category: storagelink; scheme="{INFRA}"; class="kind"',
        'X-OCCI-Attribute: occi.core.id="sl1"',
        'X-OCCI-Attribute: occi.core.source="/compute/vm1"',
        'X-OCCI-Attribute: occi.core.target="/storage/disk1"',
        "",
    ]
)


def _serve_entities(server: MockServer) -> None:
    server.route(
        "GET",
        "/",
        body=(
            f"X-OCCI-Location: {server.url}/compute/vm1\n"
            f"X-OCCI-Location: {server.url}/link/storagelink/sl1\n"
        ),
    )
    server.route("GET", "/compute/", body="X-OCCI-Location: /compute/vm1\n")
    server.route("GET", "/compute/vm1", body=COMPUTE_BODY)
    server.route("GET", "/link/storagelink/", body="X-OCCI-Location: /link/storagelink/sl1\n")
    server.route("GET", "/link/storagelink/sl1", body=STORAGELINK_BODY)


def test_client_requires_endpoint_and_known_media_type() -> None:
    with pytest.raises(ValueError):
        Client(None)  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="unsupported media type"):
        Client("http://localhost", media_type="application/json")

    client = Client("http://localhost:8080/", media_type="text/occi; charset=utf-8")
    assert client.endpoint == "http://localhost:8080"
    assert client.media_type == "text/occi"
    assert not client.connected
    assert len(client.model) == 0


def test_operations_connect_lazily_once(occi_server: MockServer) -> None:
    _serve_entities(occi_server)
    client = Client(occi_server.url)
    assert occi_server.hits("HEAD") == []

    with client:
        first = client.list()
        second = client.list()

    assert first == second == [
        f"{occi_server.url}/compute/vm1",
        f"{occi_server.url}/link/storagelink/sl1",
    ]
    assert len(occi_server.hits("HEAD", "/-/")) == 1
    assert len(occi_server.hits("GET", "/-/")) == 1
    assert len(occi_server.hits("GET", "/")) == 2
    assert not client.connected


def test_autoconnect_loads_model(occi_server: MockServer) -> None:
    with Client(occi_server.url, autoconnect=True) as client:
        assert client.connected
        assert client.model.find_kind("compute") is not None
        [model_request] = occi_server.hits("GET", "/-/")
        assert model_request.headers["Accept"] == "text/plain"
        assert model_request.headers["User-Agent"] == "occi-client"


def test_list_by_type(occi_server: MockServer) -> None:
    _serve_entities(occi_server)

    with Client(occi_server.url) as client:
        assert client.list("compute") == ["/compute/vm1"]
        assert client.list(f"{INFRA}storagelink") == ["/link/storagelink/sl1"]
        with pytest.raises(CommunicationError, match="unknown resource type 'disk'"):
            client.list("disk")


def test_describe_everything_returns_links_first(occi_server: MockServer) -> None:
    _serve_entities(occi_server)

    with Client(occi_server.url) as client:
        entities = client.describe()

    assert [type(entity) for entity in entities] == [Link, Resource]
    link, resource = entities
    assert link.id == "sl1"
    assert link.target == "/storage/disk1"
    assert resource.id == "vm1"
    assert resource.title == "web"
    assert resource.attributes == {"occi.compute.cores": 2}


def test_describe_type_and_instance(occi_server: MockServer) -> None:
    _serve_entities(occi_server)

    with Client(occi_server.url) as client:
        [compute] = client.describe("compute")
        [link] = client.describe("storagelink")
        [same] = client.describe("/compute/vm1")
        [absolute] = client.describe(f"{occi_server.url}/compute/vm1")
        with pytest.raises(CommunicationError, match="unknown resource identifier"):
            client.describe("/unknown/1")
        with pytest.raises(CommunicationError, match="unknown resource type"):
            client.describe("nothing")

    assert isinstance(compute, Resource)
    assert isinstance(link, Link)
    assert same.id == absolute.id == "vm1"


def test_describe_fails_as_a_whole(occi_server: MockServer) -> None:
    _serve_entities(occi_server)
    occi_server.route("GET", "/link/storagelink/sl1", status=500, body="boom")

    with Client(occi_server.url) as client:
        with pytest.raises(CommunicationError, match="500"):
            client.describe()


def test_undecodable_response_becomes_communication_error(occi_server: MockServer) -> None:
    occi_server.route("GET", "/compute/", body="not a header line")

    with Client(occi_server.url) as client:
        with pytest.raises(CommunicationError) as excinfo:
            client.list("compute")

    assert excinfo.value.__cause__ is not None


def test_ambiguous_type_propagates(occi_server: MockServer) -> None:
    occi_server.route(
        "GET",
        "/-/",
        body=MODEL_DOCUMENT
        + 'Category: compute; scheme="http://occi.example.org/custom#"; class="kind"; '
        'rel="http://schemas.ogf.org/occi/core#resource"; location="/custom/compute/"\n',
    )

    with Client(occi_server.url) as client:
        with pytest.raises(AmbiguousIdentifierError):
            client.list("compute")


def test_create_returns_first_location(occi_server: MockServer) -> None:
    occi_server.route(
        "POST",
        "/compute/",
        status=201,
        body=f"X-OCCI-Location: {occi_server.url}/compute/new1\n",
    )

    with Client(occi_server.url) as client:
        compute = client.builder().build_compute()
        compute.title = "db"
        compute.set_attribute("occi.compute.cores", 4)
        location = client.create(compute)

    assert location == f"{occi_server.url}/compute/new1"
    [request] = occi_server.hits("POST", "/compute/")
    assert request.headers["Content-Type"] == "text/plain"
    lines = request.body.splitlines()
    assert lines[0] == f'Category: compute; scheme="{INFRA}"; class="kind"'
    assert f'X-OCCI-Attribute: occi.core.id="{compute.id}"' in lines
    assert "X-OCCI-Attribute: occi.compute.cores=4" in lines


def test_create_with_header_rendering(occi_server: MockServer) -> None:
    occi_server.route(
        "POST",
        "/compute/",
        status=201,
        headers={"Content-Type": "text/occi", "X-OCCI-Location": f"{occi_server.url}/compute/new3"},
    )

    with Client(occi_server.url) as client:
        client.media_type = "text/occi"
        location = client.create(client.builder().build_compute())

    assert location == f"{occi_server.url}/compute/new3"
    [request] = occi_server.hits("POST", "/compute/")
    assert request.headers["Category"] == f'compute; scheme="{INFRA}"; class="kind"'
    assert request.headers["Content-Type"] == "text/occi"
    assert request.body == ""


def test_create_accepts_bare_ok_with_location(occi_server: MockServer) -> None:
    occi_server.route(
        "POST",
        "/compute/",
        status=201,
        body="OK\n",
        headers={"Content-Type": "text/html", "Location": f"{occi_server.url}/compute/new2"},
    )

    with Client(occi_server.url) as client:
        location = client.create(client.builder().build_compute())

    assert location == f"{occi_server.url}/compute/new2"


def test_create_rejects_other_media_mismatch(occi_server: MockServer) -> None:
    occi_server.route(
        "POST",
        "/compute/",
        status=201,
        body="<html>created</html>",
        headers={"Content-Type": "text/html", "Location": f"{occi_server.url}/compute/new2"},
    )

    with Client(occi_server.url) as client:
        with pytest.raises(CommunicationError, match="unsupported media type"):
            client.create(client.builder().build_compute())


def test_create_failures(occi_server: MockServer) -> None:
    with Client(occi_server.url) as client:
        compute = client.builder().build_compute()

        occi_server.route("POST", "/compute/", status=201, body="")
        with pytest.raises(CommunicationError, match="no location returned"):
            client.create(compute)

        occi_server.route("POST", "/compute/", status=400, body="missing attribute")
        with pytest.raises(CommunicationError, match="400"):
            client.create(compute)


def test_delete_instance_and_kind(occi_server: MockServer) -> None:
    occi_server.route("DELETE", "/compute/vm1")
    occi_server.route("DELETE", "/compute/")

    with Client(occi_server.url) as client:
        assert client.delete("/compute/vm1") is True
        assert client.delete("compute") is True
        assert client.delete("/compute/gone") is False
        with pytest.raises(CommunicationError, match="unknown resource type"):
            client.delete("nothing")

    assert len(occi_server.hits("DELETE")) == 3


def test_trigger_posts_action(occi_server: MockServer) -> None:
    occi_server.route("POST", "/compute/vm1?action=stop")

    with Client(occi_server.url) as client:
        action = client.builder().build_action_instance("stop")
        action.set_attribute("method", "acpioff")
        assert client.trigger("/compute/vm1", action) is True
        assert client.trigger("compute", action) is False

    [request] = occi_server.hits("POST", "/compute/vm1?action=stop")
    assert request.body.splitlines() == [
        'Category: stop; scheme="http://schemas.ogf.org/occi/infrastructure/compute/action#"; '
        'class="action"',
        'X-OCCI-Attribute: method="acpioff"',
    ]
    assert occi_server.hits("POST", "/compute/?action=stop")


def test_refresh_reloads_model_without_authenticating(occi_server: MockServer) -> None:
    with Client(occi_server.url) as client:
        client.connect()
        assert client.model.find_kind("vm") is None

        occi_server.route(
            "GET",
            "/-/",
            body=MODEL_DOCUMENT
            + 'Category: vm; scheme="http://occi.example.org/custom#"; class="kind"; '
            f'rel="{INFRA}compute"; location="/vm/"\n',
        )
        client.refresh()

        assert client.model.find_kind("vm") is not None
        assert client.model.collection_type_of("vm") is not None
    assert len(occi_server.hits("HEAD", "/-/")) == 1
    assert len(occi_server.hits("GET", "/-/")) == 2


def test_refresh_connects_a_fresh_client(occi_server: MockServer) -> None:
    with Client(occi_server.url) as client:
        client.refresh()

        assert client.connected
        assert client.model.find_kind("compute") is not None
    assert len(occi_server.hits("HEAD", "/-/")) == 1
    assert len(occi_server.hits("GET", "/-/")) == 1


def test_keystone_token_is_sent_with_every_request(
    occi_server: MockServer, keystone_server: MockServer
) -> None:
    occi_server.route(
        "HEAD",
        "/-/",
        status=401,
        headers={"WWW-Authenticate": f"Keystone uri='{keystone_server.url}'"},
    )
    _serve_entities(occi_server)

    def tokens(request: Recorded) -> Reply:
        tenant = json.loads(request.body)["auth"].get("tenantName")
        token = "scoped" if tenant else "unscoped"
        return 200, {"Content-Type": "application/json"}, json.dumps({"access": {"token": {"id": token}}})

    keystone_server.handle_with("POST", "/v2.0/tokens", tokens)
    keystone_server.route(
        "GET",
        "/v2.0/tenants",
        body='{"tenants": [{"name": "fedcloud"}]}',
        headers={"Content-Type": "application/json"},
    )

    with Client(occi_server.url, basic_auth("user", "secret")) as client:
        client.list("compute")

    for request in (*occi_server.hits("GET", "/-/"), *occi_server.hits("GET", "/compute/")):
        assert request.headers["X-Auth-Token"] == "scoped"


def test_reconnect_reuses_keystone_token(
    occi_server: MockServer, keystone_server: MockServer
) -> None:
    def probe(request: Recorded) -> Reply:
        if request.headers.get("X-Auth-Token") == "scoped":
            return 200, {"Content-Type": "text/plain"}, ""
        return 401, {"WWW-Authenticate": f"Keystone uri='{keystone_server.url}'"}, ""

    occi_server.handle_with("HEAD", "/-/", probe)

    def tokens(request: Recorded) -> Reply:
        tenant = json.loads(request.body)["auth"].get("tenantName")
        token = "scoped" if tenant else "unscoped"
        return 200, {"Content-Type": "application/json"}, json.dumps({"access": {"token": {"id": token}}})

    keystone_server.handle_with("POST", "/v2.0/tokens", tokens)
    keystone_server.route(
        "GET",
        "/v2.0/tenants",
        body='{"tenants": [{"name": "fedcloud"}]}',
        headers={"Content-Type": "application/json"},
    )

    with Client(occi_server.url, basic_auth("user", "secret")) as client:
        client.connect()
        exchanged = len(keystone_server.hits("POST", "/v2.0/tokens"))
        client.connect()
        client.refresh()

    assert exchanged == 2
    assert len(keystone_server.hits("POST", "/v2.0/tokens")) == exchanged
    first, *later = occi_server.hits("HEAD", "/-/")
    assert "X-Auth-Token" not in first.headers
    assert later and all(request.headers["X-Auth-Token"] == "scoped" for request in later)
    models = occi_server.hits("GET", "/-/")
    assert len(models) == 3
    assert all(request.headers["X-Auth-Token"] == "scoped" for request in models)


def test_connection_failure_is_communication_error() -> None:
    client = Client("http://127.0.0.1:1", config=ClientConfig(timeout_seconds=1.0))

    with pytest.raises(CommunicationError):
        client.list()
    assert not client.connected
