import pytest
from fastapi.testclient import TestClient

from nodeprobe.api import deps
from nodeprobe.api.main import app
from nodeprobe.config import Config
from nodeprobe.errors import ErrorType, TransportError
from nodeprobe.modules.probe import NodeRecord, ProbeConfig
from nodeprobe.registry import NodeRegistry

from .conftest import FakeExecutor, FakeStore, wrap

HEADERS = {"X-API-Key": Config.API_KEY}

BODY = {
    "hops": [
        {"host": "bastion.example.com", "port": 22, "username": "jump", "credential": "bastion-pass"},
        {"host": "10.0.0.5", "port": 22, "username": "admin", "password": "target-pass"},
    ],
    "role": "master",
    "nodeId": 7,
}


@pytest.fixture
def executor():
    return FakeExecutor(default=wrap(
        "INSTALLED=true", "KUBELET_RUNNING=true", "IS_MASTER=true", "IS_WORKER=false", "NODE_REGISTERED=true"))


@pytest.fixture
def store():
    return FakeStore([NodeRecord(id=7, server_name="k8s-master-1", type="master", infra_id=1)])


@pytest.fixture
def client(executor, store):
    # No delays between attempts in API tests
    config = ProbeConfig(retry_delay=0)
    app.dependency_overrides[deps.get_executor] = lambda: executor
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_probe_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_requests_without_api_key_are_rejected(client, executor):
    response = client.post("/api/v1/server/status", json=BODY)
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Unauthorized"}
    assert executor.calls == []


def test_openapi_is_public(client):
    assert client.get("/openapi.json").status_code == 200


def test_status_probe(client, executor, store):
    response = client.post("/api/v1/server/status", json=BODY, headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == {"installed": True, "running": True, "isControlPlane": True, "isWorker": False}
    assert len(body["lastChecked"]) == len("2024-01-01 00:00:00")
    assert "hostname=k8s-master-1" in executor.commands[0]
    assert "target-pass" in executor.commands[0]
    assert 7 in store.last_checked


def test_status_accepts_type_alias(client):
    body = {"hops": BODY["hops"], "type": "ha"}
    response = client.post("/api/v1/server/status", json=body, headers=HEADERS)

    assert response.status_code == 200
    assert set(response.json()["status"]) == {"installed", "running"}


def test_empty_hops_rejected(client, executor):
    response = client.post("/api/v1/server/status", json={"hops": [], "role": "ha"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "At least one hop is required"}
    assert executor.calls == []


def test_unsupported_role_rejected(client, executor):
    response = client.post("/api/v1/server/status", json={**BODY, "role": "etcd"}, headers=HEADERS)
    assert response.status_code == 400
    assert "Unsupported role" in response.json()["error"]
    assert executor.calls == []


def test_malformed_body_rejected(client):
    response = client.post("/api/v1/server/status", json={"hops": "nope"}, headers=HEADERS)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid request body"}


def test_unknown_node_fails_without_transport(client, executor):
    response = client.post("/api/v1/server/status", json={**BODY, "nodeId": 99}, headers=HEADERS)

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "99" in response.json()["error"]
    assert executor.calls == []


def test_unreachable_node_still_succeeds(client, executor):
    executor.default = TransportError(ErrorType.CONNECTION_REFUSED, "Connection refused to 10.0.0.5")
    response = client.post("/api/v1/server/status", json=BODY, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["status"]["running"] is False
    assert len(executor.calls) == 3


@pytest.fixture
def registry_client(tmp_path):
    registry = NodeRegistry(tmp_path / "nodes.json")
    app.dependency_overrides[deps.get_store] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_server_crud(registry_client):
    node = {
        "server_name": "k8s-master-1",
        "type": "master,ha",
        "infra_id": 1,
        "hops": [{"host": "10.0.0.5", "port": 22, "username": "admin", "password": "ignored"}],
    }
    created = registry_client.post("/api/v1/servers", json=node, headers=HEADERS)
    assert created.status_code == 200
    node_id = created.json()["id"]

    fetched = registry_client.get(f"/api/v1/servers/{node_id}", headers=HEADERS).json()["server"]
    assert fetched["hops"] == [{"host": "10.0.0.5", "port": 22, "username": "admin"}]

    listed = registry_client.get("/api/v1/servers", params={"type": "ha"}, headers=HEADERS).json()
    assert [s["id"] for s in listed["servers"]] == [node_id]

    updated = registry_client.put(
        f"/api/v1/servers/{node_id}", json={"server_name": "k8s-master-2"}, headers=HEADERS).json()
    assert updated["server"]["server_name"] == "k8s-master-2"
    assert updated["server"]["type"] == "master,ha"

    assert registry_client.delete(f"/api/v1/servers/{node_id}", headers=HEADERS).json() == {"success": True}
    missing = registry_client.get(f"/api/v1/servers/{node_id}", headers=HEADERS)
    assert missing.status_code == 404
    assert missing.json()["success"] is False
