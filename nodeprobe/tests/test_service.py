import logging
from datetime import datetime

import pytest

from nodeprobe.errors import ErrorType, PersistenceLookupError, RequestValidationError, TransportError
from nodeprobe.modules.probe import NodeRecord, ProbeReporter, Role, build_probe_request, probe_node, probe_single_host
from nodeprobe.modules.probe.service import resolve_hostname

from .conftest import FakeExecutor, FakeStore, wrap

HOPS = [
    {"host": "bastion.example.com", "port": 2222, "username": "jump", "password": "bastion-pass"},
    {"host": "10.0.0.5", "username": "admin", "credential": "target-pass"},
]

MASTER_OUTPUT = wrap("INSTALLED=true", "KUBELET_RUNNING=true", "IS_MASTER=true", "IS_WORKER=false", "NODE_REGISTERED=true")


def test_build_probe_request_orders_hops():
    request = build_probe_request(HOPS, "master", node_id=7)
    assert request.role == Role.CONTROL_PLANE
    assert [hop.order for hop in request.hops] == [0, 1]
    assert request.bastions[0].port == 2222
    assert request.bastions[0].credential == "bastion-pass"
    assert request.target.host == "10.0.0.5"
    assert request.target.port == 22


def test_empty_hops_are_rejected():
    with pytest.raises(RequestValidationError, match="At least one hop"):
        build_probe_request([], "ha")


def test_hop_without_host_is_rejected():
    with pytest.raises(RequestValidationError):
        build_probe_request([{"username": "admin"}], "ha")


def test_unsupported_role_is_rejected():
    with pytest.raises(RequestValidationError, match="Unsupported role"):
        build_probe_request(HOPS, "etcd")


def test_zero_node_id_means_absent():
    assert build_probe_request(HOPS, "ha", node_id=0).node_id is None


def test_load_balancer_probe(sleeps):
    executor = FakeExecutor(default=wrap("INSTALLED=true", "RUNNING=true"))
    request = build_probe_request(HOPS, "ha")

    result = probe_node(request, executor, sleep=sleeps)
    response = result.to_response()

    assert response["success"] is True
    assert response["status"] == {"installed": True, "running": True}
    assert result.attempts == 1
    assert result.output_valid
    assert sleeps == []


def test_control_plane_response_carries_membership(sleeps, master_record):
    store = FakeStore([master_record])
    executor = FakeExecutor(default=MASTER_OUTPUT)
    request = build_probe_request(HOPS, "master", node_id=master_record.id)

    response = probe_node(request, executor, store=store, sleep=sleeps).to_response()

    assert response["status"] == {"installed": True, "running": True, "isControlPlane": True, "isWorker": False}
    assert master_record.id in store.last_checked


def test_hostname_comes_from_node_record(sleeps, master_record):
    store = FakeStore([master_record])
    executor = FakeExecutor(default=MASTER_OUTPUT)
    request = build_probe_request(HOPS, "master", node_id=master_record.id, node_name="ignored")

    probe_node(request, executor, store=store, sleep=sleeps)
    assert "hostname=k8s-master-1" in executor.commands[0]


def test_hostname_falls_back_to_node_name_then_host():
    assert resolve_hostname(build_probe_request(HOPS, "worker", node_name="worker-3")) == "worker-3"
    assert resolve_hostname(build_probe_request(HOPS, "worker")) == "10.0.0.5"


def test_unresolvable_node_fails_before_transport(sleeps):
    executor = FakeExecutor(default=MASTER_OUTPUT)
    request = build_probe_request(HOPS, "master", node_id=99)

    with pytest.raises(PersistenceLookupError):
        probe_node(request, executor, store=FakeStore(), sleep=sleeps)
    assert executor.calls == []


def test_node_id_without_store_fails_before_transport(sleeps):
    executor = FakeExecutor(default=MASTER_OUTPUT)
    with pytest.raises(PersistenceLookupError):
        probe_node(build_probe_request(HOPS, "master", node_id=3), executor, sleep=sleeps)
    assert executor.calls == []


def test_only_target_credential_reaches_command(sleeps):
    executor = FakeExecutor(default=MASTER_OUTPUT)
    probe_node(build_probe_request(HOPS, "master", node_name="k8s-master-1"), executor, sleep=sleeps)

    command = executor.commands[0]
    assert "target-pass" in command
    assert "bastion-pass" not in command


def test_credentials_never_logged(sleeps, caplog):
    caplog.set_level(logging.DEBUG, logger="nodeprobe")
    executor = FakeExecutor(["banner only"], default=TransportError(
        ErrorType.AUTHENTICATION_FAILED, "Authentication failed for 10.0.0.5", host="10.0.0.5"))

    probe_node(build_probe_request(HOPS, "docker"), executor, sleep=sleeps)

    assert "echo [REDACTED] | sudo" in caplog.text
    assert "target-pass" not in caplog.text
    assert "bastion-pass" not in caplog.text


def test_unreachable_node_degrades_to_false(sleeps):
    executor = FakeExecutor(default=TransportError(ErrorType.CONNECTION_REFUSED, "Connection refused to 10.0.0.5"))
    result = probe_node(build_probe_request(HOPS, "master"), executor, sleep=sleeps)

    assert len(executor.calls) == 3
    assert result.to_response() == {
        "success": True,
        "status": {"installed": False, "running": False, "isControlPlane": False, "isWorker": False},
        "lastChecked": result.last_checked,
    }


def test_docker_fallback_through_probe(sleeps):
    executor = FakeExecutor(default="===START===\nDOCKER_INSTALLED=true\nDOCKER_RUNNING=true\n")
    result = probe_node(build_probe_request(HOPS, "docker"), executor, sleep=sleeps)

    assert len(executor.calls) == 10
    assert result.installed and result.running
    assert not result.output_valid


def test_failed_last_checked_write_still_succeeds(sleeps, master_record, caplog):
    store = FakeStore([master_record], fail_writes=True)
    executor = FakeExecutor(default=MASTER_OUTPUT)

    result = probe_node(build_probe_request(HOPS, "master", node_id=7), executor, store=store, sleep=sleeps)

    assert result.to_response()["success"] is True
    assert result.running
    assert "Failed to record last check for node 7" in caplog.text


def test_running_load_balancer_is_marked_ha(sleeps):
    store = FakeStore([NodeRecord(id=4, server_name="lb-1", type="ha", infra_id=1)])
    executor = FakeExecutor(default=wrap("INSTALLED=true", "RUNNING=true"))

    probe_node(build_probe_request(HOPS, "ha", node_id=4), executor, store=store, sleep=sleeps)
    assert store.ha == {4: "Y"}


def test_stopped_load_balancer_is_not_marked_ha(sleeps):
    store = FakeStore([NodeRecord(id=4, server_name="lb-1", type="ha", infra_id=1)])
    executor = FakeExecutor(default=wrap("INSTALLED=true", "RUNNING=false"))

    probe_node(build_probe_request(HOPS, "ha", node_id=4), executor, store=store, sleep=sleeps)
    assert store.ha == {}
    assert 4 in store.last_checked


def test_last_checked_format(sleeps):
    reporter = ProbeReporter(clock=lambda: datetime(2024, 1, 2, 3, 4, 5))
    executor = FakeExecutor(default=wrap("INSTALLED=true"))

    result = probe_node(build_probe_request(HOPS, "worker"), executor, sleep=sleeps, reporter=reporter)
    assert result.to_response()["lastChecked"] == "2024-01-02 03:04:05"


def test_probe_single_host(sleeps):
    executor = FakeExecutor(default=wrap("INSTALLED=true", "KUBELET_RUNNING=true"))
    result = probe_single_host("10.0.0.9", 22, "admin", "pw", "worker", executor=executor, sleep=sleeps)

    assert result.running
    assert len(executor.calls[0][0]) == 1
    assert executor.calls[0][0][0].host == "10.0.0.9"
