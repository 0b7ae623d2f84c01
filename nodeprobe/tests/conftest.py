import pytest

from nodeprobe.errors import NodeNotFoundError, PersistenceWriteError
from nodeprobe.modules.probe import END_MARKER, START_MARKER, HopConfig, NodeRecord, ProbeConfig, set_config
from nodeprobe.modules.ssh import CommandResult


def wrap(*lines):
    """Status-script output bracketed by both markers."""
    return "\n".join([START_MARKER, *lines, END_MARKER]) + "\n"


class FakeExecutor:
    """Scripted hop executor: pops responses in order, then repeats ``default``.

    A response may be a string (captured output), None (no results) or an
    exception instance (raised).
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    def execute(self, hops, commands, timeout_ms):
        self.calls.append((tuple(hops), list(commands), timeout_ms))
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        if response is None:
            return []
        return [CommandResult(command=commands[0], output=response)]

    @property
    def commands(self):
        return [call[1][0] for call in self.calls]


class FakeStore:
    """In-memory node store."""

    def __init__(self, records=None, fail_writes=False):
        self.records = {record.id: record for record in records or []}
        self.fail_writes = fail_writes
        self.lookups = []
        self.last_checked = {}
        self.ha = {}

    def get(self, node_id):
        self.lookups.append(node_id)
        if node_id not in self.records:
            raise NodeNotFoundError(node_id)
        return self.records[node_id]

    def record_last_checked(self, node_id, checked_at):
        if self.fail_writes:
            raise PersistenceWriteError("write", "disk full")
        self.last_checked[node_id] = checked_at

    def update_ha_status(self, node_id, ha):
        if self.fail_writes:
            raise PersistenceWriteError("write", "disk full")
        self.ha[node_id] = ha


class RecordingSleep(list):
    def __call__(self, seconds):
        self.append(seconds)


@pytest.fixture(autouse=True)
def default_probe_config():
    set_config(ProbeConfig())
    yield
    set_config(None)


@pytest.fixture
def sleeps():
    return RecordingSleep()


@pytest.fixture
def hops():
    return (
        HopConfig(host="bastion.example.com", username="jump", credential="bastion-pass", order=0),
        HopConfig(host="10.0.0.5", username="admin", credential="target-pass", order=1),
    )


@pytest.fixture
def master_record():
    return NodeRecord(id=7, server_name="k8s-master-1", type="master", infra_id=1)
