"""JSON-file node store.

Node records live in a single JSON document keyed by id. Writes go through a
temporary file and are serialised with a lock, so concurrent probes can record
their last-checked time safely.
"""
import json
import logging
import os
import threading
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from nodeprobe.config import Config
from nodeprobe.errors import NodeNotFoundError, PersistenceError, PersistenceWriteError
from nodeprobe.modules.probe.models import NodeRecord

logger = logging.getLogger("nodeprobe.registry")

UPDATABLE_FIELDS = ("server_name", "hops", "type", "join_command", "certificate_key")


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


class NodeRegistry:
    """Node metadata store backed by a JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or Config.REGISTRY_PATH)
        self.lock = threading.RLock()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"next_id": 1, "nodes": {}}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read node store {self.path}: {e}") from e
        data.setdefault("next_id", 1)
        data.setdefault("nodes", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceWriteError("write", f"{self.path}: {e}") from e

    @staticmethod
    def _to_record(raw: Dict[str, Any]) -> NodeRecord:
        return NodeRecord(**raw)

    def list_all(self) -> List[NodeRecord]:
        with self.lock:
            nodes = self._load()["nodes"]
        return [self._to_record(raw) for _, raw in sorted(nodes.items(), key=lambda kv: int(kv[0]))]

    def list_by_infra(self, infra_id: int) -> List[NodeRecord]:
        return [node for node in self.list_all() if node.infra_id == infra_id]

    def list_by_type(self, node_type: str) -> List[NodeRecord]:
        return [node for node in self.list_all() if node.has_type(node_type)]

    def get(self, node_id: int) -> NodeRecord:
        with self.lock:
            raw = self._load()["nodes"].get(str(node_id))
        if raw is None:
            raise NodeNotFoundError(node_id)
        return self._to_record(raw)

    def find_by_hops(self, hops: List[Dict[str, Any]], infra_id: int) -> Optional[NodeRecord]:
        for node in self.list_by_infra(infra_id):
            if node.hops == hops:
                return node
        return None

    def create(
        self,
        server_name: str,
        node_type: str,
        infra_id: int,
        hops: Optional[List[Dict[str, Any]]] = None,
    ) -> int:
        """Create a node, or update the one with the same hops in the same infra.

        Returns:
            int: Id of the created or updated node
        """
        hops = hops or []
        with self.lock:
            existing = self.find_by_hops(hops, infra_id)
            if existing is not None:
                self.update(existing.id, server_name=server_name, type=node_type)
                logger.info("Node with identical hops exists (id=%d); updated instead", existing.id)
                return existing.id

            data = self._load()
            node_id = data["next_id"]
            timestamp = _now()
            record = NodeRecord(
                id=node_id,
                server_name=server_name,
                type=node_type,
                infra_id=infra_id,
                hops=hops,
                created_at=timestamp,
                updated_at=timestamp,
            )
            data["nodes"][str(node_id)] = asdict(record)
            data["next_id"] = node_id + 1
            self._save(data)
        logger.info("Created node %d (%s, type=%s)", node_id, server_name, node_type)
        return node_id

    def update(self, node_id: int, infra_id: int = 0, **fields: Any) -> NodeRecord:
        """Update a node. Empty values and infra_id 0 keep the current value."""
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown node fields: {', '.join(sorted(unknown))}")

        with self.lock:
            data = self._load()
            raw = data["nodes"].get(str(node_id))
            if raw is None:
                raise NodeNotFoundError(node_id)
            for key, value in fields.items():
                if value:
                    raw[key] = value
            if infra_id:
                raw["infra_id"] = infra_id
            raw["updated_at"] = _now()
            self._save(data)
        return self._to_record(raw)

    def delete(self, node_id: int) -> None:
        with self.lock:
            data = self._load()
            if data["nodes"].pop(str(node_id), None) is None:
                raise NodeNotFoundError(node_id)
            self._save(data)
        logger.info("Deleted node %d", node_id)

    def record_last_checked(self, node_id: int, checked_at: datetime) -> None:
        self._set_field(node_id, "last_checked", checked_at.isoformat(timespec="seconds"))

    def update_ha_status(self, node_id: int, ha: str) -> None:
        self._set_field(node_id, "ha", ha)

    def _set_field(self, node_id: int, key: str, value: Any) -> None:
        with self.lock:
            data = self._load()
            raw = data["nodes"].get(str(node_id))
            if raw is None:
                raise NodeNotFoundError(node_id)
            raw[key] = value
            self._save(data)


_registry: Optional[NodeRegistry] = None

def get_registry() -> NodeRegistry:
    """Get the process-wide node registry."""
    global _registry
    if _registry is None:
        _registry = NodeRegistry()
    return _registry
