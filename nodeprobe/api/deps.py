"""Collaborators injected into API routes; tests replace them via dependency_overrides."""
from nodeprobe.modules.probe.config import ProbeConfig, get_config
from nodeprobe.modules.ssh import HopExecutor
from nodeprobe.registry import NodeRegistry, get_registry


def get_executor() -> HopExecutor:
    return HopExecutor(connect_timeout=get_config().connect_timeout)


def get_store() -> NodeRegistry:
    return get_registry()


def get_probe_config() -> ProbeConfig:
    return get_config()
