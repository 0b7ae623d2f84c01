import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from nodeprobe.errors import NodeProbeError
from nodeprobe.modules.probe import build_probe_request, get_config, probe_node
from nodeprobe.modules.ssh import HopExecutor
from nodeprobe.registry import get_registry

logger = logging.getLogger("nodeprobe.commands.status")

app = typer.Typer()


def parse_hop(value: str) -> Dict[str, Any]:
    """Parse ``user@host[:port]`` into a hop dict."""
    username, sep, address = value.partition("@")
    if not sep or not username or not address:
        raise typer.BadParameter(f"Hop must look like user@host[:port], got {value!r}")
    host, _, port = address.partition(":")
    if port and not port.isdigit():
        raise typer.BadParameter(f"Invalid port in hop {value!r}")
    return {"host": host, "port": int(port) if port else 22, "username": username}


def load_hops_file(path: Path) -> List[Dict[str, Any]]:
    """Load hops from YAML: either a list or a mapping with a ``hops`` key."""
    if not path.exists():
        raise FileNotFoundError(f"Hops file not found at {path}")
    with open(path, "r") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("hops", [])
    if not isinstance(data, list):
        raise ValueError(f"Invalid hops file format: expected list, got {type(data).__name__}")
    return data


def _prompt_credentials(hops: List[Dict[str, Any]]) -> None:
    for hop in hops:
        if hop.get("credential") or hop.get("password"):
            continue
        hop["credential"] = typer.prompt(
            f"Password for {hop['username']}@{hop['host']}",
            hide_input=True,
            default="",
            show_default=False,
        )


@app.command("node")
def status_node(
    role: str = typer.Option(..., "--role", "-r", help="Role to probe: ha, master, worker or docker"),
    hop: List[str] = typer.Option(None, "--hop", help="Hop as user@host[:port]; repeat in order, target last"),
    hops_file: Optional[Path] = typer.Option(None, "--hops-file", help="YAML file listing the hops"),
    node_id: Optional[int] = typer.Option(None, "--node-id", help="Registered node id"),
    node_name: Optional[str] = typer.Option(None, "--node-name", help="Node name registered in Kubernetes"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response body"),
):
    """Check whether a node's role software is installed and running."""
    try:
        hops = load_hops_file(hops_file) if hops_file else [parse_hop(h) for h in hop or []]
        _prompt_credentials(hops)
        request = build_probe_request(hops, role, node_id=node_id, node_name=node_name)

        config = get_config()
        executor = HopExecutor(connect_timeout=config.connect_timeout)
        store = get_registry() if request.node_id else None
        result = probe_node(request, executor, store=store, config=config)
    except (NodeProbeError, FileNotFoundError, ValueError) as e:
        typer.echo(f"❌ Status check failed: {e}", err=True)
        logger.debug("Status check failed", exc_info=True)
        raise typer.Exit(1)

    response = result.to_response()
    if as_json:
        typer.echo(json.dumps(response, indent=2))
        return

    status = response["status"]
    typer.echo(f"📡 {request.target.host} ({request.role.value}) checked at {response['lastChecked']}")
    for key, value in status.items():
        typer.echo(f"  {key}: {'✅' if value else '❌'}")
    if not result.output_valid:
        typer.echo(f"⚠️  No valid output after {result.attempts} attempt(s); status is a conservative default")
