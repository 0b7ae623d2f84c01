import json
from dataclasses import asdict
from typing import List, Optional

import typer

from nodeprobe.commands.status import parse_hop
from nodeprobe.errors import NodeProbeError
from nodeprobe.registry import get_registry

app = typer.Typer()


def _fail(message: str) -> None:
    typer.echo(f"❌ {message}", err=True)
    raise typer.Exit(1)


@app.command("list")
def list_nodes(
    infra_id: Optional[int] = typer.Option(None, "--infra-id", help="Only nodes in this infra"),
    node_type: Optional[str] = typer.Option(None, "--type", help="Only nodes with this type"),
):
    """List registered nodes."""
    store = get_registry()
    try:
        if infra_id is not None:
            nodes = store.list_by_infra(infra_id)
        elif node_type:
            nodes = store.list_by_type(node_type)
        else:
            nodes = store.list_all()
    except NodeProbeError as e:
        _fail(str(e))

    if not nodes:
        typer.echo("No nodes registered.")
        return
    for node in nodes:
        route = " -> ".join(f"{h['username']}@{h['host']}:{h.get('port', 22)}" for h in node.hops)
        typer.echo(f"{node.id:>4}  {node.server_name:<24} {node.type:<14} infra={node.infra_id}  {route}")


@app.command("get")
def get_node(node_id: int = typer.Option(..., "--id", help="Node id")):
    """Show one node as JSON."""
    try:
        node = get_registry().get(node_id)
    except NodeProbeError as e:
        _fail(str(e))
    typer.echo(json.dumps(asdict(node), indent=2))


@app.command("add")
def add_node(
    name: str = typer.Option(..., "--name", help="Node name"),
    node_type: str = typer.Option(..., "--type", help="Node type, e.g. master or master,ha"),
    infra_id: int = typer.Option(..., "--infra-id", help="Infra id"),
    hop: List[str] = typer.Option(None, "--hop", help="Hop as user@host[:port]; repeat in order, target last"),
):
    """Register a node. Hops are stored without credentials."""
    try:
        node_id = get_registry().create(name, node_type, infra_id, hops=[parse_hop(h) for h in hop or []])
    except NodeProbeError as e:
        _fail(str(e))
    typer.echo(f"✅ Node {name} registered with id {node_id}")


@app.command("delete")
def delete_node(node_id: int = typer.Option(..., "--id", help="Node id")):
    """Remove a node from the registry."""
    try:
        get_registry().delete(node_id)
    except NodeProbeError as e:
        _fail(str(e))
    typer.echo(f"🗑️  Node {node_id} deleted")
