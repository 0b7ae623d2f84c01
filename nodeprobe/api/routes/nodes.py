from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from nodeprobe.api.deps import get_store

router = APIRouter(prefix="/api/v1")

class NodeHop(BaseModel):
    host: str
    port: int = 22
    username: str

class NodeInput(BaseModel):
    server_name: str = ""
    type: str = ""
    infra_id: int = 0
    hops: List[NodeHop] = Field(default_factory=list)
    join_command: str = ""
    certificate_key: str = ""

@router.get("/servers")
def list_servers(
    infra_id: Optional[int] = Query(default=None),
    type: Optional[str] = Query(default=None),
    store=Depends(get_store),
):
    if infra_id is not None:
        nodes = store.list_by_infra(infra_id)
    elif type:
        nodes = store.list_by_type(type)
    else:
        nodes = store.list_all()
    return {"success": True, "servers": [asdict(node) for node in nodes]}

@router.get("/servers/{node_id}")
def get_server(node_id: int, store=Depends(get_store)):
    return {"success": True, "server": asdict(store.get(node_id))}

@router.post("/servers")
def create_server(req: NodeInput, store=Depends(get_store)):
    node_id = store.create(
        server_name=req.server_name,
        node_type=req.type,
        infra_id=req.infra_id,
        hops=[hop.model_dump() for hop in req.hops],
    )
    return {"success": True, "id": node_id}

@router.put("/servers/{node_id}")
def update_server(node_id: int, req: NodeInput, store=Depends(get_store)):
    node = store.update(
        node_id,
        infra_id=req.infra_id,
        server_name=req.server_name,
        type=req.type,
        hops=[hop.model_dump() for hop in req.hops],
        join_command=req.join_command,
        certificate_key=req.certificate_key,
    )
    return {"success": True, "server": asdict(node)}

@router.delete("/servers/{node_id}")
def delete_server(node_id: int, store=Depends(get_store)):
    store.delete(node_id)
    return {"success": True}
