import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from nodeprobe.api.deps import get_executor, get_probe_config, get_store
from nodeprobe.modules.probe import build_probe_request, probe_node

logger = logging.getLogger("nodeprobe.api.status")

router = APIRouter(prefix="/api/v1")

class HopInput(BaseModel):
    host: str
    port: int = 22
    username: str
    credential: str = Field(
        default="",
        validation_alias=AliasChoices("credential", "password"),
        repr=False,
    )

class StatusRequest(BaseModel):
    hops: List[HopInput] = Field(default_factory=list)
    role: str = Field(validation_alias=AliasChoices("role", "type"))
    node_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("nodeId", "id", "node_id"))
    node_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("nodeName", "node_name"))

@router.post("/server/status")
def server_status(
    req: StatusRequest,
    executor=Depends(get_executor),
    store=Depends(get_store),
    config=Depends(get_probe_config),
):
    """Check whether the node's role software is installed and running."""
    logger.info("[STATUS] role=%s, node_id=%s, hops=%d", req.role, req.node_id, len(req.hops))
    request = build_probe_request(
        [hop.model_dump() for hop in req.hops],
        req.role,
        node_id=req.node_id,
        node_name=req.node_name,
    )
    result = probe_node(request, executor, store=store, config=config)
    return result.to_response()
