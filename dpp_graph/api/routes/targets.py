"""
Crawl target endpoints.
"""

from fastapi import APIRouter, Depends, status

from dpp_graph.api.dependencies import get_store
from dpp_graph.api.schemas import TargetCreate
from dpp_graph.core.models import APIResponse
from dpp_graph.db import DocumentStore, target_to_dict

router = APIRouter()


@router.get("")
async def list_targets(store: DocumentStore = Depends(get_store)) -> APIResponse:
    targets = await store.list_targets()
    return APIResponse(data=[target_to_dict(t) for t in targets], meta={"count": len(targets)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_target(request: TargetCreate, store: DocumentStore = Depends(get_store)) -> APIResponse:
    target = await store.add_target(request.name, request.base_url, request.notes)
    return APIResponse(message="Crawl target added", data=target_to_dict(target))
