"""
Scrape history endpoints.
"""

from fastapi import APIRouter, Depends, Query

from dpp_graph.api.dependencies import get_store
from dpp_graph.core.exceptions import ResourceNotFoundError
from dpp_graph.core.models import APIResponse
from dpp_graph.db import DocumentStore, document_to_dict

router = APIRouter()


@router.get("")
async def list_documents(
    limit: int = Query(10, ge=1, le=100),
    include_payload: bool = Query(False),
    store: DocumentStore = Depends(get_store),
) -> APIResponse:
    """Most recent scrapes first."""
    documents = await store.list_recent(limit)
    return APIResponse(
        data=[document_to_dict(d, include_payload=include_payload) for d in documents],
        meta={"count": len(documents), "limit": limit},
    )


@router.get("/stats")
async def document_stats(store: DocumentStore = Depends(get_store)) -> APIResponse:
    return APIResponse(data=await store.stats())


@router.get("/{document_id}")
async def get_document(document_id: int, store: DocumentStore = Depends(get_store)) -> APIResponse:
    document = await store.get(document_id)
    if document is None:
        raise ResourceNotFoundError("Document not found", {"id": document_id})
    return APIResponse(data=document_to_dict(document))


@router.delete("/{document_id}")
async def delete_document(document_id: int, store: DocumentStore = Depends(get_store)) -> APIResponse:
    if not await store.delete(document_id):
        raise ResourceNotFoundError("Document not found", {"id": document_id})
    return APIResponse(message="Document deleted", data={"id": document_id})
