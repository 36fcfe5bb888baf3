from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from typing import Literal, Optional
import logging

from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.services.sync_service import SnapshotEvent, collection_documents, snapshot_hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])

Collection = Literal["products", "customers", "invoices"]


@router.get("/{collection}", response_model=SnapshotEvent)
def get_snapshot(
    collection: Collection,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """One-shot read of the full current snapshot of a collection"""
    latest = snapshot_hub.latest(business_id, collection)
    return SnapshotEvent(
        business_id=business_id,
        collection=collection,
        version=latest.version if latest else 0,
        documents=collection_documents(repos, business_id, collection),
    )


@router.get("/{collection}/stream")
async def stream_snapshots(
    collection: Collection,
    max_events: Optional[int] = Query(None, ge=1, description="Close the stream after this many snapshots"),
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """
    Subscribe to a collection as newline-delimited JSON.

    The first line is the current snapshot; a new full snapshot follows
    every committed change.
    """
    events = snapshot_hub.subscribe(
        business_id, collection,
        load=lambda: collection_documents(repos, business_id, collection),
    )
    # Registered and loaded here, while the repository dependency is still open
    first = await events.__anext__()
    logger.info(f"Snapshot subscriber attached to {business_id}/{collection}")

    async def event_lines():
        sent = 0
        try:
            yield first.model_dump_json() + "\n"
            sent += 1
            if max_events and sent >= max_events:
                return
            async for event in events:
                yield event.model_dump_json() + "\n"
                sent += 1
                if max_events and sent >= max_events:
                    break
        finally:
            await events.aclose()
            logger.info(f"Snapshot subscriber detached from {business_id}/{collection} after {sent} event(s)")

    return StreamingResponse(event_lines(), media_type="application/x-ndjson")
