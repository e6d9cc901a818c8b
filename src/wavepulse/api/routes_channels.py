"""Client side of the UI-state bridge: push snapshots, pick up and answer pending requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from wavepulse.api.dependencies import get_request_store, get_snapshot_store
from wavepulse.models.schemas import PendingRequestModel, RequestResultPayload, SnapshotPayload
from wavepulse.observability.logger import get_logger
from wavepulse.storage.memory_store import PendingRequestStore, SnapshotStore

logger = get_logger("routes_channels")

router = APIRouter(prefix="/channels")


@router.post("/{channel_id}/snapshot")
async def push_snapshot(
    channel_id: str,
    payload: SnapshotPayload,
    snapshots: SnapshotStore = Depends(get_snapshot_store),
) -> dict:
    fields = payload.model_dump(exclude_unset=True)
    snapshot = snapshots.update(channel_id, **fields)
    logger.info("snapshot_received", channel_id=channel_id, fields=sorted(fields))
    return {"channelId": channel_id, "updatedAt": snapshot.updated_at}


@router.get("/{channel_id}/requests", response_model=list[PendingRequestModel])
async def list_requests(
    channel_id: str,
    requests: PendingRequestStore = Depends(get_request_store),
) -> list[PendingRequestModel]:
    return [
        PendingRequestModel(request_id=r.request_id, kind=r.kind, payload=r.payload)
        for r in requests.pending_for(channel_id)
    ]


@router.post("/{channel_id}/requests/{request_id}/result")
async def submit_result(
    channel_id: str,
    request_id: str,
    payload: RequestResultPayload,
    requests: PendingRequestStore = Depends(get_request_store),
) -> dict:
    pending = requests.get(request_id)
    if pending is None or pending.channel_id != channel_id:
        raise HTTPException(status_code=404, detail=f"Unknown request: {request_id}")
    requests.complete(request_id, result=payload.result, error=payload.error)
    logger.info("request_result_received", channel_id=channel_id, request_id=request_id)
    return {"requestId": request_id, "completed": True}
