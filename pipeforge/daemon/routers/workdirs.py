"""Workdir endpoints (RPC-style)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sse_starlette import EventSourceResponse

from pipeforge.daemon.deps import PluginQueue, Settings
from pipeforge.daemon.execution.transport import ServerSentEmitter
from pipeforge.daemon.managers.workdirs import WorkdirNotFoundError, resolve_copy_paths, schedule_copy
from pipeforge.daemon.models.api import WorkdirCopyRequest

router = APIRouter(prefix="/workdirs", tags=["workdirs"])


@router.post("/copy")
async def handle_copy(body: WorkdirCopyRequest, queue: PluginQueue, settings: Settings) -> EventSourceResponse:
    """Replicate one workdir into another, streaming progress as SSE."""
    if body.source == body.target:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="source and target must differ.")
    try:
        source, target = resolve_copy_paths(body.source, body.target, settings)
    except WorkdirNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workdir '{body.source}' not found.") from None

    emitter = ServerSentEmitter(high_water_mark=settings.sse_high_water_mark)
    schedule_copy(source, target, queue, emitter, settings)
    return EventSourceResponse(emitter)
