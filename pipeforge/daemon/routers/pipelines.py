"""Pipeline endpoints (RPC-style).

Thin HTTP adapter -- delegates to the config resolver and plugin manager.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException, status
from pydantic import ValidationError
from sse_starlette import EventSourceResponse

from pipeforge.daemon.deps import HttpClient, PluginQueue, Settings
from pipeforge.daemon.errors import FileOperationError, InvalidPluginReferenceError, UnsupportedProtocolError
from pipeforge.daemon.execution.config import resolve_pipeline
from pipeforge.daemon.execution.transport import ServerSentEmitter
from pipeforge.daemon.managers.plugins import schedule_install
from pipeforge.daemon.models.api import PipelineSource
from pipeforge.daemon.models.pipeline import PipelineDefinition

router = APIRouter(prefix="/pipelines", tags=["pipelines"])


async def _resolve(body: PipelineSource, client: httpx.AsyncClient) -> PipelineDefinition:
    """Resolve the request's config, mapping resolver errors to HTTP errors."""
    try:
        return await resolve_pipeline(body.config, http_client=client)
    except (UnsupportedProtocolError, InvalidPluginReferenceError) as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None
    except ValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=f"Invalid pipeline config: {exc}") from None
    except FileOperationError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Config not readable: {exc.filename}") from None
    except httpx.HTTPError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=f"Config fetch failed: {exc}") from None


@router.post("/resolve", response_model=PipelineDefinition, response_model_by_alias=True)
async def handle_resolve(body: PipelineSource, client: HttpClient) -> PipelineDefinition:
    """Resolve a config reference into a pipeline definition."""
    return await _resolve(body, client)


@router.post("/install")
async def handle_install(
    body: PipelineSource,
    client: HttpClient,
    queue: PluginQueue,
    settings: Settings,
) -> EventSourceResponse:
    """Install every plugin of a pipeline, streaming progress as SSE."""
    pipeline = await _resolve(body, client)
    emitter = ServerSentEmitter(high_water_mark=settings.sse_high_water_mark)
    schedule_install(pipeline, queue, emitter, settings)
    return EventSourceResponse(emitter)
