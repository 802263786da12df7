"""FastAPI dependency injection for the execution queue, HTTP client and settings.

Usage in route handlers::

    @router.post("/things")
    async def do_thing(queue: PluginQueue, client: HttpClient) -> ...:
        ...

Dependencies raise HTTP 503 if the lifespan has not initialised the backing
object (e.g. during shutdown).
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, HTTPException, Request, status

from pipeforge.daemon.queue import ExecutionQueue
from pipeforge.daemon.settings import PipeforgeSettings, get_settings


def get_queue(request: Request) -> ExecutionQueue:
    """Return the daemon's execution queue."""
    queue: ExecutionQueue | None = request.app.state.queue
    if queue is None or queue.is_closed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Execution queue is not accepting work.",
        )
    return queue


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the shared HTTP client used for remote config fetches."""
    client: httpx.AsyncClient | None = request.app.state.http_client
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="HTTP client not initialised.",
        )
    return client


# -- Annotated type aliases for concise route signatures ---------------------

PluginQueue = Annotated[ExecutionQueue, Depends(get_queue)]
"""Annotated dependency: the single-slot plugin execution queue."""

HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
"""Annotated dependency: shared async HTTP client."""

Settings = Annotated[PipeforgeSettings, Depends(get_settings)]
"""Annotated dependency: cached service settings."""
