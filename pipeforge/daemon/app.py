from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger
from sse_starlette.sse import AppStatus

from pipeforge.daemon.log import setup_logging
from pipeforge.daemon.queue import ExecutionQueue
from pipeforge.daemon.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    logger.info("Pipeline daemon starting (host={}, port={})", settings.host, settings.port)
    logger.info("Data root: {}", settings.data_root)

    # -- Execution queue -------------------------------------------------------
    _app.state.queue = ExecutionQueue()
    _app.state.queue.start()
    logger.info("ExecutionQueue: started (concurrency=1)")

    # -- HTTP client (remote config fetches) -----------------------------------
    _app.state.http_client = httpx.AsyncClient(timeout=settings.config_fetch_timeout)

    # -- SSE -------------------------------------------------------------------
    # Let progress streams finish naturally on shutdown instead of being cut
    # off; queued tasks always close their stream.
    AppStatus.disable_automatic_graceful_drain()

    yield

    # -- Shutdown --------------------------------------------------------------
    queue: ExecutionQueue = _app.state.queue
    logger.info("Pipeline daemon shutting down (pending={}, running={})", queue.pending, queue.running)

    # 1. Refuse new work and let queued plugin tasks drain.
    drained = await queue.aclose(timeout=settings.graceful_shutdown_timeout)
    if not drained:
        logger.warning("ExecutionQueue: cancelled remaining tasks after timeout")

    # 2. Signal SSE streams to close.  Must happen AFTER the drain so that
    #    streams can deliver their final session frame.
    AppStatus.should_exit = True
    logger.info("SSE: signalled streams to close")

    await _app.state.http_client.aclose()
    _app.state.http_client = None


app = FastAPI(title="Pipeforge Daemon", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from pipeforge.daemon.routers.pipelines import router as pipelines_router  # noqa: E402
from pipeforge.daemon.routers.workdirs import router as workdirs_router  # noqa: E402

api.include_router(pipelines_router)
api.include_router(workdirs_router)

app.include_router(api)
