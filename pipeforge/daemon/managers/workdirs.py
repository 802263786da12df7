"""Working directory staging.

Workdirs live under ``{data_root}/workdirs/{workdir_id}``.  Copying one into
another goes through the execution queue so it never races a plugin task.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import CapacityLimiter
from loguru import logger

from pipeforge.daemon.errors import FileOperationError
from pipeforge.daemon.execution.fs import copy_dir
from pipeforge.daemon.models.enums import EventType

if TYPE_CHECKING:
    import asyncio

    from pipeforge.daemon.execution.transport import ServerSentEmitter
    from pipeforge.daemon.queue import ExecutionQueue
    from pipeforge.daemon.settings import PipeforgeSettings


class WorkdirNotFoundError(LookupError):
    """Raised when the source workdir does not exist."""


def workdir_path(settings: PipeforgeSettings, workdir_id: str) -> Path:
    return settings.workdirs_root / workdir_id


def resolve_copy_paths(source_id: str, target_id: str, settings: PipeforgeSettings) -> tuple[Path, Path]:
    """Map workdir ids to paths.  Raises ``WorkdirNotFoundError`` if the source is missing."""
    source = workdir_path(settings, source_id)
    if not source.is_dir():
        raise WorkdirNotFoundError(source_id)
    return source, workdir_path(settings, target_id)


def schedule_copy(
    source: Path,
    target: Path,
    queue: ExecutionQueue,
    emitter: ServerSentEmitter,
    settings: PipeforgeSettings,
) -> asyncio.Future:
    """Enqueue replication of *source* into *target*.  The task always finishes the stream."""
    limiter = CapacityLimiter(settings.copy_max_in_flight)
    return queue.enqueue(partial(_copy_task, source, target, limiter, emitter))


async def _copy_task(source: Path, target: Path, limiter: CapacityLimiter, emitter: ServerSentEmitter) -> None:
    emitter.emit(EventType.COPY_START, {"source": source.name, "target": target.name})
    try:
        await copy_dir(source, target, limiter=limiter)
    except* FileOperationError as group:
        errors = [{"path": exc.filename, "message": exc.strerror} for exc in group.exceptions]
        logger.warning("Workdir copy {} -> {} failed ({} errors)", source.name, target.name, len(errors))
        emitter.emit(EventType.COPY_ERROR, {"errors": errors})
    else:
        logger.info("Workdir copy {} -> {} done", source.name, target.name)
        emitter.emit(EventType.COPY_DONE, {"source": source.name, "target": target.name})
    finally:
        emitter.finish()
