"""Plugin installation.

Every defined slot of a pipeline becomes one queued install task, followed by
a final task that closes the progress stream.  Because the queue is FIFO with
a single slot, installs from concurrent requests never overlap and the close
task always runs after this pipeline's installs.

Stream frames::

    install:start  {"slot", "package"}
    install:done   {"slot", "package", "output"}
    install:error  {"slot", "package", "message", "returncode"}
    install:skip   {"slot", "package"}          # after an earlier failure
"""

from __future__ import annotations

import asyncio
import shlex
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from loguru import logger

from pipeforge.daemon.errors import ProcessExecutionError
from pipeforge.daemon.execution.process import exec_async
from pipeforge.daemon.models.enums import EventType, PluginType

if TYPE_CHECKING:
    from pipeforge.daemon.execution.transport import ServerSentEmitter
    from pipeforge.daemon.models.pipeline import PipelineDefinition
    from pipeforge.daemon.queue import ExecutionQueue
    from pipeforge.daemon.settings import PipeforgeSettings


@dataclass
class _InstallRun:
    """Shared state for the install tasks of one pipeline."""

    emitter: ServerSentEmitter
    settings: PipeforgeSettings
    failed: bool = False


def build_install_command(template: str, package: str, target: str) -> str:
    """Render the install command template.  *package* is shell-quoted."""
    return template.format(package=shlex.quote(package), target=shlex.quote(target))


async def install_plugin(package: str, settings: PipeforgeSettings) -> str:
    """Install one plugin package into ``plugins_root``; return installer output."""
    settings.plugins_root.mkdir(parents=True, exist_ok=True)
    command = build_install_command(settings.install_command, package, str(settings.plugins_root))
    logger.info("Installing plugin {}", package)
    return await exec_async(command, cwd=settings.data_root, timeout=settings.install_timeout)


def schedule_install(
    pipeline: PipelineDefinition,
    queue: ExecutionQueue,
    emitter: ServerSentEmitter,
    settings: PipeforgeSettings,
) -> list[asyncio.Future]:
    """Enqueue install tasks for every defined slot, then the stream close.

    Returns the queue futures (one per slot, then the close task).
    """
    run = _InstallRun(emitter=emitter, settings=settings)
    futures = [queue.enqueue(partial(_install_slot, run, slot, package)) for slot, package, _ in pipeline.plugins()]
    futures.append(queue.enqueue(emitter.finish))
    logger.info("Pipeline {}: scheduled {} plugin installs", pipeline.name, len(futures) - 1)
    return futures


async def _install_slot(run: _InstallRun, slot: PluginType, package: str) -> None:
    frame = {"slot": str(slot), "package": package}
    if run.failed:
        run.emitter.emit(EventType.INSTALL_SKIP, frame)
        return

    run.emitter.emit(EventType.INSTALL_START, frame)
    try:
        output = await install_plugin(package, run.settings)
    except (ProcessExecutionError, OSError) as exc:
        run.failed = True
        logger.warning("Plugin install failed for {}: {}", package, exc)
        returncode = exc.returncode if isinstance(exc, ProcessExecutionError) else None
        run.emitter.emit(
            EventType.INSTALL_ERROR,
            {**frame, "message": str(exc), "returncode": returncode},
        )
        return
    run.emitter.emit(EventType.INSTALL_DONE, {**frame, "output": output})
