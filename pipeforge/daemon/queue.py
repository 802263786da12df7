"""Plugin execution queue.

Serialises plugin work: tasks run one at a time, strictly in the order they
were enqueued.  One instance is owned by the daemon (created and closed in the
app lifespan) and injected into handlers; it is not a module-level global.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from pipeforge.daemon.errors import QueueClosedError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Task = Callable[[], Awaitable[Any] | Any]


@dataclass
class _Job:
    task: Task
    future: asyncio.Future[Any]


class ExecutionQueue:
    """FIFO queue with a single execution slot.

    ``enqueue`` returns a future that settles with the task's result or
    exception.  A failing task never stops the queue, and the queue itself
    neither logs nor transforms task failures: only the holder of the future
    sees them.  Cancelling the future does not cancel the task.

    The worker starts on the first ``enqueue`` (or an explicit ``start``) and
    runs until ``aclose``.
    """

    def __init__(self) -> None:
        self._jobs: asyncio.Queue[_Job] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._current: _Job | None = None
        self._closed = False

    # -- Mutation --------------------------------------------------------------

    def enqueue(self, task: Task) -> asyncio.Future[Any]:
        """Append *task* to the tail.  Must be called from the event loop."""
        if self._closed:
            msg = "execution queue is closed"
            raise QueueClosedError(msg)
        future = asyncio.get_running_loop().create_future()
        self._jobs.put_nowait(_Job(task, future))
        self.start()
        return future

    # -- Query -----------------------------------------------------------------

    @property
    def pending(self) -> int:
        """Tasks waiting for the execution slot (excludes the running one)."""
        return self._jobs.qsize()

    @property
    def running(self) -> bool:
        return self._current is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Start the worker if it is not already running (idempotent)."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run_forever(), name="execution-queue")

    async def join(self) -> None:
        """Wait until every enqueued task has finished."""
        await self._jobs.join()

    async def aclose(self, timeout: float | None = None) -> bool:
        """Refuse new tasks, drain for up to *timeout* seconds, then stop.

        Returns ``True`` if the queue drained.  Otherwise the running task is
        cancelled and futures of tasks that never started are cancelled.
        """
        self._closed = True
        drained = True
        if self._worker is not None and not self._worker.done():
            try:
                await asyncio.wait_for(self._jobs.join(), timeout=timeout)
            except TimeoutError:
                drained = False
                logger.warning(
                    "Queue: drain timed out after {}s with {} tasks pending",
                    timeout,
                    self.pending + int(self.running),
                )
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker

        while not self._jobs.empty():
            self._jobs.get_nowait().future.cancel()
            self._jobs.task_done()
        return drained

    # -- Worker ----------------------------------------------------------------

    async def _run_forever(self) -> None:
        while True:
            job = await self._jobs.get()
            self._current = job
            try:
                await self._execute(job)
            finally:
                self._current = None
                self._jobs.task_done()

    @staticmethod
    async def _execute(job: _Job) -> None:
        try:
            result = job.task()
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            job.future.cancel()
            # Only a cancelled worker stops; a task that merely raised
            # CancelledError counts as that task's failure.
            worker = asyncio.current_task()
            if worker is not None and worker.cancelling():
                raise
        except Exception as exc:
            if not job.future.done():
                job.future.set_exception(exc)
        else:
            if not job.future.done():
                job.future.set_result(result)
