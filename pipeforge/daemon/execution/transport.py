"""Progress delivery over server-sent events.

A ``ServerSentEmitter`` is bound to exactly one client response.  Producers
(queued plugin tasks) call ``emit``; the HTTP layer hands the emitter itself to
``sse_starlette.EventSourceResponse``, which iterates it and writes frames to
the socket::

    emitter = ServerSentEmitter()
    queue.enqueue(partial(work, emitter))   # work() calls emitter.finish()
    return EventSourceResponse(emitter)

Every stream starts with ``session: start`` and ends with ``session: close``.
Frames are buffered in memory between producer and consumer; nothing is
retried or resent.
"""

from __future__ import annotations

import json
import math
from collections.abc import AsyncIterator
from typing import Any

import anyio
from loguru import logger
from sse_starlette import ServerSentEvent

from pipeforge.daemon.models.enums import EventType, SessionState

DEFAULT_HIGH_WATER_MARK = 16


class ServerSentEmitter:
    """Write side of one SSE session.

    ``emit`` never blocks.  Its return value is a back-pressure hint: ``False``
    once the number of frames waiting for the client reaches
    ``high_water_mark`` (the frame is still queued), or when the session is
    finished or the client has gone away (the frame is dropped).
    """

    def __init__(self, high_water_mark: int = DEFAULT_HIGH_WATER_MARK) -> None:
        self.high_water_mark = high_water_mark
        self._send, self._receive = anyio.create_memory_object_stream[ServerSentEvent](max_buffer_size=math.inf)
        self._closed = False
        self.emit(EventType.SESSION, SessionState.START)

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: str, data: Any) -> bool:
        """Queue one ``event`` frame.  Strings are sent as-is, other data as JSON."""
        if self._closed:
            logger.debug("SSE: dropped {} frame, session already finished", event)
            return False
        payload = str(data) if isinstance(data, str) else json.dumps(data)
        try:
            self._send.send_nowait(ServerSentEvent(data=payload, event=str(event)))
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            logger.debug("SSE: client gone, closing session")
            self._close()
            return False
        return self._send.statistics().current_buffer_used < self.high_water_mark

    def finish(self) -> None:
        """Emit ``session: close`` and detach.  Later calls are no-ops."""
        if self._closed:
            return
        self.emit(EventType.SESSION, SessionState.CLOSE)
        self._close()

    def _close(self) -> None:
        self._closed = True
        self._send.close()

    # -- Read side (consumed by EventSourceResponse) ---------------------------

    async def __aiter__(self) -> AsyncIterator[ServerSentEvent]:
        async with self._receive:
            async for frame in self._receive:
                yield frame
