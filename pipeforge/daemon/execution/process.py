"""Subprocess execution for plugin tooling (installers, build steps)."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping, Sequence

import anyio

from pipeforge.daemon.errors import ProcessExecutionError

logger = logging.getLogger(__name__)


async def exec_async(
    command: str | Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> str:
    """Run *command* and return its standard output as text.

    A string command goes through the shell; a sequence is executed directly.
    Standard error is captured and only surfaced on failure.

    Raises ``ProcessExecutionError`` on non-zero exit, spawn failure, or when
    *timeout* seconds elapse (the process is killed).  ``returncode`` is
    negative when the process died from a signal and ``None`` when it never
    exited.
    """
    logger.debug("Executing %r (cwd=%s, timeout=%s)", command, cwd, timeout)
    try:
        with anyio.fail_after(timeout):
            result = await anyio.run_process(command, cwd=cwd, env=env, check=True)
    except subprocess.CalledProcessError as exc:
        raise ProcessExecutionError(
            command,
            returncode=exc.returncode,
            stderr=_decode(exc.stderr),
        ) from exc
    except TimeoutError as exc:
        raise ProcessExecutionError(command, reason=f"timed out after {timeout}s") from exc
    except OSError as exc:
        raise ProcessExecutionError(command, reason=f"failed to start: {exc}") from exc
    return _decode(result.stdout)


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""
