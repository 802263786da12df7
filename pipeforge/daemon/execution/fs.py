"""Working-directory replication.

``copy_dir`` reproduces a filesystem subtree entry by entry:

- **directory**: created (with parents), children copied concurrently
- **regular file / char device / block device**: bytes cloned with the Linux
  ``FICLONE`` ioctl (copy-on-write on btrfs, XFS, ...), falling back to a
  plain copy, then the source permission bits are applied
- **symbolic link**: recreated with the verbatim link target
- **anything else** (FIFO, socket): skipped

Blocking calls run in worker threads.  A single ``CapacityLimiter`` is shared
across the whole recursion so a very wide tree never holds more than
``max_in_flight`` file operations at once.

Failures are path-scoped ``FileOperationError`` instances.  When children of a
directory fail, every failure is collected (in sorted child order, nested
groups flattened) and raised together as one ``ExceptionGroup``.  Nothing
already copied is cleaned up.
"""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
import shutil
import stat
from functools import partial
from typing import TYPE_CHECKING

from anyio import CapacityLimiter, to_thread

from pipeforge.daemon.errors import FileOperationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT = 64

_FICLONE: int | None = getattr(fcntl, "FICLONE", None)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def copy_dir(
    src: str | os.PathLike[str],
    dest: str | os.PathLike[str],
    *,
    limiter: CapacityLimiter | None = None,
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
) -> None:
    """Recursively replicate *src* into *dest*.

    Parameters
    ----------
    src:
        Entry to copy.  Symbolic links are copied as links, never followed.
    dest:
        Destination path.  Missing parent directories are created for
        directory entries only.
    limiter:
        Shared limiter for worker-thread file operations.  Created from
        ``max_in_flight`` when omitted.

    Raises
    ------
    FileOperationError:
        *src* itself could not be inspected or copied.
    ExceptionGroup:
        One or more entries below a directory failed; holds every
        ``FileOperationError``.
    """
    if limiter is None:
        limiter = CapacityLimiter(max_in_flight)
    await _copy_entry(os.fspath(src), os.fspath(dest), limiter)


# ---------------------------------------------------------------------------
# Entry dispatch
# ---------------------------------------------------------------------------


async def _copy_entry(src: str, dest: str, limiter: CapacityLimiter) -> None:
    st = await _run(os.lstat, src, path=src, limiter=limiter)
    mode = st.st_mode

    if stat.S_ISDIR(mode):
        await _copy_directory(src, dest, limiter)
    elif stat.S_ISREG(mode) or stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        await _run(_clone_file, src, dest, path=src, limiter=limiter)
        await _run(os.chmod, dest, stat.S_IMODE(mode), path=dest, limiter=limiter)
    elif stat.S_ISLNK(mode):
        target = await _run(os.readlink, src, path=src, limiter=limiter)
        await _run(os.symlink, target, dest, path=dest, limiter=limiter)
    else:
        logger.debug("Skipping unsupported entry %s (mode=%o)", src, mode)


async def _copy_directory(src: str, dest: str, limiter: CapacityLimiter) -> None:
    await _run(partial(os.makedirs, dest, exist_ok=True), path=dest, limiter=limiter)
    names = sorted(await _run(os.listdir, src, path=src, limiter=limiter))

    results = await asyncio.gather(
        *(_copy_entry(os.path.join(src, name), os.path.join(dest, name), limiter) for name in names),
        return_exceptions=True,
    )

    errors: list[Exception] = []
    for result in results:
        if isinstance(result, ExceptionGroup):
            errors.extend(result.exceptions)
        elif isinstance(result, Exception):
            errors.append(result)
        elif isinstance(result, BaseException):
            raise result
    if errors:
        msg = f"failed to copy {len(errors)} entries from {src}"
        raise ExceptionGroup(msg, errors)


# ---------------------------------------------------------------------------
# Sync helpers (run in thread pool)
# ---------------------------------------------------------------------------


async def _run[T](func: Callable[..., T], *args: object, path: str, limiter: CapacityLimiter) -> T:
    """Run a blocking filesystem call, binding any ``OSError`` to *path*."""
    try:
        return await to_thread.run_sync(partial(func, *args), limiter=limiter)
    except FileOperationError:
        raise
    except OSError as exc:
        raise FileOperationError.from_os_error(exc, path) from exc


def _clone_file(src: str, dest: str) -> None:
    """Copy file bytes, reflinking when the filesystem supports it."""
    if _FICLONE is not None:
        with open(src, "rb") as fsrc, open(dest, "wb") as fdst:
            try:
                fcntl.ioctl(fdst.fileno(), _FICLONE, fsrc.fileno())
            except OSError as exc:
                logger.debug("Reflink unavailable for %s (%s), copying bytes", src, exc)
            else:
                return
    shutil.copyfile(src, dest)
