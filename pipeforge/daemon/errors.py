"""Domain exceptions shared across the daemon.

Execution modules and managers raise these; routers translate them into
HTTP responses.  None of them are retried internally.
"""

from __future__ import annotations

from collections.abc import Sequence


class UnsupportedProtocolError(ValueError):
    """Config source has no URI scheme, or one we cannot fetch from."""

    def __init__(self, scheme: str | None = None) -> None:
        self.scheme = scheme
        if scheme:
            super().__init__(f"protocol {scheme}: is not supported")
        else:
            super().__init__("config URI is not supported (expected file:, http: or https:)")


class InvalidPluginReferenceError(ValueError):
    """A remote config references a plugin package by local path."""

    def __init__(self, package: str) -> None:
        self.package = package
        super().__init__(f"local path is invalid for plugin package: {package}")


class FileOperationError(OSError):
    """Filesystem failure bound to the path that caused it.

    Constructed from the original ``OSError`` so errno / strerror survive::

        raise FileOperationError.from_os_error(exc, path) from exc
    """

    @classmethod
    def from_os_error(cls, exc: OSError, path: str) -> FileOperationError:
        """Wrap *exc*, preferring the filename it already carries over *path*.

        Two-path calls (``symlink``, ``rename``) report the destination in
        ``filename2``; that is the path the failure is about.
        """
        return cls(exc.errno, exc.strerror or str(exc), exc.filename2 or exc.filename or path)


class ProcessExecutionError(RuntimeError):
    """Subprocess exited non-zero, failed to spawn, or timed out."""

    def __init__(
        self,
        command: str | Sequence[str],
        *,
        returncode: int | None = None,
        stderr: str = "",
        reason: str | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if reason is None:
            reason = f"exited with status {returncode}"
        super().__init__(f"command {command!r} {reason}")


class QueueClosedError(RuntimeError):
    """Raised when enqueuing onto a queue that has been closed."""
