"""Unit tests for working-directory replication.

No privileges required: everything is written to ``tmp_path``; the device
branch copies from ``/dev/null``.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
from anyio import CapacityLimiter

from pipeforge.daemon.errors import FileOperationError
from pipeforge.daemon.execution.fs import copy_dir

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_tree(root: Path) -> None:
    """A small tree with nested dirs, modes and both kinds of symlinks."""
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "data").mkdir()
    (root / "empty").mkdir()

    (root / "README.md").write_text("# pipeline\n")
    (root / "src" / "pkg" / "train.py").write_text("print('train')\n")
    (root / "data" / "blob.bin").write_bytes(os.urandom(4096))

    run = root / "run.sh"
    run.write_text("#!/bin/sh\necho run\n")
    run.chmod(0o755)
    secret = root / "data" / "secret.txt"
    secret.write_text("token")
    secret.chmod(0o600)

    (root / "latest").symlink_to("data/blob.bin")
    (root / "src" / "up").symlink_to("../README.md")
    (root / "dangling").symlink_to("does/not/exist")


def _snapshot(root: Path) -> dict[str, tuple]:
    """Relative path -> (kind, detail) for every entry below *root*."""
    entries: dict[str, tuple] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            rel = str(path.relative_to(root))
            st = path.lstat()
            if stat.S_ISLNK(st.st_mode):
                entries[rel] = ("link", os.readlink(path))
            elif stat.S_ISDIR(st.st_mode):
                entries[rel] = ("dir",)
            else:
                entries[rel] = ("file", stat.S_IMODE(st.st_mode), path.read_bytes())
    return entries


# ---------------------------------------------------------------------------
# Entry types
# ---------------------------------------------------------------------------


async def test_copy_tree(tmp_path: Path) -> None:
    src = tmp_path / "a"
    _build_tree(src)

    await copy_dir(src, tmp_path / "b")

    assert _snapshot(tmp_path / "b") == _snapshot(src)


async def test_copy_preserves_file_mode(tmp_path: Path) -> None:
    src = tmp_path / "a"
    _build_tree(src)
    dest = tmp_path / "b"

    await copy_dir(src, dest)

    assert stat.S_IMODE((dest / "run.sh").stat().st_mode) == 0o755
    assert stat.S_IMODE((dest / "data" / "secret.txt").stat().st_mode) == 0o600


async def test_copy_symlink_target_verbatim(tmp_path: Path) -> None:
    src = tmp_path / "a"
    _build_tree(src)
    dest = tmp_path / "b"

    await copy_dir(src, dest)

    assert (dest / "latest").is_symlink()
    assert os.readlink(dest / "latest") == "data/blob.bin"
    # Relative target resolves inside the copy, not back into the source.
    assert (dest / "latest").resolve() == (dest / "data" / "blob.bin").resolve()
    assert os.readlink(dest / "dangling") == "does/not/exist"


async def test_copy_single_file(tmp_path: Path) -> None:
    src = tmp_path / "model.bin"
    src.write_bytes(b"\x00\x01weights")
    src.chmod(0o640)

    await copy_dir(src, tmp_path / "copy.bin")

    assert (tmp_path / "copy.bin").read_bytes() == b"\x00\x01weights"
    assert stat.S_IMODE((tmp_path / "copy.bin").stat().st_mode) == 0o640


async def test_copy_creates_missing_parents(tmp_path: Path) -> None:
    src = tmp_path / "a"
    _build_tree(src)
    dest = tmp_path / "deep" / "nested" / "b"

    await copy_dir(src, dest)

    assert (dest / "src" / "pkg" / "train.py").read_text() == "print('train')\n"
    assert (dest / "empty").is_dir()


async def test_copy_into_existing_directory(tmp_path: Path) -> None:
    src = tmp_path / "a"
    _build_tree(src)
    dest = tmp_path / "b"
    dest.mkdir()
    (dest / "keep.txt").write_text("kept")

    await copy_dir(src, dest)

    assert (dest / "keep.txt").read_text() == "kept"
    assert (dest / "README.md").exists()


async def test_character_device_copied_as_file(tmp_path: Path) -> None:
    dest = tmp_path / "n"

    await copy_dir("/dev/null", dest)

    # Contents are read through the device, so the copy is an empty regular file.
    assert dest.is_file()
    assert dest.read_bytes() == b""
    assert stat.S_IMODE(dest.stat().st_mode) == stat.S_IMODE(os.stat("/dev/null").st_mode)


async def test_fifo_is_skipped(tmp_path: Path) -> None:
    src = tmp_path / "a"
    src.mkdir()
    os.mkfifo(src / "pipe")
    (src / "file.txt").write_text("x")

    await copy_dir(src, tmp_path / "b")

    assert not os.path.lexists(tmp_path / "b" / "pipe")
    assert (tmp_path / "b" / "file.txt").read_text() == "x"


async def test_repeated_replication_is_stable(tmp_path: Path) -> None:
    src = tmp_path / "t"
    _build_tree(src)

    await copy_dir(src, tmp_path / "d1")
    await copy_dir(tmp_path / "d1", tmp_path / "d2")

    assert _snapshot(tmp_path / "d2") == _snapshot(src)


async def test_wide_directory_with_small_limiter(tmp_path: Path) -> None:
    src = tmp_path / "wide"
    src.mkdir()
    for i in range(200):
        (src / f"f{i:03d}.txt").write_text(str(i))

    await copy_dir(src, tmp_path / "out", limiter=CapacityLimiter(2))

    copied = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert copied == [f"f{i:03d}.txt" for i in range(200)]
    assert (tmp_path / "out" / "f150.txt").read_text() == "150"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


async def test_missing_source(tmp_path: Path) -> None:
    missing = tmp_path / "nope"

    with pytest.raises(FileOperationError) as exc_info:
        await copy_dir(missing, tmp_path / "b")

    assert exc_info.value.filename == str(missing)


async def test_child_failures_aggregated(tmp_path: Path) -> None:
    src = tmp_path / "a"
    src.mkdir()
    (src / "ok.txt").write_text("fine")
    (src / "link-b").symlink_to("target-b")
    (src / "link-a").symlink_to("target-a")

    dest = tmp_path / "b"
    dest.mkdir()
    # Pre-existing entries make both symlink creations fail.
    (dest / "link-a").write_text("occupied")
    (dest / "link-b").write_text("occupied")

    with pytest.raises(ExceptionGroup) as exc_info:
        await copy_dir(src, dest)

    errors = exc_info.value.exceptions
    assert all(isinstance(e, FileOperationError) for e in errors)
    # Every failure is reported, in sorted entry order.
    assert [e.filename for e in errors] == [str(dest / "link-a"), str(dest / "link-b")]
    # Healthy siblings are still copied.
    assert (dest / "ok.txt").read_text() == "fine"


async def test_nested_failures_flattened(tmp_path: Path) -> None:
    src = tmp_path / "a"
    (src / "one").mkdir(parents=True)
    (src / "two").mkdir()
    (src / "one" / "l").symlink_to("x")
    (src / "two" / "l").symlink_to("y")

    dest = tmp_path / "b"
    (dest / "one").mkdir(parents=True)
    (dest / "two").mkdir()
    (dest / "one" / "l").write_text("")
    (dest / "two" / "l").write_text("")

    with pytest.raises(ExceptionGroup) as exc_info:
        await copy_dir(src, dest)

    errors = exc_info.value.exceptions
    assert [e.filename for e in errors] == [str(dest / "one" / "l"), str(dest / "two" / "l")]
    assert not any(isinstance(e, ExceptionGroup) for e in errors)
