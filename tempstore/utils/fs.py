"""Filesystem primitives used by temporary directories.

These helpers are thin wrappers around the operating system calls. They raise
``OSError`` unchanged; mapping to temporary storage exceptions happens in the
callers, which know what was being attempted.
"""

import io
import os
import shutil
from pathlib import Path

from tempstore.exceptions import InvalidPathException

# O_BINARY only exists on Windows
_CREATE_FLAGS = os.O_RDWR | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def resolve_directory(path: Path | str) -> Path:
    """Resolve symbolic links in path and check that it is a directory.

    Raises:
        InvalidPathException: If the resolved path is not an existing directory
    """
    resolved = Path(path).resolve()
    if not resolved.is_dir():
        raise InvalidPathException(resolved)
    return resolved


def make_directory(path: Path, mode: int) -> None:
    """Create path (and any missing parents) with the given permission mode.

    The mode is applied again after creation because mkdir() is subject to
    the process umask.
    """
    path.mkdir(mode=mode, parents=True, exist_ok=False)
    os.chmod(path, mode)


def create_file(path: Path, mode: int, contents: bytes | None = None) -> io.FileIO:
    """Exclusively create path and return an unbuffered read/write handle.

    The handle is positioned at offset 0. If writing the initial contents
    fails, the partially created file is removed and the exception propagates.
    """
    fd = os.open(path, _CREATE_FLAGS, mode)
    try:
        handle = io.FileIO(fd, "r+", closefd=True)
    except Exception:
        os.close(fd)
        _unlink_quietly(path)
        raise

    try:
        if contents:
            write_all(handle, contents)
            handle.seek(0)
    except Exception:
        handle.close()
        _unlink_quietly(path)
        raise
    return handle


def write_all(handle: io.FileIO, data: bytes) -> int:
    """Write every byte of data, looping over short writes."""
    view = memoryview(data)
    total = 0
    while total < len(view):
        written = handle.write(view[total:])
        if written is None:
            raise BlockingIOError("write would block")
        total += written
    return total


def remove_file(path: Path) -> None:
    os.unlink(path)


def remove_tree(path: Path) -> None:
    shutil.rmtree(path)


def copy_file(source: Path, destination: Path | str) -> None:
    """Copy source to destination, refusing to overwrite an existing file."""
    with open(source, "rb") as src, open(destination, "xb") as dst:
        shutil.copyfileobj(src, dst)


def _unlink_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except OSError:
        pass
