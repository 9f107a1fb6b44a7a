"""Identity handles for on-disk temporary files."""

import io
import logging
import os
import weakref
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from tempstore.exceptions import (
    AlreadyClosedException,
    OutOfRangeException,
    ValidationException,
)
from tempstore.stream import encode_text
from tempstore.utils import fs
from tempstore.utils.metrics import record_operation

if TYPE_CHECKING:
    from tempstore.temporary_directory import Substance, TemporaryDirectory

logger = logging.getLogger(__name__)


class TemporaryFile:
    """A temporary file living in a ``TemporaryDirectory``.

    The object is only an identity. It holds a weak reference to its
    directory and nothing else: the OS handle and the path are stored in the
    directory's substance table under this object as key. Every operation
    looks the identity up again, so a file that has been closed (directly,
    through its directory, or because the directory was garbage collected)
    reports ``AlreadyClosedException`` instead of touching a stale handle.

    Two handles are equal only if they are the same object.

    Instances are created by ``TemporaryDirectory.new_file()``.
    """

    def __init__(self, directory: "TemporaryDirectory") -> None:
        self._directory = weakref.ref(directory)

    @property
    def directory(self) -> "TemporaryDirectory | None":
        """The owning directory, or None once it has been garbage collected."""
        return self._directory()

    @property
    def is_closed(self) -> bool:
        directory = self._directory()
        return directory is None or self not in directory

    @property
    def path(self) -> Path:
        """Location of the backing file.

        Raises:
            AlreadyClosedException: If the file has been closed
        """
        return self._resolve().path

    def offset(self) -> int:
        return self._handle().tell()

    def read(self, count: int) -> bytes | None:
        try:
            handle = self._handle()
        except AlreadyClosedException:
            return None
        if count < 0:
            raise ValidationException(f"Read count cannot be negative: {count}")

        # FileIO.read allocates the requested size up front
        chunks: list[bytes] = []
        remaining = count
        while remaining > 0:
            chunk = handle.read(min(remaining, io.DEFAULT_BUFFER_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read_to_end(self) -> bytes | None:
        try:
            handle = self._handle()
        except AlreadyClosedException:
            return None
        return handle.readall()

    def seek(self, offset: int) -> None:
        handle = self._handle()
        length = os.fstat(handle.fileno()).st_size
        if offset < 0 or offset > length:
            raise OutOfRangeException(offset, length)
        handle.seek(offset)

    def seek_to_end(self) -> int:
        return self._handle().seek(0, os.SEEK_END)

    def truncate(self, offset: int) -> None:
        handle = self._handle()
        if offset < 0:
            raise OutOfRangeException(offset, os.fstat(handle.fileno()).st_size)
        # ftruncate zero-fills when growing but leaves the position alone
        handle.truncate(offset)
        handle.seek(offset)

    def write(self, data: bytes) -> None:
        written = fs.write_all(self._handle(), data)
        record_operation("write", "success", bytes_written=written)

    def write_string(
        self, text: str, encoding: str = "utf-8", errors: str = "strict"
    ) -> None:
        self.write(encode_text(text, encoding, errors))

    def synchronize(self) -> None:
        os.fsync(self._handle().fileno())

    def close(self) -> None:
        """Close the handle and delete the file.

        Raises:
            AlreadyClosedException: If the file is already closed
        """
        directory = self._directory()
        if directory is None:
            raise AlreadyClosedException("Temporary file")
        directory.close_file(self)

    def copy(self, destination: Path | str) -> None:
        """Copy the current contents to destination.

        Fails with ``FileExistsError`` if destination already exists; other
        OS errors propagate unchanged.
        """
        source = self.path
        fs.copy_file(source, destination)
        logger.debug("Copied temporary file %s to %s", source, destination)

    def __enter__(self) -> "TemporaryFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self.is_closed:
            self.close()

    def __repr__(self) -> str:
        if self.is_closed:
            return "<TemporaryFile closed>"
        return f"<TemporaryFile {self.path}>"

    def _resolve(self) -> "Substance":
        directory = self._directory()
        if directory is None:
            raise AlreadyClosedException("Temporary file")
        return directory._resolve(self)

    def _handle(self) -> io.FileIO:
        return self._resolve().handle
