"""Temporary directories that own the temporary files created in them."""

import io
import logging
import weakref
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from tempstore.config import Settings, get_settings
from tempstore.exceptions import (
    AlreadyClosedException,
    CleanupFailedException,
    FileCreationFailedException,
)
from tempstore.temporary_file import TemporaryFile
from tempstore.utils import fs
from tempstore.utils.base32 import new_identifier
from tempstore.utils.metrics import record_operation

logger = logging.getLogger(__name__)


@dataclass
class Substance:
    """The OS resources backing one live temporary file."""

    handle: io.FileIO
    path: Path


class TemporaryDirectory:
    """A directory on disk that hands out temporary files.

    The directory keeps a substance table mapping each live ``TemporaryFile``
    to its open handle and path. The table holds the only reference to the
    handle; closing a file removes its entry and deletes it from disk.

    Use it as a context manager to guarantee cleanup on scope exit::

        with TemporaryDirectory.create() as directory:
            file = directory.new_file(suffix=".json")
            file.write(payload)

    If the object is garbage collected or the interpreter exits while the
    directory is still open, its files and the directory itself are removed
    on a best-effort basis and any failure is only logged.

    Not thread-safe: callers sharing a directory between threads must
    serialise access to it.
    """

    def __init__(self, location: Path, file_mode: int = 0o600) -> None:
        """Take ownership of an existing directory.

        Everything under location is deleted when the directory is closed.
        Prefer ``TemporaryDirectory.create()``.
        """
        self._location = location
        self._file_mode = file_mode
        self._is_closed = False
        self._substances: dict[TemporaryFile, Substance] = {}
        self._finalizer = weakref.finalize(
            self, _remove_abandoned, location, self._substances
        )

    @classmethod
    def create(
        cls,
        parent: Path | str | None = None,
        prefix: str | None = None,
        suffix: str | None = None,
        settings: Settings | None = None,
    ) -> "TemporaryDirectory":
        """Create a fresh directory named ``<prefix><token><suffix>`` under parent.

        Args:
            parent: Directory to create in; symbolic links are resolved.
                Defaults to the configured parent directory.
            prefix: Name prefix, may contain separators to nest the directory.
                Defaults to the configured reverse-domain prefix.
            suffix: Name suffix, defaults to ``.<pid>``
            settings: Settings to use instead of the cached global settings

        Returns:
            The new, open temporary directory

        Raises:
            InvalidPathException: If parent is not an existing directory
            FileCreationFailedException: If the directory cannot be created
        """
        settings = settings or get_settings()
        parent_dir = fs.resolve_directory(
            parent if parent is not None else settings.parent_dir
        )
        if prefix is None:
            prefix = settings.TEMPSTORE_DIRECTORY_PREFIX
        if suffix is None:
            suffix = settings.directory_suffix

        attempts = max(1, settings.TEMPSTORE_MAX_NAME_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            location = parent_dir / f"{prefix}{new_identifier()}{suffix}"
            try:
                fs.make_directory(location, settings.TEMPSTORE_DIRECTORY_MODE)
            except FileExistsError as e:
                logger.warning(
                    "Temporary directory name %s already exists (attempt %d of %d)",
                    location, attempt, attempts,
                )
                if attempt == attempts:
                    record_operation("create_directory", "error")
                    raise FileCreationFailedException(
                        location, f"no unused name found after {attempts} attempts"
                    ) from e
            except OSError as e:
                record_operation("create_directory", "error")
                raise FileCreationFailedException(location, e.strerror or str(e)) from e
            else:
                break

        record_operation("create_directory", "success")
        logger.debug("Created temporary directory %s", location)
        return cls(location, file_mode=settings.TEMPSTORE_FILE_MODE)

    @property
    def location(self) -> Path:
        return self._location

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    @property
    def remove_at_exit(self) -> bool:
        """Whether an unclosed directory is removed when the interpreter exits."""
        return self._finalizer.atexit

    @remove_at_exit.setter
    def remove_at_exit(self, value: bool) -> None:
        self._finalizer.atexit = value

    @property
    def live_file_count(self) -> int:
        return len(self._substances)

    def __contains__(self, file: object) -> bool:
        return file in self._substances

    def new_file(
        self,
        prefix: str = "",
        suffix: str = "",
        contents: bytes | None = None,
    ) -> TemporaryFile:
        """Create a temporary file named ``<prefix><token><suffix>``.

        The file is readable and writable by the owner only and the returned
        handle is positioned at offset 0.

        Raises:
            AlreadyClosedException: If this directory is closed
            FileCreationFailedException: If the OS refuses to create the file
        """
        self._ensure_open()
        path = self._location / f"{prefix}{new_identifier()}{suffix}"
        try:
            handle = fs.create_file(path, self._file_mode, contents)
        except OSError as e:
            record_operation("create_file", "error")
            raise FileCreationFailedException(path, e.strerror or str(e)) from e

        file = TemporaryFile(self)
        self._substances[file] = Substance(handle=handle, path=path)
        record_operation(
            "create_file", "success",
            live_delta=1,
            bytes_written=len(contents) if contents else None,
        )
        logger.debug("Created temporary file %s", path)
        return file

    def close_file(self, file: TemporaryFile) -> None:
        """Close the handle of file, forget it and delete it from disk.

        If closing the handle fails the file stays live. If only the deletion
        fails the file is closed but its path may remain until the directory
        itself is removed.

        Raises:
            AlreadyClosedException: If file is not live in this directory
            OSError: If the handle cannot be closed or the file removed
        """
        substance = self._substances.get(file)
        if substance is None:
            raise AlreadyClosedException("Temporary file")

        substance.handle.close()
        del self._substances[file]
        record_operation("close_file", "success", live_delta=-1)

        fs.remove_file(substance.path)
        logger.debug("Removed temporary file %s", substance.path)

    def close_all_temporary_files(self) -> None:
        """Close every live file, continuing past individual failures.

        Raises:
            CleanupFailedException: Listing each file that failed; files whose
                handle could not be closed remain live
        """
        failures: list[tuple[Path, Exception]] = []
        for file, substance in list(self._substances.items()):
            try:
                self.close_file(file)
            except OSError as e:
                logger.error("Failed to close temporary file %s: %s", substance.path, e)
                record_operation("close_file", "error")
                failures.append((substance.path, e))

        if failures:
            raise CleanupFailedException(failures)

    def close(self) -> None:
        """Close all files and remove the directory.

        Raises:
            AlreadyClosedException: If the directory is already closed
            CleanupFailedException: If some files could not be closed; the
                directory stays open
            OSError: If the directory tree cannot be removed
        """
        self._ensure_open()
        self.close_all_temporary_files()
        try:
            fs.remove_tree(self._location)
        except FileNotFoundError:
            logger.warning("Temporary directory %s was already removed", self._location)

        self._is_closed = True
        self._finalizer.detach()
        record_operation("close_directory", "success")
        logger.debug("Removed temporary directory %s", self._location)

    def __enter__(self) -> "TemporaryDirectory":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self._is_closed:
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self._is_closed else f"{len(self._substances)} live files"
        return f"<TemporaryDirectory {self._location} ({state})>"

    def _resolve(self, file: TemporaryFile) -> Substance:
        """Look up the substance record of a live file."""
        substance = self._substances.get(file)
        if substance is None:
            raise AlreadyClosedException("Temporary file")
        return substance

    def _ensure_open(self) -> None:
        if self._is_closed:
            raise AlreadyClosedException("Temporary directory", str(self._location))


def _remove_abandoned(location: Path, substances: dict[TemporaryFile, Substance]) -> None:
    """Remove a directory that was never closed explicitly.

    Runs from a finalizer, so there is nobody to report errors to.
    """
    logger.warning("Temporary directory %s was not closed; removing it", location)
    removed = 0
    for file, substance in list(substances.items()):
        try:
            substance.handle.close()
        except OSError as e:
            logger.warning("Failed to close temporary file %s: %s", substance.path, e)
            continue

        del substances[file]
        removed += 1
        try:
            fs.remove_file(substance.path)
        except OSError as e:
            logger.warning("Failed to remove temporary file %s: %s", substance.path, e)

    if removed:
        record_operation("close_file", "abandoned", live_delta=-removed)

    try:
        fs.remove_tree(location)
    except OSError as e:
        logger.warning("Failed to remove temporary directory %s: %s", location, e)
