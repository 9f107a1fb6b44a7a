"""Automatically cleaned-up temporary directories, files and in-memory buffers."""

from tempstore.exceptions import (
    AlreadyClosedException,
    CleanupFailedException,
    FileCreationFailedException,
    InvalidPathException,
    OutOfRangeException,
    StringConversionFailedException,
    TemporaryStorageException,
    ValidationException,
)
from tempstore.in_memory_file import InMemoryFile
from tempstore.services.default_directory import (
    get_default_directory,
    teardown_default_directory,
    temporary_file,
)
from tempstore.stream import SeekableStream
from tempstore.temporary_directory import TemporaryDirectory
from tempstore.temporary_file import TemporaryFile

__all__ = [
    "AlreadyClosedException",
    "CleanupFailedException",
    "FileCreationFailedException",
    "InMemoryFile",
    "InvalidPathException",
    "OutOfRangeException",
    "SeekableStream",
    "StringConversionFailedException",
    "TemporaryDirectory",
    "TemporaryFile",
    "TemporaryStorageException",
    "ValidationException",
    "get_default_directory",
    "teardown_default_directory",
    "temporary_file",
]
