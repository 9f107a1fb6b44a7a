"""Exceptions raised by the temporary storage system, with user-ready messages."""

from pathlib import Path


class TemporaryStorageException(Exception):
    """Base exception class for temporary storage errors.

    Every exception carries a user-ready message and a stable error code
    that callers can match on without parsing the message.
    """

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class AlreadyClosedException(TemporaryStorageException):
    """Exception raised when a directory or file has already been closed."""

    def __init__(self, resource_type: str, identifier: str | None = None) -> None:
        self.resource_type = resource_type
        if identifier:
            message = f"{resource_type} {identifier} is already closed"
        else:
            message = f"{resource_type} is already closed"
        super().__init__(message, error_code="ALREADY_CLOSED")


class InvalidPathException(TemporaryStorageException):
    """Exception raised when a parent path is not an existing directory."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        message = f"{path} is not a directory or does not exist"
        super().__init__(message, error_code="INVALID_PATH")


class FileCreationFailedException(TemporaryStorageException):
    """Exception raised when the operating system refuses to create a file or directory."""

    def __init__(self, path: Path | str, cause: str) -> None:
        self.path = Path(path)
        self.cause = cause
        message = f"Cannot create {path} because {cause}"
        super().__init__(message, error_code="FILE_CREATION_FAILED")


class OutOfRangeException(TemporaryStorageException):
    """Exception raised when an offset lies outside the stream."""

    def __init__(self, offset: int, length: int) -> None:
        self.offset = offset
        self.length = length
        message = f"Offset {offset} is outside the stream range [0, {length}]"
        super().__init__(message, error_code="OUT_OF_RANGE")


class StringConversionFailedException(TemporaryStorageException):
    """Exception raised when text cannot be encoded for writing."""

    def __init__(self, encoding: str, cause: str) -> None:
        self.encoding = encoding
        message = f"Cannot encode text as {encoding}: {cause}"
        super().__init__(message, error_code="STRING_CONVERSION_FAILED")


class ValidationException(TemporaryStorageException):
    """Exception raised when an argument fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="VALIDATION_FAILED")


class CleanupFailedException(TemporaryStorageException):
    """Exception raised when one or more temporary files could not be closed.

    The files listed in ``failures`` are still live in their directory, so the
    caller may retry.
    """

    def __init__(self, failures: list[tuple[Path, Exception]]) -> None:
        self.failures = failures
        details = "; ".join(f"{path}: {error}" for path, error in failures)
        message = f"Failed to close {len(failures)} temporary file(s): {details}"
        super().__init__(message, error_code="CLEANUP_FAILED")
