"""The seekable stream contract shared by in-memory and on-disk temporary files.

Code that accepts "a file or a buffer" should depend on ``SeekableStream``
only. ``InMemoryFile`` and ``TemporaryFile`` satisfy it structurally; neither
inherits from the other.

Shared semantics:

- ``read`` returns at most ``count`` bytes and ``b""`` at end of stream. It
  returns ``None`` instead of raising once the stream is closed.
- ``seek`` accepts offsets in ``[0, length]`` only; it never grows the stream.
- ``truncate`` zero-extends or discards, then moves the cursor to the offset.
- ``write`` overwrites bytes under the cursor and appends the remainder.
- Every other operation on a closed stream raises ``AlreadyClosedException``,
  including a second ``close``.
"""

from typing import Protocol, runtime_checkable

from tempstore.exceptions import StringConversionFailedException


@runtime_checkable
class SeekableStream(Protocol):
    """Protocol for temporary storage streams."""

    @property
    def is_closed(self) -> bool: ...

    def offset(self) -> int: ...

    def read(self, count: int) -> bytes | None: ...

    def read_to_end(self) -> bytes | None: ...

    def seek(self, offset: int) -> None: ...

    def seek_to_end(self) -> int: ...

    def truncate(self, offset: int) -> None: ...

    def write(self, data: bytes) -> None: ...

    def write_string(
        self, text: str, encoding: str = "utf-8", errors: str = "strict"
    ) -> None: ...

    def synchronize(self) -> None: ...

    def close(self) -> None: ...


def encode_text(text: str, encoding: str, errors: str) -> bytes:
    """Encode text for write_string().

    Raises:
        StringConversionFailedException: If the text cannot be represented
            in the encoding, or the encoding is unknown
    """
    try:
        return text.encode(encoding, errors)
    except (UnicodeEncodeError, LookupError) as e:
        raise StringConversionFailedException(encoding, str(e)) from e
