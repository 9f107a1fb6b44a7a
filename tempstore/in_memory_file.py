"""In-memory substitute for temporary files."""

from collections.abc import Iterable, Iterator, MutableSequence
from types import TracebackType
from typing import overload

from tempstore.exceptions import (
    AlreadyClosedException,
    OutOfRangeException,
    ValidationException,
)
from tempstore.stream import encode_text


class InMemoryFile(MutableSequence[int]):
    """A growable byte buffer that behaves like a temporary file.

    Implements the ``SeekableStream`` contract over an owned ``bytearray``,
    so it can stand in for a ``TemporaryFile`` when the data never needs to
    reach the disk. It is also a mutable sequence of byte values: indexing,
    slicing, ``append``, ``extend`` and ``del`` work on the contents directly.

    Sequence operations ignore the closed state and leave the cursor alone,
    except that removing bytes clamps the cursor to the new length.
    """

    def __init__(self, initial: bytes | Iterable[int] = b"") -> None:
        self._data = bytearray(initial)
        self._offset = 0
        self._is_closed = False
        self.capacity = len(self._data)

    @classmethod
    def with_count(cls, count: int) -> "InMemoryFile":
        """Create a buffer holding count zero bytes."""
        if count < 0:
            raise ValidationException(f"Byte count cannot be negative: {count}")
        return cls(bytes(count))

    @classmethod
    def with_capacity(cls, capacity: int) -> "InMemoryFile":
        """Create an empty buffer expected to grow to capacity bytes."""
        buffer = cls()
        buffer.reserve_capacity(capacity)
        return buffer

    # Stream contract

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    def offset(self) -> int:
        self._ensure_open()
        return self._offset

    def read(self, count: int) -> bytes | None:
        if self._is_closed:
            return None
        if count < 0:
            raise ValidationException(f"Read count cannot be negative: {count}")

        end = min(self._offset + count, len(self._data))
        chunk = bytes(self._data[self._offset:end])
        self._offset = end
        return chunk

    def read_to_end(self) -> bytes | None:
        if self._is_closed:
            return None
        return self.read(len(self._data) - self._offset)

    def seek(self, offset: int) -> None:
        self._ensure_open()
        if offset < 0 or offset > len(self._data):
            raise OutOfRangeException(offset, len(self._data))
        self._offset = offset

    def seek_to_end(self) -> int:
        self._ensure_open()
        self._offset = len(self._data)
        return self._offset

    def truncate(self, offset: int) -> None:
        self._ensure_open()
        if offset < 0:
            raise OutOfRangeException(offset, len(self._data))

        if offset > len(self._data):
            self._data.extend(bytes(offset - len(self._data)))
        else:
            del self._data[offset:]
        self._offset = offset

    def write(self, data: bytes) -> None:
        self._ensure_open()
        # Slice assignment overwrites up to the current end and appends the rest
        end = self._offset + len(data)
        self._data[self._offset:end] = data
        self._offset = end

    def write_string(
        self, text: str, encoding: str = "utf-8", errors: str = "strict"
    ) -> None:
        self.write(encode_text(text, encoding, errors))

    def synchronize(self) -> None:
        """Nothing to flush; only checks that the buffer is still open."""
        self._ensure_open()

    def close(self) -> None:
        self._ensure_open()
        self._is_closed = True

    def __enter__(self) -> "InMemoryFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self._is_closed:
            self.close()

    # Byte container

    @property
    def is_empty(self) -> bool:
        return not self._data

    def getvalue(self) -> bytes:
        """Return a copy of the whole buffer regardless of the cursor."""
        return bytes(self._data)

    def reserve_capacity(self, capacity: int) -> None:
        """Record that the buffer is expected to hold capacity bytes.

        bytearray manages its own allocation, so this only raises the hint
        reported by ``capacity``.
        """
        if capacity < 0:
            raise ValidationException(f"Capacity cannot be negative: {capacity}")
        self.capacity = max(self.capacity, capacity)

    def reset_bytes(self, start: int, stop: int) -> None:
        """Set bytes in [start, stop) to zero, growing the buffer if needed."""
        if start < 0 or stop < start:
            raise ValidationException(f"Invalid byte range [{start}, {stop})")
        if stop > len(self._data):
            self._data.extend(bytes(stop - len(self._data)))
        self._data[start:stop] = bytes(stop - start)

    @overload
    def __getitem__(self, index: int) -> int: ...

    @overload
    def __getitem__(self, index: slice) -> bytes: ...

    def __getitem__(self, index: int | slice) -> int | bytes:
        if isinstance(index, slice):
            return bytes(self._data[index])
        return self._data[index]

    @overload
    def __setitem__(self, index: int, value: int) -> None: ...

    @overload
    def __setitem__(self, index: slice, value: Iterable[int]) -> None: ...

    def __setitem__(self, index: int | slice, value: int | Iterable[int]) -> None:
        self._data[index] = value  # type: ignore[index,assignment]
        self._clamp_offset()

    def __delitem__(self, index: int | slice) -> None:
        del self._data[index]
        self._clamp_offset()

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[int]:
        return iter(self._data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def insert(self, index: int, value: int) -> None:
        self._data.insert(index, value)

    def extend(self, values: Iterable[int]) -> None:
        self._data.extend(values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InMemoryFile):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "closed" if self._is_closed else f"offset={self._offset}"
        return f"<InMemoryFile {len(self._data)} bytes, {state}>"

    def _ensure_open(self) -> None:
        if self._is_closed:
            raise AlreadyClosedException("In-memory file")

    def _clamp_offset(self) -> None:
        if self._offset > len(self._data):
            self._offset = len(self._data)
