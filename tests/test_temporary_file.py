"""Tests for TemporaryFile handles."""

import gc
import io
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from prometheus_client import REGISTRY

from tempstore.config import Settings
from tempstore.exceptions import (
    AlreadyClosedException,
    OutOfRangeException,
    StringConversionFailedException,
    ValidationException,
)
from tempstore.stream import SeekableStream
from tempstore.temporary_directory import TemporaryDirectory
from tempstore.temporary_file import TemporaryFile


class TestStreamOperations:
    """Tests for on-disk stream behaviour."""

    def test_satisfies_stream_protocol(self, directory: TemporaryDirectory) -> None:
        """Test that a temporary file is a SeekableStream."""
        assert isinstance(directory.new_file(), SeekableStream)

    def test_write_read_round_trip(self, directory: TemporaryDirectory) -> None:
        """Test reading back bytes that were just written."""
        file = directory.new_file()

        file.seek(0)
        file.write(bytes([0, 1, 2, 3, 4]))
        assert file.offset() == 5

        file.seek(0)
        assert file.read_to_end() == bytes([0, 1, 2, 3, 4])

    def test_writes_reach_disk(self, directory: TemporaryDirectory) -> None:
        """Test that synchronized writes are visible through the path."""
        file = directory.new_file()

        file.write(b"persisted")
        file.synchronize()

        assert file.path.read_bytes() == b"persisted"

    def test_read_partial(self, directory: TemporaryDirectory) -> None:
        """Test that reads return at most the requested count."""
        file = directory.new_file(contents=b"Hello!")

        assert file.read(4) == b"Hell"
        assert file.read(10) == b"o!"
        assert file.read(10) == b""

    def test_read_zero(self, directory: TemporaryDirectory) -> None:
        """Test that reading zero bytes leaves the cursor alone."""
        file = directory.new_file(contents=b"abc")

        assert file.read(0) == b""
        assert file.offset() == 0

    def test_read_negative_count(self, directory: TemporaryDirectory) -> None:
        """Test that a negative count raises ValidationException on an open file."""
        with pytest.raises(ValidationException):
            directory.new_file().read(-1)

    def test_read_huge_count_returns_remaining_bytes(
        self, directory: TemporaryDirectory
    ) -> None:
        """Test that a count far beyond the file size returns what is left."""
        file = directory.new_file(contents=b"abc")

        assert file.read(1 << 40) == b"abc"
        file.seek(1)
        assert file.read(sys.maxsize) == b"bc"
        assert file.offset() == 3

    def test_read_spanning_several_chunks(self, directory: TemporaryDirectory) -> None:
        """Test reading more than one buffer's worth of data in one call."""
        data = bytes(range(256)) * (io.DEFAULT_BUFFER_SIZE // 64)
        file = directory.new_file(contents=data)

        assert file.read(len(data) - 1) == data[:-1]
        assert file.read(sys.maxsize) == data[-1:]

    def test_seek_beyond_end_fails(self, directory: TemporaryDirectory) -> None:
        """Test that seeking outside 0..length raises and does not grow the file."""
        file = directory.new_file(contents=b"abc")

        with pytest.raises(OutOfRangeException):
            file.seek(4)
        with pytest.raises(OutOfRangeException):
            file.seek(-1)

        assert file.path.stat().st_size == 3

    def test_seek_to_end(self, directory: TemporaryDirectory) -> None:
        """Test that seek_to_end returns and moves to the file length."""
        file = directory.new_file(contents=b"Hello!")

        assert file.seek_to_end() == 6
        assert file.offset() == 6

    def test_truncate_shrinks(self, directory: TemporaryDirectory) -> None:
        """Test truncating to a shorter length."""
        file = directory.new_file(contents=b"Hello!")

        file.truncate(5)
        assert file.offset() == 5

        file.seek(0)
        assert file.read_to_end() == b"Hello"

    def test_truncate_zero_extends(self, directory: TemporaryDirectory) -> None:
        """Test that truncating past the end pads with zero bytes."""
        file = directory.new_file(contents=b"\x07\x08")

        file.truncate(4)

        assert file.offset() == 4
        assert file.path.read_bytes() == b"\x07\x08\x00\x00"

    def test_truncate_negative(self, directory: TemporaryDirectory) -> None:
        """Test that a negative length raises OutOfRangeException."""
        with pytest.raises(OutOfRangeException):
            directory.new_file().truncate(-1)

    def test_truncate_to_zero(self, directory: TemporaryDirectory) -> None:
        """Test truncating a file to empty."""
        file = directory.new_file(contents=b"data")

        file.truncate(0)

        assert file.offset() == 0
        file.seek(0)
        assert file.read_to_end() == b""

    def test_write_string(self, directory: TemporaryDirectory) -> None:
        """Test writing text with the default encoding."""
        file = directory.new_file()

        file.write_string("Hello!")

        assert file.path.read_text() == "Hello!"

    def test_write_string_unencodable(self, directory: TemporaryDirectory) -> None:
        """Test that text the encoding cannot represent raises."""
        with pytest.raises(StringConversionFailedException):
            directory.new_file().write_string("☃", encoding="latin-1")

    def test_write_counts_bytes(self, directory: TemporaryDirectory) -> None:
        """Test that writes are added to the bytes written counter."""
        before = REGISTRY.get_sample_value("tempstore_bytes_written_total") or 0.0

        directory.new_file().write(b"12345")

        assert REGISTRY.get_sample_value("tempstore_bytes_written_total") == before + 5


class TestIdentity:
    """Tests for the identity indirection."""

    def test_compared_by_identity(self, directory: TemporaryDirectory) -> None:
        """Test that handles compare and hash by object identity."""
        file = directory.new_file()
        alias = file

        assert alias == file
        assert hash(alias) == hash(file)
        assert file != directory.new_file()

    def test_carries_no_handle_or_path(self, directory: TemporaryDirectory) -> None:
        """Test that the handle only stores its directory reference."""
        file = directory.new_file()

        assert list(vars(file)) == ["_directory"]

    def test_directory_property(self, directory: TemporaryDirectory) -> None:
        """Test that the owning directory is reachable from the handle."""
        file = directory.new_file()

        assert file.directory is directory

    def test_retained_after_close(self, directory: TemporaryDirectory) -> None:
        """Test a handle kept after close: reads give None, the rest raise."""
        file = directory.new_file(contents=b"abc")
        retained = file
        file.close()

        assert retained.read(1) is None
        assert retained.read_to_end() is None
        with pytest.raises(AlreadyClosedException):
            retained.offset()
        with pytest.raises(AlreadyClosedException):
            retained.write(b"x")
        with pytest.raises(AlreadyClosedException):
            retained.seek(0)
        with pytest.raises(AlreadyClosedException):
            retained.seek_to_end()
        with pytest.raises(AlreadyClosedException):
            retained.truncate(0)
        with pytest.raises(AlreadyClosedException):
            retained.synchronize()
        with pytest.raises(AlreadyClosedException):
            retained.path

    def test_read_negative_count_after_close(self, directory: TemporaryDirectory) -> None:
        """Test that a closed file returns None even for a negative count."""
        file = directory.new_file()
        file.close()

        assert file.read(-1) is None

    def test_retained_after_directory_close(self, settings: Settings) -> None:
        """Test that closing the directory closes handles kept by callers."""
        directory = TemporaryDirectory.create(settings=settings)
        file = directory.new_file(contents=b"abc")
        directory.close()

        assert file.is_closed
        assert file.read(3) is None
        with pytest.raises(AlreadyClosedException):
            file.write(b"x")
        with pytest.raises(AlreadyClosedException):
            file.close()

    def test_retained_after_directory_collected(self, settings: Settings) -> None:
        """Test that a handle outliving its directory behaves as closed."""
        directory = TemporaryDirectory.create(settings=settings)
        file = directory.new_file()
        del directory
        gc.collect()

        assert file.directory is None
        assert file.read_to_end() is None
        with pytest.raises(AlreadyClosedException):
            file.seek(0)
        with pytest.raises(AlreadyClosedException):
            file.close()

    def test_repr(self, directory: TemporaryDirectory) -> None:
        """Test the repr of open and closed handles."""
        file = directory.new_file(suffix=".bin")

        assert str(file.path) in repr(file)
        file.close()
        assert repr(file) == "<TemporaryFile closed>"


class TestClose:
    """Tests for closing through the handle."""

    def test_close_deletes_file(self, directory: TemporaryDirectory) -> None:
        """Test that closing the handle deletes the file."""
        file = directory.new_file()
        path = file.path

        file.close()

        assert file.is_closed
        assert not path.exists()
        assert directory.live_file_count == 0

    def test_close_twice_fails(self, directory: TemporaryDirectory) -> None:
        """Test that closing twice raises AlreadyClosedException."""
        file = directory.new_file()
        file.close()

        with pytest.raises(AlreadyClosedException):
            file.close()

    def test_context_manager(self, directory: TemporaryDirectory) -> None:
        """Test that leaving the with block closes the file."""
        with directory.new_file() as file:
            path = file.path
            file.write(b"scoped")

        assert file.is_closed
        assert not path.exists()

    def test_context_manager_after_explicit_close(
        self, directory: TemporaryDirectory
    ) -> None:
        """Test that an explicit close inside the with block is tolerated."""
        with directory.new_file() as file:
            file.close()

        assert file.is_closed

    def test_handle_is_released(self, directory: TemporaryDirectory) -> None:
        """Test that the OS handle is closed along with the file."""
        file = directory.new_file()
        handle = directory._resolve(file).handle

        file.close()

        assert handle.closed


class TestCopy:
    """Tests for copying out."""

    def test_copy_to_destination(self, directory: TemporaryDirectory, tmp_path: Path) -> None:
        """Test copying the contents to a new path."""
        file = directory.new_file(contents=bytes([0, 1, 2, 3, 4]))
        destination = tmp_path / "copied.bin"

        file.copy(destination)

        assert destination.read_bytes() == bytes([0, 1, 2, 3, 4])
        assert file.path.exists()

    def test_copy_includes_unsynchronized_writes(
        self, directory: TemporaryDirectory, tmp_path: Path
    ) -> None:
        """Test that the copy sees writes made without synchronize."""
        file = directory.new_file()
        file.write(b"fresh")
        destination = tmp_path / "copied.bin"

        file.copy(destination)

        assert destination.read_bytes() == b"fresh"

    def test_copy_refuses_existing_destination(
        self, directory: TemporaryDirectory, tmp_path: Path
    ) -> None:
        """Test that an existing destination is not overwritten."""
        file = directory.new_file(contents=b"new")
        destination = tmp_path / "existing"
        destination.write_bytes(b"old")

        with pytest.raises(FileExistsError):
            file.copy(destination)

    def test_copy_propagates_os_errors(
        self, directory: TemporaryDirectory, tmp_path: Path
    ) -> None:
        """Test that OS errors from the copy propagate unchanged."""
        file = directory.new_file()

        with pytest.raises(FileNotFoundError):
            file.copy(tmp_path / "missing" / "target")

    def test_copy_closed_file(self, directory: TemporaryDirectory, tmp_path: Path) -> None:
        """Test that copying a closed file raises AlreadyClosedException."""
        file = directory.new_file()
        file.close()

        with pytest.raises(AlreadyClosedException):
            file.copy(tmp_path / "target")


class TestSynchronize:
    """Tests for synchronize."""

    def test_calls_fsync(self, directory: TemporaryDirectory) -> None:
        """Test that synchronize flushes the descriptor with fsync."""
        file = directory.new_file()
        fileno = directory._resolve(file).handle.fileno()

        with patch("tempstore.temporary_file.os.fsync") as fsync:
            file.synchronize()

        fsync.assert_called_once_with(fileno)

    def test_fsync_errors_propagate(self, directory: TemporaryDirectory) -> None:
        """Test that an fsync failure is raised to the caller."""
        file = directory.new_file()

        with patch("tempstore.temporary_file.os.fsync", side_effect=OSError(5, "I/O error")):
            with pytest.raises(OSError):
                file.synchronize()


def test_direct_construction_is_unregistered(directory: TemporaryDirectory) -> None:
    """A handle the directory never issued is treated as closed."""
    stray = TemporaryFile(directory)

    assert stray.is_closed
    assert stray.read(1) is None
    with pytest.raises(AlreadyClosedException):
        stray.close()
    assert os.listdir(directory.location) == []
