"""Pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest

from tempstore.config import Settings
from tempstore.services import default_directory
from tempstore.services.container import ServiceContainer, create_container
from tempstore.temporary_directory import TemporaryDirectory

TEST_PREFIX = "org.tempstore.test."


def _build_test_settings(tmp_path: Path, **overrides) -> Settings:
    """Construct Settings rooted in the test's tmp_path, ignoring any .env file."""
    values = {
        "TEMPSTORE_PARENT_DIR": tmp_path,
        "TEMPSTORE_DIRECTORY_PREFIX": TEST_PREFIX,
        "TEMPSTORE_CLEANUP_AT_EXIT": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings whose temporary directories live under tmp_path."""
    return _build_test_settings(tmp_path)


@pytest.fixture
def directory(settings: Settings) -> Generator[TemporaryDirectory, None, None]:
    """An open temporary directory, closed after the test if still open."""
    tmp_dir = TemporaryDirectory.create(settings=settings)
    yield tmp_dir
    if not tmp_dir.is_closed:
        tmp_dir.close()


@pytest.fixture
def container(settings: Settings) -> Generator[ServiceContainer, None, None]:
    """Install a container built from test settings as the default-directory source."""
    test_container = create_container(settings)
    default_directory.configure_default_directory(test_container)
    yield test_container
    default_directory.teardown_default_directory()
