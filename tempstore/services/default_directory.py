"""Process-wide default temporary directory.

Code that can should pass a ``TemporaryDirectory`` down explicitly. For the
rest, ``get_default_directory()`` lazily creates one directory per process
from the service container, and removes it again at interpreter exit or when
``teardown_default_directory()`` is called.
"""

import atexit
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from tempstore.services.container import ServiceContainer, create_container
from tempstore.temporary_directory import TemporaryDirectory
from tempstore.temporary_file import TemporaryFile

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_container: ServiceContainer | None = None
_created = False
_exit_hook_registered = False


def get_default_directory() -> TemporaryDirectory:
    """Return the default directory, creating it on first use.

    A default directory that has been closed explicitly is replaced by a
    fresh one.
    """
    global _created, _exit_hook_registered

    with _lock:
        container = _get_container()
        fresh = not _created
        directory = container.default_directory()
        if directory.is_closed:
            logger.info(
                "Default temporary directory %s was closed; creating a new one",
                directory.location,
            )
            container.default_directory.reset()
            directory = container.default_directory()
            fresh = True

        if fresh:
            directory.remove_at_exit = container.config().TEMPSTORE_CLEANUP_AT_EXIT
            logger.debug("Using default temporary directory %s", directory.location)
        _created = True

        if not _exit_hook_registered:
            atexit.register(_teardown_at_exit)
            _exit_hook_registered = True
        return directory


def teardown_default_directory() -> None:
    """Close the default directory if one was created.

    The next ``get_default_directory()`` call creates a new one.

    Raises:
        CleanupFailedException: If some files could not be closed
        OSError: If the directory could not be removed
    """
    with _lock:
        _teardown_locked()


def configure_default_directory(container: ServiceContainer) -> None:
    """Use container for future default directories.

    The current default directory, if any, is torn down first.
    """
    global _container

    with _lock:
        _teardown_locked()
        _container = container


@contextmanager
def temporary_file(
    directory: TemporaryDirectory | None = None,
    prefix: str = "",
    suffix: str = "",
    contents: bytes | None = None,
) -> Iterator[TemporaryFile]:
    """Create a temporary file that is closed when the block exits.

    Uses the default directory unless one is given.
    """
    if directory is None:
        directory = get_default_directory()

    file = directory.new_file(prefix=prefix, suffix=suffix, contents=contents)
    try:
        yield file
    finally:
        if not file.is_closed:
            file.close()


def _get_container() -> ServiceContainer:
    global _container

    if _container is None:
        _container = create_container()
    return _container


def _teardown_locked() -> None:
    global _created

    if _container is None or not _created:
        return

    directory = _container.default_directory()
    _container.default_directory.reset()
    _created = False

    if not directory.is_closed:
        directory.close()


def _teardown_at_exit() -> None:
    """Remove the default directory at interpreter exit."""
    if _container is None or not _container.config().TEMPSTORE_CLEANUP_AT_EXIT:
        return
    try:
        teardown_default_directory()
    except Exception as e:
        logger.error("Error removing default temporary directory at exit: %s", e)
