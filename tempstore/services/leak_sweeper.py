"""Detection and removal of temporary directories left behind by dead processes.

Default directory names end in ``.<pid>`` of the process that created them.
A directory whose process no longer exists was never cleaned up (the process
crashed or was killed) and can safely be removed.
"""

import errno
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from tempstore.utils import fs
from tempstore.utils.base32 import IDENTIFIER_LENGTH
from tempstore.utils.metrics import record_operation

logger = logging.getLogger(__name__)


@dataclass
class LeakedDirectory:
    """A temporary directory whose owning process has exited."""

    path: Path
    pid: int


@dataclass
class SweepResult:
    """Outcome of a sweep."""

    removed: list[LeakedDirectory] = field(default_factory=list)
    failed: list[tuple[LeakedDirectory, OSError]] = field(default_factory=list)


def is_process_alive(pid: int) -> bool:
    """Check whether a process with the given id exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to another user
        return True
    except OSError as e:
        return e.errno != errno.ESRCH
    return True


def find_leaked_directories(parent: Path, prefix: str) -> list[LeakedDirectory]:
    """List directories under parent named ``<prefix><token>.<pid>`` with a dead pid.

    A prefix containing separators is treated like ``TemporaryDirectory.create``
    treats it: the leading components select a subdirectory of parent.
    """
    *nested, leaf_prefix = prefix.split("/")
    search_dir = parent.joinpath(*nested)
    if not search_dir.is_dir():
        return []

    pattern = re.compile(
        rf"^{re.escape(leaf_prefix)}[A-Z2-7]{{{IDENTIFIER_LENGTH}}}\.(\d+)$"
    )
    leaked: list[LeakedDirectory] = []
    for entry in sorted(search_dir.iterdir()):
        match = pattern.match(entry.name)
        if match is None or entry.is_symlink() or not entry.is_dir():
            continue

        pid = int(match.group(1))
        if pid == os.getpid() or is_process_alive(pid):
            continue
        leaked.append(LeakedDirectory(path=entry, pid=pid))
    return leaked


def sweep_leaked_directories(
    parent: Path, prefix: str, dry_run: bool = False
) -> SweepResult:
    """Remove leaked directories, continuing past individual failures."""
    result = SweepResult()
    for leaked in find_leaked_directories(parent, prefix):
        if dry_run:
            result.removed.append(leaked)
            continue

        try:
            fs.remove_tree(leaked.path)
        except OSError as e:
            logger.error("Failed to remove leaked directory %s: %s", leaked.path, e)
            record_operation("sweep", "error")
            result.failed.append((leaked, e))
            continue

        logger.info("Removed leaked directory %s (pid %d)", leaked.path, leaked.pid)
        record_operation("sweep", "success")
        result.removed.append(leaked)
    return result
