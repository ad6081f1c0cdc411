"""Lock and atomic-replace helpers for the history file."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, TextIO

import portalocker

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


def lock_path_for(path: Path) -> Path:
    """Lock file kept beside ``path``, e.g. ``.history.json.lock``."""
    return path.with_name(path.name + ".lock")


@contextmanager
def file_lock(path: Path, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Generator[None, None, None]:
    """Hold an exclusive lock for ``path`` while the block runs.

    Raises:
        portalocker.LockException: If another process holds the lock
            for longer than ``timeout`` seconds
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        logger.debug("Acquired lock %s", lock_path)
        yield


@contextmanager
def atomic_write(path: Path, encoding: str = "utf-8") -> Generator[TextIO, None, None]:
    """Open a temporary file that replaces ``path`` when the block exits.

    If the block raises, the temporary file is removed and ``path`` keeps
    its previous content.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(tmp_path, "w", encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


@contextmanager
def locked_atomic_write(
    path: Path, encoding: str = "utf-8", timeout: float = DEFAULT_LOCK_TIMEOUT
) -> Generator[TextIO, None, None]:
    """``atomic_write`` performed while holding ``file_lock``."""
    with file_lock(path, timeout=timeout):
        with atomic_write(path, encoding=encoding) as f:
            yield f
