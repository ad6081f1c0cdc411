"""Persistence for the jot history: load-or-create and full-file save."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import portalocker

from .history import HistoryLoadError, HistorySaveError, JotHistory, MalformedHistoryError
from .locking import DEFAULT_LOCK_TIMEOUT, locked_atomic_write
from .models import JotSet

logger = logging.getLogger(__name__)


def load_history(path: Path) -> JotHistory:
    """Read and validate the history stored at ``path``.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        HistoryLoadError: If the file cannot be read
        MalformedHistoryError: If the content is not a valid history
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except UnicodeDecodeError as e:
        raise MalformedHistoryError(f"History file {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise HistoryLoadError(f"Failed to read history file {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedHistoryError(f"History file {path} is not valid JSON: {e}") from e

    history = JotHistory.from_dict(data)
    logger.debug("Loaded %d sets from %s", len(history), path)
    return history


def load_or_create(path: Path, today: Optional[date] = None) -> JotHistory:
    """Load the history at ``path``, creating it if the file is missing.

    A new history holds one empty set in progress from ``today``.
    """
    try:
        return load_history(path)
    except FileNotFoundError:
        logger.info("No history at %s; starting a new one", path)
        history = JotHistory(current=JotSet.starting(today))
        save_history(history, path)
        return history


def save_history(history: JotHistory, path: Path, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """Overwrite ``path`` with the full serialized history.

    Raises:
        HistorySaveError: If serialization fails, the lock cannot be taken,
            or the file cannot be written
    """
    try:
        payload = json.dumps(history.to_dict(), indent=2)
    except (TypeError, ValueError) as e:
        raise HistorySaveError(f"Failed to serialize history: {e}") from e

    try:
        with locked_atomic_write(path, timeout=timeout) as f:
            f.write(payload)
            f.write("\n")
    except portalocker.LockException as e:
        raise HistorySaveError(f"History file {path} is locked by another process") from e
    except OSError as e:
        raise HistorySaveError(f"Failed to write history file {path}: {e}") from e

    logger.debug("Saved %d sets to %s", len(history), path)
