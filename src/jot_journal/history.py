"""Jot history - the timeline of jot sets and the roll-over state machine."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from .models import (
    Complete,
    DateInterval,
    InProgress,
    Jot,
    JotSet,
    utc_today,
)

logger = logging.getLogger(__name__)


class JotError(Exception):
    """Base exception for jot history operations."""
    pass


class HistoryLoadError(JotError):
    """Raised when the history file cannot be read."""
    pass


class MalformedHistoryError(HistoryLoadError):
    """Raised when stored content is not a valid history."""
    pass


class HistorySaveError(JotError):
    """Raised when the history cannot be serialized or written."""
    pass


class HistoryOrderError(JotError):
    """Raised when an operation would break start-date ordering."""
    pass


class JotIndexError(JotError, IndexError):
    """Raised when a jot or set index is out of range."""
    pass


class JotHistory:
    """Ordered timeline of jot sets.

    The archived sets are always closed; ``_current`` is the last set and
    the only one that may still be in progress. Keeping it in its own
    attribute means a history can never be empty. Sets and jots are
    copied on the way in and out, so callers never share them.
    """

    def __init__(self, current: Optional[JotSet] = None, archived: Optional[Iterable[JotSet]] = None):
        self._archived: list[JotSet] = [s.copy() for s in archived or []]
        self._current: JotSet = current.copy() if current is not None else JotSet.starting()
        self._check_archived()
        self._check_order(self._current.interval)

    # ========== Invariants ==========

    def _check_archived(self) -> None:
        previous: Optional[DateInterval] = None
        for position, jot_set in enumerate(self._archived):
            if not isinstance(jot_set.interval, Complete):
                raise MalformedHistoryError(
                    f"Set {position} is still in progress but is not the last set"
                )
            if previous is not None and jot_set.interval.start < previous.start:
                raise HistoryOrderError(
                    f"Set {position} starts {jot_set.interval.start} before the set preceding it"
                )
            previous = jot_set.interval

    def _check_order(self, interval: DateInterval) -> None:
        if self._archived and interval.start < self._archived[-1].interval.start:
            raise HistoryOrderError(
                f"Interval starting {interval.start} would precede archived set "
                f"starting {self._archived[-1].interval.start}"
            )

    # ========== Queries ==========

    @property
    def sets(self) -> list[JotSet]:
        """Copies of every set in stored order; the current set is last."""
        return [s.copy() for s in self._archived] + [self._current.copy()]

    def __len__(self) -> int:
        return len(self._archived) + 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JotHistory):
            return NotImplemented
        return self._archived == other._archived and self._current == other._current

    def current(self) -> JotSet:
        return self._current.copy()

    def set_at(self, index: int) -> JotSet:
        """Copy of the set at ``index`` in stored order."""
        if not 0 <= index < len(self):
            raise JotIndexError(f"No set at index {index}; history has {len(self)} sets")
        if index == len(self._archived):
            return self._current.copy()
        return self._archived[index].copy()

    def find_by_date(self, d: date) -> Optional[JotSet]:
        """Return the first set whose interval contains ``d``, or None.

        Sets are scanned in stored order. An in-progress interval has no
        upper bound, so it matches every date on or after its start.
        """
        for jot_set in self._iter_sets():
            if jot_set.interval.contains(d):
                return jot_set.copy()
        return None

    def date_intervals(self) -> list[DateInterval]:
        return [s.interval for s in self._iter_sets()]

    def index_of(self, jot: Jot) -> int:
        """Position of the first jot in the current set equal to ``jot``."""
        for index, candidate in enumerate(self._current.jots):
            if candidate == jot:
                return index
        raise JotIndexError(f"Jot not found in current set: {jot}")

    def _iter_sets(self):
        yield from self._archived
        yield self._current

    # ========== Mutations ==========

    def insert(self, jot: Jot) -> None:
        self._current.jots.append(jot.copy())

    def replace_jot(self, jot: Jot, index: int) -> None:
        """Overwrite the jot at ``index`` in the current set.

        Raises:
            JotIndexError: If ``index`` is not a position in the current set.
                The set is left untouched.
        """
        count = len(self._current.jots)
        if not 0 <= index < count:
            raise JotIndexError(
                f"No jot at index {index}; current set has {count} jots"
            )
        self._current.jots[index] = jot.copy()

    def replace_current_set(self, jot_set: JotSet) -> None:
        """Replace the whole current set, interval included.

        Raises:
            HistoryOrderError: If the new set would start before the last
                archived set.
        """
        self._check_order(jot_set.interval)
        self._current = jot_set.copy()

    def roll(self, today: Optional[date] = None) -> JotSet:
        """Close the current set and open a new one with its unfinished jots.

        Terminal jots stay behind in the closed set; non-terminal jots are
        copied forward with their state unchanged. The history always grows
        by exactly one set.

        Returns:
            A copy of the new current set.

        Raises:
            HistoryOrderError: If ``today`` is before the current set's start.
        """
        today = today or utc_today()
        last = self._current
        if today < last.interval.start:
            raise HistoryOrderError(
                f"Cannot roll on {today}: current set started {last.interval.start}"
            )

        rolled = last.non_terminal_jots()
        if isinstance(last.interval, InProgress):
            last.interval = last.interval.close(today)
        else:
            logger.warning(
                "Rolling a set that is already closed (%s); its interval is kept", last.interval
            )

        self._archived.append(last)
        self._current = JotSet(interval=InProgress(start=today), jots=rolled)
        logger.debug(
            "Rolled %d of %d jots into set starting %s",
            len(rolled), len(last.jots), today,
        )
        return self._current.copy()

    # ========== Serialization ==========

    def to_dict(self) -> dict:
        return {"sets": [s.to_dict() for s in self._iter_sets()]}

    @classmethod
    def from_dict(cls, data: dict) -> "JotHistory":
        """Build a history from its stored form.

        Raises:
            MalformedHistoryError: If the structure is invalid, empty, or
                its sets violate the ordering invariants.
        """
        try:
            raw_sets = data["sets"]
            sets = [JotSet.from_dict(s) for s in raw_sets]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedHistoryError(f"History content is malformed: {e}") from e

        if not sets:
            raise MalformedHistoryError("History contains no sets")

        try:
            return cls(current=sets[-1], archived=sets[:-1])
        except HistoryOrderError as e:
            raise MalformedHistoryError(str(e)) from e

    def render(self) -> str:
        return "\n".join(f"- {interval}" for interval in self.date_intervals())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"JotHistory(sets={len(self)}, current={self._current.interval!r})"
