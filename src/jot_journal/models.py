"""Data models for jots, date intervals, and jot sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Union


class JotState(Enum):
    """Lifecycle state of a jot."""
    COMPLETED = "Completed"
    REMOVED = "Removed"
    IN_PROGRESS = "InProgress"
    FAILED = "Failed"
    NOT_STARTED = "NotStarted"

    @classmethod
    def _missing_(cls, value):
        # Files written by older versions spell this "InProgess"
        if value == "InProgess":
            return cls.IN_PROGRESS
        return None

    @property
    def display(self) -> str:
        return _STATE_DISPLAY[self]

    @property
    def cli_name(self) -> str:
        """Name accepted on the command line, e.g. "not-started"."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def from_cli(cls, text: str) -> "JotState":
        """Parse a command-line state name.

        Accepts the CLI names as well as the stored values, ignoring case
        and treating ``_`` and ``-`` alike.

        Raises:
            ValueError: If the name matches no state
        """
        key = text.strip().lower().replace("_", "-")
        for state in cls:
            if key in (state.cli_name, state.value.lower()):
                return state
        names = ", ".join(s.cli_name for s in cls)
        raise ValueError(f"Unknown jot state '{text}'. Expected one of: {names}")

    def __str__(self) -> str:
        return self.display


_STATE_DISPLAY = {
    JotState.COMPLETED: "Completed",
    JotState.REMOVED: "Removed",
    JotState.IN_PROGRESS: "In Progress",
    JotState.FAILED: "Failed",
    JotState.NOT_STARTED: "Not Started",
}

TERMINAL_STATES = frozenset({JotState.COMPLETED, JotState.REMOVED, JotState.FAILED})


def utc_today() -> date:
    """Get the current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def format_date(d: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return d.isoformat()


def parse_date(s: str) -> date:
    """Parse a YYYY-MM-DD date string."""
    return date.fromisoformat(s)


@dataclass
class Jot:
    """A single jot. Equality is structural (content and state)."""
    content: str
    state: JotState = JotState.NOT_STARTED

    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def copy(self) -> "Jot":
        return Jot(content=self.content, state=self.state)

    def to_dict(self) -> dict:
        return {"content": self.content, "state": self.state.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Jot":
        # "value" is the key used by older history files
        content = data["content"] if "content" in data else data["value"]
        return cls(content=str(content), state=JotState(data["state"]))

    def __str__(self) -> str:
        return f"{self.content}: {self.state.display}"


@dataclass(frozen=True)
class InProgress:
    """An open interval that started on ``start`` and has no end yet."""
    start: date

    TAG = "InProgress"

    def contains(self, d: date) -> bool:
        return d >= self.start

    def close(self, today: date) -> "Complete":
        return Complete(start=self.start, end=today)

    def to_dict(self) -> dict:
        return {self.TAG: {"start": format_date(self.start)}}

    def __str__(self) -> str:
        return f"In Progress, start: {format_date(self.start)}"


@dataclass(frozen=True)
class Complete:
    """A closed interval. ``end >= start`` is expected but not checked."""
    start: date
    end: date

    TAG = "Complete"

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def close(self, today: date) -> "Complete":
        return self

    def to_dict(self) -> dict:
        return {self.TAG: {"start": format_date(self.start), "end": format_date(self.end)}}

    def __str__(self) -> str:
        return f"Complete, start: {format_date(self.start)}, end {format_date(self.end)}"


DateInterval = Union[InProgress, Complete]


def interval_from_dict(data: dict) -> DateInterval:
    """Build an interval from its tagged form, e.g. ``{"InProgress": {...}}``.

    Raises:
        ValueError: If the tag is not exactly one of InProgress or Complete
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Interval must have exactly one tag, got: {data!r}")
    tag, body = next(iter(data.items()))
    if tag == InProgress.TAG:
        return InProgress(start=parse_date(body["start"]))
    if tag == Complete.TAG:
        return Complete(start=parse_date(body["start"]), end=parse_date(body["end"]))
    raise ValueError(f"Unknown interval tag: {tag}")


@dataclass
class JotSet:
    """The jots active during one interval, in insertion order."""
    interval: DateInterval
    jots: list[Jot] = field(default_factory=list)

    @classmethod
    def starting(cls, today: Optional[date] = None) -> "JotSet":
        """An empty set whose interval is in progress from ``today``."""
        return cls(interval=InProgress(start=today or utc_today()))

    def copy(self) -> "JotSet":
        return JotSet(interval=self.interval, jots=[j.copy() for j in self.jots])

    def non_terminal_jots(self) -> list[Jot]:
        return [j.copy() for j in self.jots if not j.is_terminal()]

    def filter_by_states(self, states: Iterable[JotState]) -> "JotSet":
        """Keep only jots whose state is in ``states``.

        An empty ``states`` means no filtering and returns a full copy.
        """
        wanted = set(states)
        if not wanted:
            return self.copy()
        return JotSet(
            interval=self.interval,
            jots=[j.copy() for j in self.jots if j.state in wanted],
        )

    def to_dict(self) -> dict:
        return {
            "jots": [j.to_dict() for j in self.jots],
            "interval": self.interval.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JotSet":
        return cls(
            interval=interval_from_dict(data["interval"]),
            jots=[Jot.from_dict(j) for j in data.get("jots", [])],
        )

    def render(self) -> str:
        """Render as a title line followed by one bullet per jot."""
        lines = [f"Jots: {self.interval}"]
        lines.extend(f"- {j}" for j in self.jots)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
