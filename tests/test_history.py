"""Tests for JotHistory queries, mutations, and roll-over."""

import logging
from datetime import date

import pytest

from jot_journal.history import (
    HistoryOrderError,
    JotError,
    JotHistory,
    JotIndexError,
    MalformedHistoryError,
)
from jot_journal.models import Complete, InProgress, Jot, JotSet, JotState, utc_today


class TestConstruction:
    """Tests for building a history."""

    def test_default_history_has_one_open_set(self):
        """A fresh history holds one empty set in progress from today."""
        history = JotHistory()
        assert len(history) == 1
        assert history.current() == JotSet(interval=InProgress(start=utc_today()))

    def test_archived_sets_must_be_closed(self):
        with pytest.raises(MalformedHistoryError):
            JotHistory(
                archived=[JotSet(interval=InProgress(date(2024, 1, 1)))],
                current=JotSet(interval=InProgress(date(2024, 1, 8))),
            )

    def test_archived_sets_must_be_ordered(self):
        with pytest.raises(HistoryOrderError):
            JotHistory(
                archived=[
                    JotSet(interval=Complete(date(2024, 1, 8), date(2024, 1, 14))),
                    JotSet(interval=Complete(date(2024, 1, 1), date(2024, 1, 7))),
                ],
                current=JotSet(interval=InProgress(date(2024, 1, 15))),
            )

    def test_current_must_not_precede_archive(self):
        with pytest.raises(HistoryOrderError):
            JotHistory(
                archived=[JotSet(interval=Complete(date(2024, 1, 8), date(2024, 1, 14)))],
                current=JotSet(interval=InProgress(date(2024, 1, 1))),
            )


class TestQueries:
    """Tests for read-only history operations."""

    def test_current_returns_copy(self, history):
        """Mutating the returned set leaves the history untouched."""
        snapshot = history.current()
        snapshot.jots.append(Jot("sneaky"))
        snapshot.jots[0].state = JotState.FAILED
        assert history.current().jots == [
            Jot("buy milk", JotState.NOT_STARTED),
            Jot("ship report", JotState.COMPLETED),
        ]

    def test_sets_in_stored_order(self, three_set_history):
        starts = [s.interval.start for s in three_set_history.sets]
        assert starts == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]

    def test_date_intervals(self, three_set_history):
        assert three_set_history.date_intervals() == [
            Complete(date(2024, 1, 1), date(2024, 1, 7)),
            Complete(date(2024, 1, 8), date(2024, 1, 14)),
            InProgress(date(2024, 1, 15)),
        ]

    @pytest.mark.parametrize("day,expected_start", [
        (date(2024, 1, 1), date(2024, 1, 1)),
        (date(2024, 1, 7), date(2024, 1, 1)),
        (date(2024, 1, 10), date(2024, 1, 8)),
        (date(2024, 1, 15), date(2024, 1, 15)),
        (date(2025, 6, 1), date(2024, 1, 15)),
    ])
    def test_find_by_date(self, three_set_history, day, expected_start):
        found = three_set_history.find_by_date(day)
        assert found is not None
        assert found.interval.start == expected_start

    def test_find_by_date_before_history(self, three_set_history):
        """A date before every start is a normal "not found"."""
        assert three_set_history.find_by_date(date(2023, 12, 31)) is None

    def test_find_by_date_in_gap(self):
        """A date between two intervals matches nothing."""
        history = JotHistory(
            archived=[JotSet(interval=Complete(date(2024, 1, 1), date(2024, 1, 3)))],
            current=JotSet(interval=InProgress(date(2024, 1, 10))),
        )
        assert history.find_by_date(date(2024, 1, 5)) is None

    def test_find_by_date_first_match_wins(self):
        """On overlap, the earlier stored set is returned."""
        history = JotHistory(
            archived=[
                JotSet(interval=Complete(date(2024, 1, 1), date(2024, 1, 8)), jots=[Jot("first")]),
            ],
            current=JotSet(interval=InProgress(date(2024, 1, 8)), jots=[Jot("second")]),
        )
        assert history.find_by_date(date(2024, 1, 8)).jots == [Jot("first")]

    def test_set_at(self, three_set_history):
        assert three_set_history.set_at(1).jots[0] == Jot("fix login", JotState.FAILED)
        assert three_set_history.set_at(2) == three_set_history.current()

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_set_at_out_of_range(self, three_set_history, index):
        with pytest.raises(JotIndexError):
            three_set_history.set_at(index)

    def test_index_of_first_match(self):
        """Duplicate jots resolve to the first position."""
        history = JotHistory(current=JotSet(
            interval=InProgress(date(2024, 1, 1)),
            jots=[Jot("a"), Jot("dup", JotState.FAILED), Jot("b"), Jot("dup", JotState.FAILED)],
        ))
        assert history.index_of(Jot("dup", JotState.FAILED)) == 1

    def test_index_of_missing(self, history):
        with pytest.raises(JotIndexError):
            history.index_of(Jot("not there"))

    def test_render(self, three_set_history):
        assert three_set_history.render() == (
            "- Complete, start: 2024-01-01, end 2024-01-07\n"
            "- Complete, start: 2024-01-08, end 2024-01-14\n"
            "- In Progress, start: 2024-01-15"
        )


class TestMutations:
    """Tests for insert and replace operations."""

    def test_insert_appends_to_current(self, three_set_history):
        three_set_history.insert(Jot("write tests", JotState.IN_PROGRESS))
        assert three_set_history.current().jots[-1] == Jot("write tests", JotState.IN_PROGRESS)
        assert len(three_set_history.set_at(0).jots) == 1
        assert len(three_set_history.set_at(1).jots) == 2

    def test_replace_jot(self, history):
        history.replace_jot(Jot("buy oat milk", JotState.COMPLETED), 0)
        assert history.current().jots == [
            Jot("buy oat milk", JotState.COMPLETED),
            Jot("ship report", JotState.COMPLETED),
        ]

    def test_replace_jot_out_of_bounds(self, history):
        """An index past the end raises and leaves the set unmodified."""
        before = history.current()
        with pytest.raises(JotIndexError, match="index 5"):
            history.replace_jot(Jot("new"), 5)
        assert history.current() == before

    def test_replace_jot_negative_index(self, history):
        """Negative positions are rejected rather than counting from the end."""
        with pytest.raises(JotIndexError):
            history.replace_jot(Jot("new"), -1)

    def test_index_error_is_catchable_as_both(self, history):
        with pytest.raises(IndexError):
            history.replace_jot(Jot("new"), 2)
        with pytest.raises(JotError):
            history.replace_jot(Jot("new"), 2)

    def test_replace_current_set(self, three_set_history):
        replacement = JotSet(interval=InProgress(date(2024, 1, 16)), jots=[Jot("fresh")])
        three_set_history.replace_current_set(replacement)
        assert three_set_history.current() == replacement
        assert len(three_set_history) == 3
        assert three_set_history.set_at(1).jots[0] == Jot("fix login", JotState.FAILED)

    def test_replace_current_set_keeps_order(self, three_set_history):
        with pytest.raises(HistoryOrderError):
            three_set_history.replace_current_set(JotSet(interval=InProgress(date(2024, 1, 2))))


class TestOwnership:
    """The history keeps its own copies of everything handed to it."""

    def test_inserted_jot_is_copied(self, history):
        jot = Jot("call bank")
        history.insert(jot)
        jot.state = JotState.COMPLETED
        assert history.current().jots[-1] == Jot("call bank", JotState.NOT_STARTED)

    def test_replacement_jot_is_copied(self, history):
        jot = Jot("buy oat milk")
        history.replace_jot(jot, 0)
        jot.content = "changed"
        assert history.current().jots[0].content == "buy oat milk"

    def test_archived_sets_are_copied(self):
        old = JotSet(interval=Complete(date(2024, 1, 1), date(2024, 1, 7)))
        history = JotHistory(archived=[old], current=JotSet(interval=InProgress(date(2024, 1, 8))))

        old.interval = InProgress(date(2024, 1, 1))
        old.jots.append(Jot("sneaked in"))

        assert history.date_intervals() == [
            Complete(date(2024, 1, 1), date(2024, 1, 7)),
            InProgress(date(2024, 1, 8)),
        ]
        assert history.set_at(0).jots == []

    def test_current_set_is_copied(self, week_one_set):
        history = JotHistory(current=week_one_set)
        week_one_set.jots.clear()
        assert len(history.current().jots) == 2

    def test_replaced_current_set_is_copied(self, three_set_history):
        replacement = JotSet(interval=InProgress(date(2024, 1, 16)))
        three_set_history.replace_current_set(replacement)

        replacement.interval = InProgress(date(2020, 1, 1))

        assert three_set_history.current().interval == InProgress(date(2024, 1, 16))
        starts = [i.start for i in three_set_history.date_intervals()]
        assert starts == sorted(starts)


class TestRoll:
    """Tests for the roll-over algorithm."""

    def test_roll_scenario(self, history):
        """Rolling on 2024-01-08 archives the week and carries "buy milk"."""
        history.roll(today=date(2024, 1, 8))

        sets = history.sets
        assert len(sets) == 2
        assert sets[0].interval == Complete(start=date(2024, 1, 1), end=date(2024, 1, 8))
        assert sets[0].jots == [
            Jot("buy milk", JotState.NOT_STARTED),
            Jot("ship report", JotState.COMPLETED),
        ]
        assert sets[1].interval == InProgress(start=date(2024, 1, 8))
        assert sets[1].jots == [Jot("buy milk", JotState.NOT_STARTED)]

    def test_roll_returns_new_current(self, history):
        new_set = history.roll(today=date(2024, 1, 8))
        assert new_set == history.current()

    def test_roll_defaults_to_today(self):
        history = JotHistory(current=JotSet(interval=InProgress(date(2020, 1, 1))))
        history.roll()
        assert history.current().interval == InProgress(start=utc_today())

    def test_roll_preserves_in_progress_state(self, three_set_history):
        three_set_history.roll(today=date(2024, 1, 22))
        assert three_set_history.current().jots == [Jot("review docs", JotState.IN_PROGRESS)]

    def test_roll_same_day(self, history):
        """Rolling on the start day gives a zero-length closed interval."""
        history.roll(today=date(2024, 1, 1))
        assert history.set_at(0).interval == Complete(date(2024, 1, 1), date(2024, 1, 1))
        assert history.current().interval == InProgress(date(2024, 1, 1))

    def test_roll_twice(self, history):
        history.roll(today=date(2024, 1, 8))
        history.roll(today=date(2024, 1, 15))
        assert len(history) == 3
        assert history.set_at(1).interval == Complete(date(2024, 1, 8), date(2024, 1, 15))
        assert history.current().jots == [Jot("buy milk", JotState.NOT_STARTED)]

    def test_roll_before_start_rejected(self, history):
        """Rolling with a date before the current start would break ordering."""
        with pytest.raises(HistoryOrderError):
            history.roll(today=date(2023, 12, 31))
        assert len(history) == 1

    def test_roll_closed_current_keeps_interval(self, history, caplog):
        """A current set that is already closed keeps its end and is flagged."""
        closed = JotSet(
            interval=Complete(date(2024, 1, 1), date(2024, 1, 5)),
            jots=[Jot("left over", JotState.IN_PROGRESS)],
        )
        history.replace_current_set(closed)

        with caplog.at_level(logging.WARNING, logger="jot_journal.history"):
            history.roll(today=date(2024, 1, 8))

        assert history.set_at(0).interval == Complete(date(2024, 1, 1), date(2024, 1, 5))
        assert history.current() == JotSet(
            interval=InProgress(date(2024, 1, 8)),
            jots=[Jot("left over", JotState.IN_PROGRESS)],
        )
        assert "already closed" in caplog.text

    def test_rolled_jots_are_independent(self, history):
        """Editing a carried jot does not touch the archived original."""
        history.roll(today=date(2024, 1, 8))
        history.replace_jot(Jot("buy milk", JotState.COMPLETED), 0)
        assert history.set_at(0).jots[0] == Jot("buy milk", JotState.NOT_STARTED)


class TestSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip(self, three_set_history):
        assert JotHistory.from_dict(three_set_history.to_dict()) == three_set_history

    def test_to_dict_shape(self, history):
        assert history.to_dict() == {
            "sets": [
                {
                    "jots": [
                        {"content": "buy milk", "state": "NotStarted"},
                        {"content": "ship report", "state": "Completed"},
                    ],
                    "interval": {"InProgress": {"start": "2024-01-01"}},
                }
            ]
        }

    @pytest.mark.parametrize("data", [
        {},
        {"sets": []},
        {"sets": "nope"},
        {"sets": [{"jots": []}]},
        {"sets": [{"jots": [{"content": "x", "state": "Paused"}],
                   "interval": {"InProgress": {"start": "2024-01-01"}}}]},
        {"sets": [{"jots": [], "interval": {"InProgress": {"start": "not a date"}}}]},
        {"sets": [
            {"jots": [], "interval": {"InProgress": {"start": "2024-01-01"}}},
            {"jots": [], "interval": {"InProgress": {"start": "2024-01-08"}}},
        ]},
        {"sets": [
            {"jots": [], "interval": {"Complete": {"start": "2024-01-08", "end": "2024-01-14"}}},
            {"jots": [], "interval": {"InProgress": {"start": "2024-01-01"}}},
        ]},
        [],
    ])
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(MalformedHistoryError):
            JotHistory.from_dict(data)

    def test_from_dict_allows_closed_current(self):
        """The last set may be closed; only earlier sets must be."""
        history = JotHistory.from_dict({"sets": [
            {"jots": [], "interval": {"Complete": {"start": "2024-01-01", "end": "2024-01-08"}}},
        ]})
        assert history.current().interval == Complete(date(2024, 1, 1), date(2024, 1, 8))
