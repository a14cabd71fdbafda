"""
Tests for TimeBlockConflictChecker and the half-open overlap rule.
"""

from datetime import datetime

import pytest

from app.core.exceptions import TimeBlockConflictException
from app.services.conflict_checker import TimeBlockConflictChecker, intervals_overlap


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2023, 6, 15, hour, minute)


class TestIntervalsOverlap:
    def test_partial_overlap(self):
        assert intervals_overlap(_at(9), _at(9, 30), _at(9, 15), _at(9, 45))

    def test_containment(self):
        assert intervals_overlap(_at(9), _at(12), _at(10), _at(11))
        assert intervals_overlap(_at(10), _at(11), _at(9), _at(12))

    def test_touching_endpoints_do_not_overlap(self):
        assert not intervals_overlap(_at(9), _at(9, 30), _at(9, 30), _at(10))
        assert not intervals_overlap(_at(9, 30), _at(10), _at(9), _at(9, 30))

    def test_disjoint(self):
        assert not intervals_overlap(_at(9), _at(10), _at(11), _at(12))

    def test_identical_intervals_overlap(self):
        assert intervals_overlap(_at(9), _at(10), _at(9), _at(10))


@pytest.mark.unit
class TestTimeBlockConflictChecker:
    @pytest.fixture
    def checker(self, db):
        return TimeBlockConflictChecker(db)

    def test_no_blocks_means_no_conflicts(self, checker, test_user):
        assert checker.find_conflicts(test_user.id, _at(9), _at(10)) == []
        assert checker.has_conflicts(test_user.id, _at(9), _at(10)) is False

    def test_overlapping_block_is_reported(self, checker, test_user, make_time_block):
        standup = make_time_block(test_user, _at(9), _at(9, 30), title="Standup")

        conflicts = checker.find_conflicts(test_user.id, _at(9, 15), _at(9, 45))

        assert [c.id for c in conflicts] == [standup.id]

    def test_adjacent_block_is_not_a_conflict(self, checker, test_user, make_time_block):
        make_time_block(test_user, _at(9), _at(9, 30))

        assert checker.find_conflicts(test_user.id, _at(9, 30), _at(10)) == []
        assert checker.find_conflicts(test_user.id, _at(8, 30), _at(9)) == []

    def test_conflicts_are_ordered_by_start(self, checker, test_user, make_time_block):
        late = make_time_block(test_user, _at(11), _at(12), title="Late")
        early = make_time_block(test_user, _at(9), _at(10), title="Early")

        conflicts = checker.find_conflicts(test_user.id, _at(8), _at(13))

        assert [c.id for c in conflicts] == [early.id, late.id]

    def test_excluded_block_is_ignored(self, checker, test_user, make_time_block):
        block = make_time_block(test_user, _at(9), _at(10))

        assert checker.find_conflicts(test_user.id, _at(9), _at(11), exclude_block_id=block.id) == []

    def test_other_owners_blocks_never_conflict(self, checker, test_user, other_user, make_time_block):
        make_time_block(other_user, _at(9), _at(10))

        assert checker.has_conflicts(test_user.id, _at(9), _at(10)) is False

    def test_check_conflicts_returns_summaries(self, checker, test_user, make_time_block):
        standup = make_time_block(test_user, _at(9), _at(9, 30), title="Standup")

        summaries = checker.check_conflicts(test_user.id, _at(9, 15), _at(9, 45))

        assert summaries == [
            {
                "id": standup.id,
                "title": "Standup",
                "start_time": "2023-06-15T09:00:00",
                "end_time": "2023-06-15T09:30:00",
            }
        ]

    def test_ensure_no_conflicts_raises_with_conflicting_blocks(
        self, checker, test_user, make_time_block
    ):
        make_time_block(test_user, _at(9), _at(9, 30), title="Standup")

        with pytest.raises(TimeBlockConflictException) as exc_info:
            checker.ensure_no_conflicts(test_user.id, _at(9, 15), _at(9, 45))

        assert [c["title"] for c in exc_info.value.conflicts] == ["Standup"]
        assert exc_info.value.to_http_exception().status_code == 409
