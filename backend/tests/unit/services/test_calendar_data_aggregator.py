"""
Tests for CalendarDataAggregator projections and grid layout.
"""

from datetime import date, datetime

import pytest

from app.services.calendar_data_aggregator import CalendarDataAggregator, to_projection

END = (23, 59, 59, 999000)


def _block(block_id, start, end, **extra):
    block = {
        "id": block_id,
        "title": f"Block {block_id}",
        "description": None,
        "start_time": start,
        "end_time": end,
        "color": None,
        "task_id": None,
        "task_title": "",
    }
    block.update(extra)
    return block


@pytest.fixture
def aggregator():
    return CalendarDataAggregator()


class TestDayView:
    def test_position_on_day_grid(self, aggregator):
        blocks = [_block("a", datetime(2023, 6, 15, 9), datetime(2023, 6, 15, 9, 30))]

        result = aggregator.aggregate(
            blocks, "day", datetime(2023, 6, 15), datetime(2023, 6, 15, *END)
        )

        assert result[0]["position"] == {"top": 375.0, "left": 0.0, "height": 20.8333, "width": 100.0}

    def test_block_from_previous_day_is_clipped(self, aggregator):
        blocks = [_block("a", datetime(2023, 6, 14, 23), datetime(2023, 6, 15, 1))]

        result = aggregator.aggregate(
            blocks, "day", datetime(2023, 6, 15), datetime(2023, 6, 15, *END)
        )

        assert result[0]["position"]["top"] == 0.0
        assert result[0]["position"]["height"] == 41.6667

    def test_blocks_outside_range_are_dropped(self, aggregator):
        blocks = [
            _block("before", datetime(2023, 6, 14, 9), datetime(2023, 6, 14, 10)),
            _block("inside", datetime(2023, 6, 15, 9), datetime(2023, 6, 15, 10)),
            _block("after", datetime(2023, 6, 16, 0), datetime(2023, 6, 16, 1)),
        ]

        result = aggregator.aggregate(
            blocks, "day", datetime(2023, 6, 15), datetime(2023, 6, 15, *END)
        )

        assert [p["id"] for p in result] == ["inside"]

    def test_block_ending_at_range_start_is_dropped(self, aggregator):
        blocks = [_block("a", datetime(2023, 6, 14, 23), datetime(2023, 6, 15, 0))]

        result = aggregator.aggregate(
            blocks, "day", datetime(2023, 6, 15), datetime(2023, 6, 15, *END)
        )

        assert result == []


class TestWeekView:
    def test_column_per_day_from_week_start(self, aggregator):
        # Week of Sunday 2023-06-11; Thursday is column 4
        blocks = [_block("a", datetime(2023, 6, 15, 12), datetime(2023, 6, 15, 13))]

        result = aggregator.aggregate(
            blocks, "week", datetime(2023, 6, 11), datetime(2023, 6, 17, *END)
        )

        position = result[0]["position"]
        assert position["left"] == 57.1429
        assert position["width"] == 14.2857
        assert position["top"] == 500.0
        assert position["height"] == 41.6667

    def test_first_day_is_column_zero(self, aggregator):
        blocks = [_block("a", datetime(2023, 6, 11, 0), datetime(2023, 6, 11, 6))]

        result = aggregator.aggregate(
            blocks, "week", datetime(2023, 6, 11), datetime(2023, 6, 17, *END)
        )

        assert result[0]["position"]["left"] == 0.0
        assert result[0]["position"]["height"] == 250.0


class TestMonthView:
    def test_display_date_instead_of_position(self, aggregator):
        blocks = [_block("a", datetime(2023, 6, 15, 9), datetime(2023, 6, 15, 10))]

        result = aggregator.aggregate(
            blocks, "month", datetime(2023, 6, 1), datetime(2023, 6, 30, *END)
        )

        assert result[0]["display_date"] == date(2023, 6, 15)
        assert "position" not in result[0]

    def test_one_projection_per_block(self, aggregator):
        blocks = [
            _block("a", datetime(2023, 6, 15, 9), datetime(2023, 6, 15, 10)),
            _block("b", datetime(2023, 6, 15, 11), datetime(2023, 6, 15, 12)),
        ]

        result = aggregator.aggregate(
            blocks, "month", datetime(2023, 6, 1), datetime(2023, 6, 30, *END)
        )

        assert len(result) == 2


def test_result_is_sorted_and_input_untouched(aggregator):
    late = _block("late", datetime(2023, 6, 15, 15), datetime(2023, 6, 15, 16))
    early = _block("early", datetime(2023, 6, 15, 8), datetime(2023, 6, 15, 9))

    result = aggregator.aggregate(
        [late, early], "day", datetime(2023, 6, 15), datetime(2023, 6, 15, *END)
    )

    assert [p["id"] for p in result] == ["early", "late"]
    assert "position" not in late


def test_to_projection_from_model(test_user, make_task, make_time_block):
    task = make_task(test_user, title="Quarterly report")
    block = make_time_block(
        test_user,
        datetime(2023, 6, 15, 9),
        datetime(2023, 6, 15, 10),
        title="Write",
        color="#ff0000",
        task_id=task.id,
    )

    projection = to_projection(block)

    assert projection == {
        "id": block.id,
        "title": "Write",
        "description": None,
        "start_time": datetime(2023, 6, 15, 9),
        "end_time": datetime(2023, 6, 15, 10),
        "color": "#ff0000",
        "task_id": task.id,
        "task_title": "Quarterly report",
    }
