"""
Tests for mobile and low-memory payload reduction.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.exceptions import ValidationException
from app.services.mobile_optimization import (
    compress_time_blocks,
    decompress_time_blocks,
    optimize_for_low_memory,
    optimize_for_mobile,
    reduce_resolution,
    summarize_by_day,
)


def _block(block_id, start, minutes=60, **extra):
    block = {
        "id": block_id,
        "title": f"Block {block_id}",
        "description": "Long description",
        "start_time": start,
        "end_time": start + timedelta(minutes=minutes),
        "color": None,
        "task_id": None,
        "task_title": "",
    }
    block.update(extra)
    return block


class TestOptimizeForMobile:
    def test_drops_description_without_mutating_input(self):
        original = _block("a", datetime(2023, 6, 15, 9))

        result = optimize_for_mobile([original], is_mobile=True)

        assert "description" not in result[0]
        assert original["description"] == "Long description"

    def test_desktop_keeps_description(self):
        result = optimize_for_mobile([_block("a", datetime(2023, 6, 15, 9))], is_mobile=False)

        assert result[0]["description"] == "Long description"


class TestReduceResolution:
    def test_desktop_is_unchanged(self):
        blocks = [_block(str(i), datetime(2023, 6, 1, 8) + timedelta(hours=i)) for i in range(60)]

        assert len(reduce_resolution(blocks, "week", is_mobile=False)) == 60

    def test_mobile_day_is_unchanged(self):
        blocks = [_block(str(i), datetime(2023, 6, 15, 0) + timedelta(minutes=10 * i), 5) for i in range(60)]

        assert len(reduce_resolution(blocks, "day", is_mobile=True)) == 60

    def test_mobile_week_is_capped(self):
        blocks = [_block(f"{i:02d}", datetime(2023, 6, 11, 0) + timedelta(hours=2 * i)) for i in range(60)]

        result = reduce_resolution(blocks, "week", is_mobile=True, week_max_items=50)

        assert len(result) == 50
        assert result[0]["id"] == "00"
        assert result[-1]["id"] == "49"

    def test_explicit_zero_week_cap_is_honored(self):
        blocks = [_block(f"{i:02d}", datetime(2023, 6, 11, 0) + timedelta(hours=2 * i)) for i in range(5)]

        assert reduce_resolution(blocks, "week", is_mobile=True, week_max_items=0) == []

    def test_mobile_month_is_summarized_per_day(self):
        blocks = [
            _block("a", datetime(2023, 6, 15, 9), color="#ff0000"),
            _block("b", datetime(2023, 6, 15, 14), 90),
            _block("c", datetime(2023, 6, 20, 10)),
        ]

        result = reduce_resolution(blocks, "month", is_mobile=True)

        assert result == [
            {
                "id": "mobile-aggregated-2023-06-15",
                "title": "2 events",
                "start_time": datetime(2023, 6, 15, 9),
                "end_time": datetime(2023, 6, 15, 15, 30),
                "color": "#ff0000",
                "display_date": date(2023, 6, 15),
                "event_count": 2,
            },
            {
                "id": "mobile-aggregated-2023-06-20",
                "title": "1 event",
                "start_time": datetime(2023, 6, 20, 10),
                "end_time": datetime(2023, 6, 20, 11),
                "color": "#007bff",
                "display_date": date(2023, 6, 20),
                "event_count": 1,
            },
        ]


def test_summary_uses_display_date_when_present():
    # Started the previous month, listed on the first day of the view
    block = _block("a", datetime(2023, 5, 31, 23), 120, display_date=date(2023, 6, 1))

    result = summarize_by_day([block])

    assert result[0]["display_date"] == date(2023, 6, 1)


class TestLowMemory:
    def test_keeps_only_minimal_fields(self):
        block = _block("a", datetime(2023, 6, 15, 9), color="#00ff00", position={"top": 1})

        result = optimize_for_low_memory([block])

        assert set(result[0]) == {"id", "title", "start_time", "end_time", "color", "task_id"}

    def test_keeps_task_title_for_linked_blocks(self):
        block = _block("a", datetime(2023, 6, 15, 9), task_id="T1", task_title="Report")

        result = optimize_for_low_memory([block])

        assert result[0]["task_title"] == "Report"

    def test_caps_item_count(self):
        blocks = [_block(str(i), datetime(2023, 6, 1, 8) + timedelta(hours=i)) for i in range(80)]

        assert len(optimize_for_low_memory(blocks, max_items=50)) == 50


class TestCompression:
    def test_restores_datetimes(self):
        blocks = [
            _block("a", datetime(2023, 6, 15, 9), display_date=date(2023, 6, 15)),
            _block("b", datetime(2023, 6, 16, 9, 30, 15)),
        ]

        restored = decompress_time_blocks(compress_time_blocks(blocks))

        assert restored == blocks

    def test_offset_timestamps_keep_their_instant(self):
        start = datetime(2023, 6, 15, 9, tzinfo=timezone(timedelta(hours=2)))

        restored = decompress_time_blocks(compress_time_blocks([_block("a", start)]))[0]

        assert restored["start_time"] == start
        assert restored["start_time"] == datetime(2023, 6, 15, 7, tzinfo=timezone.utc)
        assert restored["start_time"].utcoffset() == timedelta(hours=2)
        assert restored["end_time"] == start + timedelta(minutes=60)

    def test_payload_is_url_safe_text(self):
        payload = compress_time_blocks([_block("a", datetime(2023, 6, 15, 9))])

        assert isinstance(payload, str)
        assert "+" not in payload and "/" not in payload

    def test_garbage_is_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            decompress_time_blocks("not-a-payload")

        assert exc_info.value.code == "INVALID_COMPRESSED_PAYLOAD"
