"""
Tests for timeline grouping and row formatting.
"""

from datetime import date, datetime, timezone

from babybook.models.record import EventRecord
from babybook.services.timeline_service import (
    format_detail,
    format_label,
    format_record,
    group_records_by_date,
    overflow_label,
)


def record(type_, at, value=None, memo=None):
    return EventRecord(type=type_, recorded_at=at, value=value, memo=memo)


class TestFormatRecord:
    def test_milk(self):
        row = format_record(record("milk", datetime(2024, 1, 2, 8, 30), {"amount": 120}))
        assert row == "08:30  ミルク  120ml"

    def test_temperature(self):
        row = format_record(record("temperature", datetime(2024, 1, 2, 21, 5), {"temperature": 36.5}))
        assert row == "21:05  体温  36.5℃"

    def test_breast(self):
        rec = record("breast", datetime(2024, 1, 2, 3, 0), {"left_minutes": 5, "right_minutes": 10})
        assert format_detail(rec) == "左5分 右10分"

    def test_breast_one_side(self):
        rec = record("breast", datetime(2024, 1, 2, 3, 0), {"right_minutes": 7})
        assert format_detail(rec) == "右7分"

    def test_sleep_labels(self):
        asleep = record("sleep", datetime(2024, 1, 2, 13, 0), {"sleep_type": "asleep"})
        awake = record("sleep", datetime(2024, 1, 2, 14, 0), {"sleep_type": "awake"})
        assert format_label(asleep) == "寝た"
        assert format_label(awake) == "起きた"
        assert format_record(awake) == "14:00  起きた"

    def test_sleep_without_state(self):
        assert format_label(record("sleep", datetime(2024, 1, 2, 13, 0))) == "睡眠"

    def test_condition(self):
        rec = record("condition", datetime(2024, 1, 2, 9, 0), {"condition_type": "rash"})
        assert format_record(rec) == "09:00  体調  発疹"

    def test_memo_whitespace_collapsed(self):
        rec = record("poop", datetime(2024, 1, 2, 10, 15), memo="  soft\n  and  normal ")
        assert format_record(rec) == "10:15  うんち  soft and normal"

    def test_simple_type(self):
        assert format_record(record("bath", datetime(2024, 1, 2, 19, 0))) == "19:00  お風呂"

    def test_aware_time_shown_local(self):
        rec = record("pee", datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc))
        assert format_record(rec, "Asia/Tokyo") == "08:30  おしっこ"


class TestGroupByDate:
    def test_groups_in_order(self):
        records = [
            record("milk", datetime(2024, 1, 1, 8, 0), {"amount": 100}),
            record("pee", datetime(2024, 1, 2, 9, 0)),
            record("milk", datetime(2024, 1, 1, 12, 0), {"amount": 140}),
        ]
        grouped = group_records_by_date(records, "Asia/Tokyo")
        assert [r.recorded_at.hour for r in grouped[date(2024, 1, 1)]] == [8, 12]
        assert len(grouped[date(2024, 1, 2)]) == 1

    def test_timezone_moves_date(self):
        late = record("pee", datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc))
        assert list(group_records_by_date([late], "Asia/Tokyo")) == [date(2024, 1, 2)]
        assert list(group_records_by_date([late], "UTC")) == [date(2024, 1, 1)]

    def test_empty(self):
        assert group_records_by_date([]) == {}


def test_overflow_label():
    assert overflow_label(6) == "+6件"
