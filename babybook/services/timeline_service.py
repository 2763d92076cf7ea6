"""
时间线格式化
把成长记录按日期分组，并格式化为PDF中的一行文字
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from babybook.models.record import (
    EventRecord,
    MilkValue,
    BreastValue,
    SleepValue,
    TemperatureValue,
    ConditionValue,
)
from babybook.utils.config import settings


RECORD_LABELS = {
    "milk": "ミルク",
    "breast": "母乳",
    "baby_food": "離乳食",
    "snack": "おやつ",
    "poop": "うんち",
    "pee": "おしっこ",
    "sleep": "睡眠",
    "bath": "お風呂",
    "walk": "さんぽ",
    "temperature": "体温",
    "medicine": "くすり",
    "condition": "体調",
}

CONDITION_LABELS = {
    "cough": "せき",
    "rash": "発疹",
    "vomit": "嘔吐",
    "injury": "けが",
}

SLEEP_LABELS = {
    "asleep": "寝た",
    "awake": "起きた",
}

# 各列之间的分隔
COLUMN_SEPARATOR = "  "


def _local_time(value: datetime, tz: ZoneInfo) -> datetime:
    """带时区的时间转换为本地时间，不带时区的视为本地时间"""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def group_records_by_date(records: List[EventRecord], timezone: Optional[str] = None) -> Dict[date, List[EventRecord]]:
    """
    按记录日期分组（保持原有顺序）

    Args:
        records: 成长记录
        timezone: 时区名，默认使用配置

    Returns:
        日期 -> 记录列表
    """
    tz = ZoneInfo(timezone or settings.timezone)
    grouped: Dict[date, List[EventRecord]] = defaultdict(list)
    for record in records:
        grouped[_local_time(record.recorded_at, tz).date()].append(record)
    return dict(grouped)


def format_detail(record: EventRecord) -> str:
    """按记录类型生成详细信息"""
    value = record.value

    if isinstance(value, MilkValue):
        return f"{_format_number(value.amount_ml)}ml" if value.amount_ml else ""

    if isinstance(value, TemperatureValue):
        return f"{value.celsius:.1f}℃" if value.celsius else ""

    if isinstance(value, BreastValue):
        parts = []
        if value.left_minutes:
            parts.append(f"左{value.left_minutes}分")
        if value.right_minutes:
            parts.append(f"右{value.right_minutes}分")
        return " ".join(parts)

    if isinstance(value, ConditionValue):
        return CONDITION_LABELS.get(value.condition, "") if value.condition else ""

    return ""


def format_label(record: EventRecord) -> str:
    """记录名称（睡眠记录显示为「寝た」「起きた」）"""
    value = record.value
    if isinstance(value, SleepValue) and value.state:
        return SLEEP_LABELS[value.state]
    return RECORD_LABELS[record.type]


def format_record(record: EventRecord, timezone: Optional[str] = None) -> str:
    """
    格式化为一行：「HH:MM  名称  详细  备注」

    Args:
        record: 成长记录
        timezone: 时区名，默认使用配置

    Returns:
        一行文字
    """
    tz = ZoneInfo(timezone or settings.timezone)
    columns = [
        _local_time(record.recorded_at, tz).strftime("%H:%M"),
        format_label(record),
        format_detail(record),
        " ".join((record.memo or "").split()),
    ]
    return COLUMN_SEPARATOR.join(column for column in columns if column)


def overflow_label(hidden_count: int) -> str:
    """放不下的记录数"""
    return f"+{hidden_count}件"
