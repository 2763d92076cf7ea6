"""
页面布局计算
计算日期序列、分页、每个日期格子的高度，以及格子内照片/正文/时间线的空间分配
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Tuple

from babybook.models.export import PageSize


# 每页排版的日期数
ENTRIES_PER_PAGE = 2

# 日期标题（日期 + 生后天数）的高度
HEADER_HEIGHT = 30.0
# 格子与分隔线之间的留白
SLOT_PADDING = 12.0

# 照片区域
PHOTO_MAX_HEIGHT = 220.0
PHOTO_MIN_HEIGHT = 80.0
PHOTO_SLACK = 10.0
PHOTO_GAP = 6.0

# 各区块之间的间距
SECTION_GAP = 8.0

# 正文
TEXT_RESERVE = 48.0
TEXT_FONT_SIZE = 11
TEXT_LINE_HEIGHT = 16.0
MAX_TEXT_LINES = 8

# 时间线
TIMELINE_RESERVE = 50.0
TIMELINE_FONT_SIZE = 9
TIMELINE_LINE_HEIGHT = 13.0
MAX_TIMELINE_LINES = 15


@dataclass
class EntryBudget:
    """单个日期格子的空间分配"""

    available: float         # 去掉标题后的可用高度
    photo_max_height: float  # 照片区域的最大高度
    text_reserve: float      # 为正文预留的高度
    timeline_reserve: float  # 为时间线预留的高度


def build_date_range(start: date, end: date) -> List[date]:
    """
    生成从开始日期到结束日期（包含）的连续日期

    Args:
        start: 开始日期
        end: 结束日期

    Returns:
        日期列表

    Raises:
        ValueError: 结束日期早于开始日期
    """
    if end < start:
        raise ValueError(f"结束日期 {end} 早于开始日期 {start}")

    days = (end - start).days
    return [start + timedelta(days=i) for i in range(days + 1)]


def age_in_days(birthday: date, day: date) -> int:
    """生后天数（出生当天为0）"""
    return (day - birthday).days


def paginate_dates(dates: List[date]) -> List[List[date]]:
    """按每页的日期数分组"""
    return [dates[i:i + ENTRIES_PER_PAGE] for i in range(0, len(dates), ENTRIES_PER_PAGE)]


def body_page_count(date_count: int) -> int:
    """内页页数"""
    return math.ceil(date_count / ENTRIES_PER_PAGE)


def slot_height(page: PageSize) -> float:
    """每个日期格子的高度"""
    return (page.height_pt - page.margin_pt * 2) / ENTRIES_PER_PAGE


def slot_top(page: PageSize, index: int) -> float:
    """第 index 个格子顶部的Y坐标（PDF坐标系，原点在左下角）"""
    return page.height_pt - page.margin_pt - index * slot_height(page)


def plan_entry_budget(height: float, will_render_text: bool, will_render_timeline: bool) -> EntryBudget:
    """
    计算格子内的空间分配

    照片优先，但要给正文和时间线留出最低空间；
    照片高度在 80pt ~ 220pt 之间。

    Args:
        height: 格子高度
        will_render_text: 是否会显示正文
        will_render_timeline: 是否会显示时间线（至少一条记录）

    Returns:
        空间分配
    """
    # 第二个格子在分隔线下方留白，两个格子按同样的可用高度排版
    available = height - HEADER_HEIGHT - SLOT_PADDING
    text_reserve = TEXT_RESERVE if will_render_text else 0.0
    timeline_reserve = TIMELINE_RESERVE if will_render_timeline else 0.0

    photo_max_height = min(
        PHOTO_MAX_HEIGHT,
        max(PHOTO_MIN_HEIGHT, available - text_reserve - timeline_reserve - PHOTO_SLACK),
    )

    return EntryBudget(
        available=available,
        photo_max_height=photo_max_height,
        text_reserve=text_reserve,
        timeline_reserve=timeline_reserve,
    )


def text_line_budget(remaining: float, timeline_reserve: float) -> int:
    """
    正文可以显示的行数

    Args:
        remaining: 照片之后剩余的高度
        timeline_reserve: 为时间线预留的高度

    Returns:
        行数（最多8行）
    """
    usable = remaining - timeline_reserve
    if usable <= 0:
        return 0
    return min(MAX_TEXT_LINES, int(usable // TEXT_LINE_HEIGHT))


def timeline_line_budget(remaining: float, event_count: int) -> Tuple[int, int]:
    """
    时间线可以显示的记录数

    放不下时最后一行用来显示「+N件」；一行都放不下时整个时间线不显示。

    Args:
        remaining: 正文之后剩余的高度
        event_count: 当天的记录数

    Returns:
        (显示的记录数, 「+N件」中的N，0表示没有该行)
    """
    capacity = min(MAX_TIMELINE_LINES, int(max(remaining, 0) // TIMELINE_LINE_HEIGHT))
    if capacity == 0:
        return 0, 0
    if event_count <= capacity:
        return event_count, 0

    shown = capacity - 1
    return shown, event_count - shown


def scale_to_fit(width: float, height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """等比缩放到不超过指定的宽高"""
    if width <= 0 or height <= 0:
        return 0.0, 0.0
    ratio = min(max_width / width, max_height / height)
    return width * ratio, height * ratio
