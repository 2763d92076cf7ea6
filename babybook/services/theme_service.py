"""
PDF主题
定义封面和内页的配色
"""

from dataclasses import dataclass
from typing import Dict, List

from reportlab.lib import colors


# 渐变背景在PDF中无法绘制，统一改用的中性色
GRADIENT_FALLBACK = colors.Color(0.98, 0.97, 0.96)


@dataclass(frozen=True)
class ThemeDescriptor:
    """主题配色"""

    id: str
    name: str
    cover_background: str
    cover_name_color: str
    cover_sub_color: str
    content_background: str
    date_color: str
    day_count_color: str
    text_color: str
    border_color: str
    font_family: str


THEMES: Dict[str, ThemeDescriptor] = {
    "simple": ThemeDescriptor(
        id="simple",
        name="シンプル",
        cover_background="#ffffff",
        cover_name_color="#333333",
        cover_sub_color="#888888",
        content_background="#ffffff",
        date_color="#333333",
        day_count_color="#888888",
        text_color="#444444",
        border_color="#eeeeee",
        font_family="'Hiragino Sans', 'Yu Gothic', sans-serif",
    ),
    "natural": ThemeDescriptor(
        id="natural",
        name="ナチュラル",
        cover_background="linear-gradient(180deg, #fdfcfb 0%, #f5f0e8 100%)",
        cover_name_color="#5c5347",
        cover_sub_color="#a89f91",
        content_background="#fdfcfa",
        date_color="#5c5347",
        day_count_color="#a89f91",
        text_color="#5c5347",
        border_color="#e8e2d9",
        font_family="'Hiragino Mincho ProN', 'Yu Mincho', serif",
    ),
    "pastelPink": ThemeDescriptor(
        id="pastelPink",
        name="パステルピンク",
        cover_background="linear-gradient(180deg, #fff5f5 0%, #ffe4e8 100%)",
        cover_name_color="#d4768a",
        cover_sub_color="#e8a0ad",
        content_background="#fffafa",
        date_color="#d4768a",
        day_count_color="#e8a0ad",
        text_color="#7a5a60",
        border_color="#ffe4e8",
        font_family="'Hiragino Maru Gothic ProN', sans-serif",
    ),
    "pastelBlue": ThemeDescriptor(
        id="pastelBlue",
        name="パステルブルー",
        cover_background="linear-gradient(180deg, #f0f8ff 0%, #d4e8f7 100%)",
        cover_name_color="#5a8fb4",
        cover_sub_color="#7ba3c2",
        content_background="#f8fbff",
        date_color="#5a8fb4",
        day_count_color="#7ba3c2",
        text_color="#506a7a",
        border_color="#d4e8f7",
        font_family="'Hiragino Maru Gothic ProN', sans-serif",
    ),
}


def resolve_theme(theme_id: str) -> ThemeDescriptor:
    """按ID获取主题，未知ID抛出 KeyError"""
    return THEMES[theme_id]


def list_themes() -> List[ThemeDescriptor]:
    """按显示顺序返回所有主题"""
    return list(THEMES.values())


def is_solid_color(value: str) -> bool:
    return value.startswith("#")


def resolve_color(value: str, default=GRADIENT_FALLBACK) -> colors.Color:
    """
    把主题中的颜色转换为 reportlab 颜色

    Args:
        value: 十六进制颜色或CSS渐变
        default: 无法解析时使用的颜色

    Returns:
        reportlab 颜色
    """
    if not value or not is_solid_color(value):
        return default
    try:
        return colors.HexColor(value)
    except Exception:
        return default
