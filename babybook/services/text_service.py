"""
文字处理服务
加载PDF使用的字体，过滤字体无法显示的字符，并按宽度折行
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from babybook.utils.config import settings
from babybook.utils.logger import logger


# 打印时不需要的表情、符号区段（包含首尾）
_STRIP_RANGES = [
    (0x1F000, 0x1FAFF),  # 麻将牌、扑克、表情符号、象形符号
    (0x2600, 0x27BF),    # 杂项符号、装饰符号（Dingbats）
    (0x2190, 0x21FF),    # 箭头
    (0x2B00, 0x2BFF),    # 杂项符号和箭头
    (0x231A, 0x231B),    # 手表、沙漏
    (0x23E9, 0x23FA),    # 播放键、闹钟
    (0xFE00, 0xFE0F),    # 异体字选择符
    (0xE0000, 0xE007F),  # 标签字符
    (0x200D, 0x200D),    # 零宽连接符
    (0x20E3, 0x20E3),    # 组合键帽
    (0x3030, 0x3030),    # 波浪线
    (0x303D, 0x303D),    # 歌记号
]

# 温度符号替换为文字（保留数值的可读性）
_DEGREE_REPLACEMENTS = [
    ("°C", "度"),
    ("℃", "度"),
    ("°", "度"),
]


def _is_stripped(char: str) -> bool:
    code = ord(char)
    for start, end in _STRIP_RANGES:
        if start <= code <= end:
            return True
    return False


@dataclass
class BookFont:
    """嵌入PDF的TrueType字体"""

    name: str
    ttfont: TTFont

    def has_glyph(self, char: str) -> bool:
        """字体中是否有该字符的字形"""
        return ord(char) in self.ttfont.face.charToGlyph

    def measure(self, text: str, font_size: float) -> float:
        """
        计算文字宽度

        Args:
            text: 文字
            font_size: 字号

        Returns:
            宽度（pt）

        Raises:
            ValueError: 文字中包含字体没有的字符
        """
        for char in text:
            if not self.has_glyph(char):
                raise ValueError(f"字体 {self.name} 中没有字符 U+{ord(char):04X}")
        return pdfmetrics.stringWidth(text, self.name, font_size)


class TextService:
    """文字处理服务"""

    def load_font(self, path: Optional[str] = None) -> BookFont:
        """
        加载并注册字体

        Args:
            path: 字体文件路径，默认使用配置

        Returns:
            注册好的字体

        Raises:
            字体文件不存在或无法解析时抛出异常
        """
        font_path = Path(path or settings.font_path)
        name = f"BookFont-{font_path.stem}"

        try:
            ttfont = TTFont(name, str(font_path))
            pdfmetrics.registerFont(ttfont)
        except Exception as e:
            logger.error(f"字体加载失败: {font_path}, {e}")
            raise

        logger.info(f"字体加载成功: {font_path}")
        return BookFont(name=name, ttfont=ttfont)

    def sanitize(self, text: str, font: BookFont) -> str:
        """
        过滤字体无法显示的字符

        第一遍去掉表情等符号区段（温度符号替换为「度」），
        第二遍逐个字符检查字体中是否有字形，没有则丢弃。
        换行符保留，用于分段。

        Args:
            text: 原始文字
            font: 目标字体

        Returns:
            过滤后的文字
        """
        if not text:
            return ""

        cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
        for source, target in _DEGREE_REPLACEMENTS:
            cleaned = cleaned.replace(source, target)

        result = []
        for char in cleaned:
            if char == "\n":
                result.append(char)
                continue
            if _is_stripped(char):
                continue
            if not font.has_glyph(char):
                continue
            result.append(char)

        return "".join(result)

    def wrap(self, text: str, font: BookFont, font_size: float, max_width: float) -> List[str]:
        """
        按宽度逐字折行

        先按换行符分段，空段落保留为空行；
        段落内逐字累加，超出宽度时换行（不做单词边界处理）。

        Args:
            text: 已过滤的文字
            font: 字体
            font_size: 字号
            max_width: 最大宽度（pt）

        Returns:
            行列表
        """
        lines: List[str] = []

        for paragraph in text.split("\n"):
            if not paragraph:
                lines.append("")
                continue

            current = ""
            for char in paragraph:
                candidate = current + char
                try:
                    width = font.measure(candidate, font_size)
                except ValueError:
                    logger.warning(f"跳过无法测量的字符: U+{ord(char):04X}")
                    continue

                if width > max_width and current:
                    lines.append(current)
                    current = char
                else:
                    current = candidate

            if current:
                lines.append(current)

        return lines


# 创建全局文字服务实例
text_service = TextService()
