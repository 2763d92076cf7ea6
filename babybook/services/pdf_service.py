"""
PDF生成服务
把一段时间内的日记（照片、正文、成长记录时间线）排版成可以打印的PDF
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Dict, List, Optional, Tuple, Union

import httpx
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from babybook.models.diary import DiaryEntry
from babybook.models.export import GenerationRequest, GeneratedDocument, PageSize
from babybook.models.record import EventRecord
from babybook.services.image_service import ImageService, LoadedImage, image_service
from babybook.services.layout_service import (
    HEADER_HEIGHT,
    PHOTO_GAP,
    SECTION_GAP,
    SLOT_PADDING,
    TEXT_FONT_SIZE,
    TEXT_LINE_HEIGHT,
    TIMELINE_FONT_SIZE,
    TIMELINE_LINE_HEIGHT,
    age_in_days,
    body_page_count,
    build_date_range,
    paginate_dates,
    plan_entry_budget,
    scale_to_fit,
    slot_height,
    slot_top,
    text_line_budget,
    timeline_line_budget,
)
from babybook.services.text_service import BookFont, TextService, text_service
from babybook.services.theme_service import ThemeDescriptor, resolve_color, resolve_theme
from babybook.services.timeline_service import format_record, group_records_by_date, overflow_label
from babybook.utils.config import settings
from babybook.utils.logger import logger


WEEKDAYS = ["月", "火", "水", "木", "金", "土", "日"]
EMPTY_DIARY_TEXT = "この日の日記はありません"

# 封面
COVER_PHOTO_SIZE = 200.0
COVER_PHOTO_TOP_OFFSET = 80.0
NAME_FONT_SIZE = 36
SUB_FONT_SIZE = 14

# 日期标题
DATE_FONT_SIZE = 16
AGE_FONT_SIZE = 10
AGE_LEFT_GAP = 10.0
EMPTY_FONT_SIZE = 10

SEPARATOR_WIDTH = 0.5

# (ImageReader, 宽, 高)
PreparedImage = Tuple[ImageReader, float, float]


class PdfGenerationError(Exception):
    """PDF生成失败（字体加载失败或输出失败），不返回不完整的文档"""


def format_date_header(day: date) -> str:
    """日期标题，例如「1月2日（火）」"""
    return f"{day.month}月{day.day}日（{WEEKDAYS[day.weekday()]}）"


def format_age(days: int) -> str:
    """生后天数，例如「生後 1日目」"""
    return f"生後 {days}日目"


@dataclass
class _PageContext:
    """一次生成过程中各个绘制步骤共用的参数"""

    pdf: canvas.Canvas
    font: BookFont
    theme: ThemeDescriptor
    page: PageSize
    request: GenerationRequest


class PdfService:
    """PDF生成服务"""

    def __init__(self, images: Optional[ImageService] = None, texts: Optional[TextService] = None):
        """
        初始化PDF服务

        Args:
            images: 图片服务，默认使用全局实例
            texts: 文字服务，默认使用全局实例
        """
        self.images = images or image_service
        self.texts = texts or text_service

    async def generate(self, request: GenerationRequest, client: Optional[httpx.AsyncClient] = None) -> GeneratedDocument:
        """
        生成PDF

        照片下载失败只会跳过该照片；字体加载失败或PDF输出失败时整体失败。

        Args:
            request: 生成请求
            client: 下载照片使用的HTTP客户端，不传时临时创建

        Returns:
            生成的PDF

        Raises:
            PdfGenerationError: 字体加载失败或PDF输出失败
        """
        dates = build_date_range(request.start_date, request.end_date)
        logger.info(
            f"开始生成PDF: {request.child_name}, {request.start_date} - {request.end_date}, "
            f"{len(dates)}天, 纸张: {request.page_size}, 主题: {request.theme_id}"
        )

        try:
            # 解析CJK字体比较耗时，不阻塞事件循环
            font = await asyncio.to_thread(self.texts.load_font)
        except Exception as e:
            raise PdfGenerationError(f"字体加载失败: {e}") from e

        theme = resolve_theme(request.theme_id)
        diary_map = {diary.date: diary for diary in request.diaries}
        records_by_date = group_records_by_date(request.records) if request.include_timeline else {}

        if client is None:
            async with self.images.create_client() as own_client:
                cover, photos = await self._load_photos(request, dates, diary_map, own_client)
        else:
            cover, photos = await self._load_photos(request, dates, diary_map, client)

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(request.page.width_pt, request.page.height_pt))
        pdf.setTitle(request.file_name[:-len(".pdf")])
        pdf.setCreator(settings.app_name)
        context = _PageContext(pdf=pdf, font=font, theme=theme, page=request.page, request=request)

        try:
            self._draw_cover(context, cover)
            for page_dates in paginate_dates(dates):
                self._draw_body_page(context, page_dates, diary_map, photos, records_by_date)
            pdf.save()
        except Exception as e:
            logger.error(f"PDF输出失败: {e}")
            raise PdfGenerationError(f"PDF输出失败: {e}") from e

        content = buffer.getvalue()
        page_count = 1 + body_page_count(len(dates))
        logger.info(f"PDF生成完成: {page_count}页, {len(content)} bytes")

        return GeneratedDocument(content=content, page_count=page_count, file_name=request.file_name)

    async def _load_photos(
        self,
        request: GenerationRequest,
        dates: List[date],
        diary_map: Dict[date, DiaryEntry],
        client: httpx.AsyncClient,
    ) -> Tuple[Optional[PreparedImage], Dict[date, List[PreparedImage]]]:
        """
        并发下载封面和所有日记照片

        每篇日记最多4张，同时下载的数量受 concurrency 限制，
        绘制顺序不受下载顺序影响。

        Returns:
            (封面照片, 日期 -> 照片列表)
        """
        refs: List[Tuple[date, str]] = []
        for day in dates:
            diary = diary_map.get(day)
            if diary is not None:
                refs.extend((day, url) for url in diary.layout_photo_urls)

        sources: List[Union[str, bytes]] = [url for _, url in refs]
        if request.cover_photo:
            sources.append(request.cover_photo)

        results = await self.images.load_images(sources, client)

        cover = None
        if request.cover_photo:
            cover = self._prepare_image(results[-1])
            results = results[:-1]

        photos: Dict[date, List[PreparedImage]] = {}
        for (day, url), loaded in zip(refs, results):
            prepared = self._prepare_image(loaded)
            if prepared is None:
                logger.warning(f"照片已跳过: {day} {url[:80]}")
                continue
            photos.setdefault(day, []).append(prepared)

        return cover, photos

    def _prepare_image(self, loaded: Optional[LoadedImage]) -> Optional[PreparedImage]:
        """把图片转换为 reportlab 可以绘制的对象，失败时返回None"""
        if loaded is None:
            return None
        try:
            reader = ImageReader(BytesIO(loaded.data))
            width, height = reader.getSize()
            return reader, float(width), float(height)
        except Exception as e:
            logger.warning(f"图片无法嵌入PDF: {e}")
            return None

    def _fill_background(self, context: _PageContext, value: str):
        """背景色（渐变使用中性色代替）"""
        pdf = context.pdf
        pdf.setFillColor(resolve_color(value))
        pdf.rect(0, 0, context.page.width_pt, context.page.height_pt, stroke=0, fill=1)

    def _draw_centered(self, context: _PageContext, text: str, y: float, size: float, color: str):
        text = self.texts.sanitize(text, context.font)
        if not text:
            return
        width = context.font.measure(text, size)
        context.pdf.setFont(context.font.name, size)
        context.pdf.setFillColor(resolve_color(color, colors.black))
        context.pdf.drawString((context.page.width_pt - width) / 2, y, text)

    def _draw_cover(self, context: _PageContext, cover: Optional[PreparedImage]):
        """
        绘制封面

        封面照片由调用方事先裁剪成圆形，这里只按正方形区域缩放居中。
        """
        page = context.page
        request = context.request
        theme = context.theme

        self._fill_background(context, theme.cover_background)

        name_y = page.height_pt / 2 + 20
        if cover is not None:
            reader, width, height = cover
            box_x = (page.width_pt - COVER_PHOTO_SIZE) / 2
            box_y = page.height_pt - page.margin_pt - COVER_PHOTO_SIZE - COVER_PHOTO_TOP_OFFSET
            draw_width, draw_height = scale_to_fit(width, height, COVER_PHOTO_SIZE, COVER_PHOTO_SIZE)
            try:
                context.pdf.drawImage(
                    reader,
                    box_x + (COVER_PHOTO_SIZE - draw_width) / 2,
                    box_y + (COVER_PHOTO_SIZE - draw_height) / 2,
                    width=draw_width,
                    height=draw_height,
                    mask="auto",
                )
                # 名字移到照片下方
                name_y = box_y - 60
            except Exception as e:
                logger.error(f"封面照片绘制失败: {e}")

        self._draw_centered(context, request.child_name, name_y, NAME_FONT_SIZE, theme.cover_name_color)
        subtitle = f"{request.start_date.isoformat()} - {request.end_date.isoformat()}"
        self._draw_centered(context, subtitle, name_y - 40, SUB_FONT_SIZE, theme.cover_sub_color)

        context.pdf.showPage()

    def _draw_body_page(
        self,
        context: _PageContext,
        page_dates: List[date],
        diary_map: Dict[date, DiaryEntry],
        photos: Dict[date, List[PreparedImage]],
        records_by_date: Dict[date, List[EventRecord]],
    ):
        """绘制一页内页（最多两个日期，中间用分隔线隔开）"""
        page = context.page
        pdf = context.pdf

        self._fill_background(context, context.theme.content_background)

        for index, day in enumerate(page_dates):
            top = slot_top(page, index)
            if index > 0:
                pdf.setStrokeColor(resolve_color(context.theme.border_color, colors.lightgrey))
                pdf.setLineWidth(SEPARATOR_WIDTH)
                pdf.line(page.margin_pt, top, page.width_pt - page.margin_pt, top)
                top -= SLOT_PADDING

            self._draw_entry(
                context,
                day,
                top,
                diary_map.get(day),
                photos.get(day, []),
                records_by_date.get(day, []),
            )

        pdf.showPage()

    def _draw_entry(
        self,
        context: _PageContext,
        day: date,
        top: float,
        diary: Optional[DiaryEntry],
        images: List[PreparedImage],
        records: List[EventRecord],
    ):
        """
        绘制一个日期格子

        从上到下依次为：日期标题、照片、正文、时间线。
        照片先按预算占用空间，正文使用剩余空间（为时间线预留），
        时间线使用最后剩下的空间，放不下的部分截断。
        """
        pdf = context.pdf
        font = context.font
        theme = context.theme
        request = context.request
        x = context.page.margin_pt
        content_width = context.page.content_width

        # 日期标题 + 生后天数
        date_text = self.texts.sanitize(format_date_header(day), font)
        baseline = top - DATE_FONT_SIZE
        pdf.setFont(font.name, DATE_FONT_SIZE)
        pdf.setFillColor(resolve_color(theme.date_color, colors.black))
        pdf.drawString(x, baseline, date_text)

        age_text = self.texts.sanitize(format_age(age_in_days(request.birthday, day)), font)
        age_x = x + font.measure(date_text, DATE_FONT_SIZE) + AGE_LEFT_GAP
        pdf.setFont(font.name, AGE_FONT_SIZE)
        pdf.setFillColor(resolve_color(theme.day_count_color, colors.grey))
        pdf.drawString(age_x, baseline, age_text)

        text_lines: List[str] = []
        if request.include_text and diary is not None and diary.has_content:
            content = self.texts.sanitize(diary.content, font)
            text_lines = self.texts.wrap(content.strip("\n"), font, TEXT_FONT_SIZE, content_width)

        timeline_rows: List[str] = []
        if request.include_timeline:
            for record in records:
                row = self.texts.sanitize(format_record(record), font)
                wrapped = self.texts.wrap(row, font, TIMELINE_FONT_SIZE, content_width)
                if wrapped:
                    timeline_rows.append(wrapped[0])

        budget = plan_entry_budget(slot_height(context.page), bool(text_lines), bool(timeline_rows))
        cursor = top - HEADER_HEIGHT
        remaining = budget.available

        if images:
            used = self._draw_photos(pdf, images, x, cursor, content_width, budget.photo_max_height)
            cursor -= used + SECTION_GAP
            remaining -= used + SECTION_GAP

        shown_lines = text_lines[:text_line_budget(remaining, budget.timeline_reserve)]
        if shown_lines:
            pdf.setFont(font.name, TEXT_FONT_SIZE)
            pdf.setFillColor(resolve_color(theme.text_color, colors.black))
            for i, line in enumerate(shown_lines):
                pdf.drawString(x, cursor - TEXT_FONT_SIZE - i * TEXT_LINE_HEIGHT, line)
            used = len(shown_lines) * TEXT_LINE_HEIGHT
            cursor -= used + SECTION_GAP
            remaining -= used + SECTION_GAP

        if timeline_rows:
            shown_count, hidden_count = timeline_line_budget(remaining, len(timeline_rows))
            rows = timeline_rows[:shown_count]
            if hidden_count:
                rows.append(self.texts.sanitize(overflow_label(hidden_count), font))
            pdf.setFont(font.name, TIMELINE_FONT_SIZE)
            pdf.setFillColor(resolve_color(theme.text_color, colors.black))
            for i, row in enumerate(rows):
                pdf.drawString(x, cursor - TIMELINE_FONT_SIZE - i * TIMELINE_LINE_HEIGHT, row)

        # 照片、正文、时间线都没有画出来时才显示
        if not images and not text_lines and not timeline_rows:
            empty_text = self.texts.sanitize(EMPTY_DIARY_TEXT, font)
            pdf.setFont(font.name, EMPTY_FONT_SIZE)
            pdf.setFillColor(resolve_color(theme.day_count_color, colors.grey))
            pdf.drawString(x, cursor - EMPTY_FONT_SIZE, empty_text)

    def _draw_photos(
        self,
        pdf: canvas.Canvas,
        images: List[PreparedImage],
        x: float,
        top: float,
        width: float,
        max_height: float,
    ) -> float:
        """
        按照片数量排版

        1张：占满内容宽度并居中；2~3张：等宽并排；4张：2x2网格。

        Returns:
            照片区域实际使用的高度
        """
        count = len(images)

        if count == 1:
            reader, image_width, image_height = images[0]
            draw_width, draw_height = scale_to_fit(image_width, image_height, width, max_height)
            self._draw_image(pdf, reader, x + (width - draw_width) / 2, top - draw_height, draw_width, draw_height)
            return draw_height

        if count <= 3:
            column_width = (width - PHOTO_GAP * (count - 1)) / count
            row_height = 0.0
            for i, (reader, image_width, image_height) in enumerate(images):
                draw_width, draw_height = scale_to_fit(image_width, image_height, column_width, max_height)
                column_x = x + i * (column_width + PHOTO_GAP)
                self._draw_image(
                    pdf, reader, column_x + (column_width - draw_width) / 2, top - draw_height, draw_width, draw_height
                )
                row_height = max(row_height, draw_height)
            return row_height

        cell_width = (width - PHOTO_GAP) / 2
        cell_height = (max_height - PHOTO_GAP) / 2
        for i, (reader, image_width, image_height) in enumerate(images[:4]):
            row, column = divmod(i, 2)
            cell_x = x + column * (cell_width + PHOTO_GAP)
            cell_bottom = top - row * (cell_height + PHOTO_GAP) - cell_height
            draw_width, draw_height = scale_to_fit(image_width, image_height, cell_width, cell_height)
            self._draw_image(
                pdf,
                reader,
                cell_x + (cell_width - draw_width) / 2,
                cell_bottom + (cell_height - draw_height) / 2,
                draw_width,
                draw_height,
            )
        return max_height

    def _draw_image(self, pdf: canvas.Canvas, reader: ImageReader, x: float, y: float, width: float, height: float):
        """绘制单张照片，失败时跳过"""
        try:
            pdf.drawImage(reader, x, y, width=width, height=height, mask="auto")
        except Exception as e:
            logger.error(f"照片绘制失败: {e}")


# 创建全局PDF服务实例
pdf_service = PdfService()
