"""
PDF导出数据模型
定义导出请求、纸张尺寸和生成结果
"""

from datetime import date
from typing import Optional, List, Union, Literal, Dict
from pydantic import BaseModel, Field, model_validator

from .diary import DiaryEntry
from .record import EventRecord


ThemeId = Literal["simple", "natural", "pastelPink", "pastelBlue"]
PageSizeName = Literal["A4", "A5"]


class PageSize(BaseModel):
    """纸张尺寸（单位: pt, 72pt = 1英寸）"""

    name: str
    width_pt: float
    height_pt: float
    margin_pt: float

    model_config = {"frozen": True}

    @property
    def content_width(self) -> float:
        """去掉左右页边距后的宽度"""
        return self.width_pt - self.margin_pt * 2


PAGE_SIZES: Dict[str, PageSize] = {
    # 210 x 297mm, 页边距 15mm
    "A4": PageSize(name="A4", width_pt=595.28, height_pt=841.89, margin_pt=42.52),
    # 148 x 210mm, 页边距 10mm
    "A5": PageSize(name="A5", width_pt=419.53, height_pt=595.28, margin_pt=28.35),
}


class GenerationRequest(BaseModel):
    """PDF生成请求模型"""

    theme_id: ThemeId = "simple"
    child_name: str
    birthday: date
    start_date: date
    end_date: date
    diaries: List[DiaryEntry] = Field(default_factory=list)
    # 封面照片：URL、data URL 或原始字节
    cover_photo: Optional[Union[str, bytes]] = None
    records: List[EventRecord] = Field(default_factory=list)
    include_text: bool = True
    include_timeline: bool = False
    page_size: PageSizeName = "A4"

    @model_validator(mode="after")
    def _check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"结束日期 {self.end_date} 早于开始日期 {self.start_date}"
            )
        return self

    @property
    def page(self) -> PageSize:
        """请求使用的纸张"""
        return PAGE_SIZES[self.page_size]

    @property
    def file_name(self) -> str:
        """下载文件名"""
        return f"{self.child_name}_日記_{self.start_date.isoformat()}_{self.end_date.isoformat()}.pdf"


class GeneratedDocument(BaseModel):
    """PDF生成结果"""

    content: bytes
    media_type: str = "application/pdf"
    page_count: int
    file_name: str
