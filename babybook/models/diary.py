"""
日记数据模型
定义导出PDF时使用的日记结构
"""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator


# 每篇日记最多排版的照片数量
MAX_PHOTOS_PER_ENTRY = 4


class DiaryEntry(BaseModel):
    """日记模型（每个孩子每天一篇）"""

    date: date
    content: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("photo_urls", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        # 数据库中 photo_urls 可能为 NULL
        return [] if value is None else value

    @property
    def has_content(self) -> bool:
        """是否有正文"""
        return bool(self.content and self.content.strip())

    @property
    def layout_photo_urls(self) -> List[str]:
        """参与排版的照片（超过上限的部分直接丢弃）"""
        return self.photo_urls[:MAX_PHOTOS_PER_ENTRY]
