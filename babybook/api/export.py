"""
PDF导出接口
接收导出请求，返回生成的PDF文件
"""

from typing import Any, Dict, List
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from babybook.models.export import GenerationRequest
from babybook.services.pdf_service import PdfGenerationError, pdf_service
from babybook.services.theme_service import list_themes
from babybook.utils.logger import logger

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("/themes")
async def get_themes() -> List[Dict[str, Any]]:
    """
    获取可选的PDF主题

    Returns:
        主题ID和名称列表
    """
    return [{"id": theme.id, "name": theme.name} for theme in list_themes()]


@router.post("/pdf")
async def export_pdf(request: GenerationRequest) -> Response:
    """
    生成日记PDF

    Args:
        request: 生成请求

    Returns:
        PDF文件
    """
    try:
        document = await pdf_service.generate(request)
    except PdfGenerationError as e:
        logger.error(f"PDF导出失败: {e}")
        raise HTTPException(status_code=500, detail="PDF生成失败，请重试")

    # 文件名包含日文，按 RFC 5987 编码
    disposition = f"attachment; filename=\"diary.pdf\"; filename*=UTF-8''{quote(document.file_name)}"
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": disposition},
    )
