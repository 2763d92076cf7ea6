"""
图片处理服务
下载日记照片，读取JPEG的EXIF方向信息，并重新编码为可以嵌入PDF的图片
"""

import asyncio
import base64
import struct
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image

from babybook.utils.config import settings
from babybook.utils.logger import logger


# 重新编码时的JPEG质量
JPEG_QUALITY = 90

# EXIF Orientation 标签
ORIENTATION_TAG = 0x0112

# EXIF方向值 -> 还原为正向所需的变换
_TRANSPOSE_METHODS = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}


@dataclass
class LoadedImage:
    """可以直接嵌入PDF的图片"""

    data: bytes
    orientation: int = 1
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_portrait_by_source_orientation(self) -> bool:
        """原图是否以旋转90/270度的方式保存"""
        return is_rotated_orientation(self.orientation)


def is_rotated_orientation(orientation: int) -> bool:
    """方向值 5~8 表示图片需要旋转90度或270度"""
    return 5 <= orientation <= 8


class ImageService:
    """图片处理服务"""

    def __init__(self, timeout: Optional[float] = None, concurrency: Optional[int] = None):
        """
        初始化图片服务

        Args:
            timeout: 单张图片的下载超时（秒），默认使用配置
            concurrency: 同时下载的图片数，默认使用配置
        """
        self.timeout = timeout if timeout is not None else settings.photo_fetch_timeout
        self.concurrency = concurrency if concurrency is not None else settings.photo_fetch_concurrency

    @property
    def request_timeout(self) -> httpx.Timeout:
        """单次请求的超时，等待连接池不计时"""
        return httpx.Timeout(self.timeout, pool=None)

    def create_client(self) -> httpx.AsyncClient:
        """创建下载用的HTTP客户端（连接数与并发下载数一致）"""
        return httpx.AsyncClient(
            timeout=self.request_timeout,
            limits=httpx.Limits(max_connections=max(self.concurrency, 1)),
            follow_redirects=True,
        )

    def read_exif_orientation(self, data: bytes) -> int:
        """
        从JPEG数据中读取EXIF方向值

        依次扫描JPEG的各个段，在APP1(Exif)段中解析TIFF头和IFD0，
        找到 Orientation 标签。不是JPEG、没有EXIF或没有该标签时返回1。

        Args:
            data: 图片二进制数据

        Returns:
            方向值（1~8）
        """
        if len(data) < 4 or data[0] != 0xFF or data[1] != 0xD8:
            return 1

        offset = 2
        while offset + 4 <= len(data):
            if data[offset] != 0xFF:
                break

            marker = data[offset + 1]
            # EOI / SOS 之后不再有元数据
            if marker in (0xD9, 0xDA):
                break

            segment_length = struct.unpack(">H", data[offset + 2:offset + 4])[0]
            if segment_length < 2:
                break

            if marker == 0xE1 and data[offset + 4:offset + 10] == b"Exif\x00\x00":
                tiff = data[offset + 10:offset + 2 + segment_length]
                orientation = self._read_tiff_orientation(tiff)
                if orientation is not None:
                    return orientation

            offset += 2 + segment_length

        return 1

    def _read_tiff_orientation(self, tiff: bytes) -> Optional[int]:
        """在TIFF头之后的IFD0中查找 Orientation 标签"""
        if len(tiff) < 8:
            return None

        if tiff[:2] == b"II":
            endian = "<"
        elif tiff[:2] == b"MM":
            endian = ">"
        else:
            return None

        ifd_offset = struct.unpack(endian + "I", tiff[4:8])[0]
        if ifd_offset + 2 > len(tiff):
            return None

        entry_count = struct.unpack(endian + "H", tiff[ifd_offset:ifd_offset + 2])[0]
        for i in range(entry_count):
            entry = ifd_offset + 2 + i * 12
            if entry + 12 > len(tiff):
                break

            tag = struct.unpack(endian + "H", tiff[entry:entry + 2])[0]
            if tag == ORIENTATION_TAG:
                value = struct.unpack(endian + "H", tiff[entry + 8:entry + 10])[0]
                return value if 1 <= value <= 8 else None

        return None

    def decode_data_url(self, data_url: str) -> bytes:
        """
        解析 data URL 中的图片数据

        Args:
            data_url: data:image/...;base64,... 格式的字符串

        Returns:
            图片二进制数据
        """
        header, _, payload = data_url.partition(",")
        if ";base64" in header:
            return base64.b64decode(payload)
        return unquote_to_bytes(payload)

    def normalize_image(self, data: bytes, orientation: int = 1) -> Tuple[bytes, Optional[int], Optional[int]]:
        """
        按方向值旋转图片，并重新编码为JPEG

        重新编码后的图片不带EXIF，不会被再次旋转。
        编码失败时返回原始数据。

        Args:
            data: 原始图片数据
            orientation: EXIF方向值

        Returns:
            (图片数据, 宽, 高)
        """
        try:
            with Image.open(BytesIO(data)) as source:
                source.load()
                image = source
                method = _TRANSPOSE_METHODS.get(orientation)
                if method is not None:
                    image = image.transpose(method)
                if image.mode != "RGB":
                    image = image.convert("RGB")

                buffer = BytesIO()
                image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
                return buffer.getvalue(), image.width, image.height

        except Exception as e:
            logger.warning(f"图片重新编码失败，使用原始数据: {e}")
            return data, None, None

    async def download_image(self, url: str, client: Optional[httpx.AsyncClient] = None) -> Optional[bytes]:
        """
        下载图片

        Args:
            url: 图片URL
            client: 复用的HTTP客户端，不传时临时创建

        Returns:
            图片二进制数据，失败时返回None
        """
        try:
            if client is None:
                async with self.create_client() as own_client:
                    response = await asyncio.wait_for(own_client.get(url, timeout=self.request_timeout), self.timeout)
            else:
                response = await asyncio.wait_for(client.get(url, timeout=self.request_timeout), self.timeout)

            if response.status_code == 200:
                logger.info(f"图片下载成功: {url} ({len(response.content)} bytes)")
                return response.content

            logger.error(f"图片下载失败: {url}, 状态码: {response.status_code}")
            return None

        except asyncio.TimeoutError:
            logger.warning(f"图片下载超时: {url} (>{self.timeout}s)")
            return None
        except Exception as e:
            logger.error(f"下载图片异常: {url}, {e!r}")
            return None

    async def load_image(self, ref: Union[str, bytes], client: Optional[httpx.AsyncClient] = None) -> Optional[LoadedImage]:
        """
        读取一张照片并转换为可以嵌入PDF的图片

        data URL 视为已经处理过的图片，直接解码使用；
        URL 和原始字节会读取EXIF方向并重新编码。

        Args:
            ref: 图片URL、data URL 或原始字节
            client: 复用的HTTP客户端

        Returns:
            处理后的图片，失败时返回None
        """
        try:
            if isinstance(ref, bytes):
                raw = ref
            elif ref.startswith("data:"):
                return LoadedImage(data=self.decode_data_url(ref))
            else:
                raw = await self.download_image(ref, client)
                if raw is None:
                    return None

            orientation = self.read_exif_orientation(raw)
            # 解码和重新编码比较耗时，放到线程中执行
            data, width, height = await asyncio.to_thread(self.normalize_image, raw, orientation)
            return LoadedImage(data=data, orientation=orientation, width=width, height=height)

        except Exception as e:
            logger.error(f"图片读取异常: {e!r}")
            return None

    async def load_images(
        self,
        refs: List[Union[str, bytes]],
        client: Optional[httpx.AsyncClient] = None,
    ) -> List[Optional[LoadedImage]]:
        """
        并发读取多张照片

        同时进行的下载数不超过 concurrency，排队的时间不计入单张的超时。

        Args:
            refs: 图片URL、data URL 或原始字节
            client: 复用的HTTP客户端，不传时临时创建

        Returns:
            与 refs 顺序一致的结果，失败的位置为None
        """
        if not refs:
            return []

        if client is None:
            async with self.create_client() as own_client:
                return await self.load_images(refs, own_client)

        semaphore = asyncio.Semaphore(max(self.concurrency, 1))

        async def load_one(ref: Union[str, bytes]) -> Optional[LoadedImage]:
            async with semaphore:
                return await self.load_image(ref, client)

        return list(await asyncio.gather(*(load_one(ref) for ref in refs)))


# 创建全局图片服务实例
image_service = ImageService()
