"""
Shared fixtures for the booklet tests.

Settings are read from the environment when ``babybook`` is first imported,
so the environment is prepared here before any test module imports it.
"""

import asyncio
import os
import struct
from io import BytesIO
from pathlib import Path

import httpx
import pytest
import reportlab
from PIL import Image

VERA_TTF = Path(reportlab.__file__).parent / "fonts" / "Vera.ttf"

os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("FONT_PATH", str(VERA_TTF))


def jpeg_bytes(width: int = 40, height: int = 20, color=(200, 120, 80)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG")
    return buffer.getvalue()


def png_bytes(width: int = 30, height: int = 30) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", (width, height), (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


def exif_segment(orientation: int, little_endian: bool = True) -> bytes:
    """APP1 segment holding a one-entry IFD0 with the Orientation tag."""
    e = "<" if little_endian else ">"
    tiff = (b"II" if little_endian else b"MM") + struct.pack(e + "H", 42) + struct.pack(e + "I", 8)
    ifd = struct.pack(e + "H", 1)
    ifd += struct.pack(e + "HHI", 0x0112, 3, 1) + struct.pack(e + "HH", orientation, 0)
    ifd += struct.pack(e + "I", 0)
    payload = b"Exif\x00\x00" + tiff + ifd
    return b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload


def with_exif(jpeg: bytes, orientation: int, little_endian: bool = True) -> bytes:
    """Insert an EXIF segment right after the SOI marker."""
    return jpeg[:2] + exif_segment(orientation, little_endian) + jpeg[2:]


def mock_client(routes: dict) -> httpx.AsyncClient:
    """AsyncClient answering from ``routes`` (url -> bytes), 404 otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class SlowPhotoServer:
    """Async handler that serves one body after a delay and tracks overlap."""

    def __init__(self, body: bytes, delay: float = 0.01):
        self.body = body
        self.delay = delay
        self.in_flight = 0
        self.peak = 0
        self.timeouts = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.timeouts.append(request.extensions.get("timeout"))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return httpx.Response(200, content=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def font():
    from babybook.services.text_service import text_service

    return text_service.load_font(str(VERA_TTF))


class AllGlyphsFont:
    """Stand-in font that claims every glyph, for range-filter tests."""

    name = "AllGlyphs"

    def has_glyph(self, char: str) -> bool:
        return True

    def measure(self, text: str, font_size: float) -> float:
        return len(text) * font_size * 0.5


@pytest.fixture
def all_glyphs_font():
    return AllGlyphsFont()
