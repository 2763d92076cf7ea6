"""
Tests for font loading, glyph filtering and line wrapping.
"""

import pytest

from babybook.services.text_service import TextService, text_service

from conftest import VERA_TTF


# ---------------------------------------------------------------------------
# Font
# ---------------------------------------------------------------------------

class TestLoadFont:
    def test_registers_font(self, font):
        assert font.name == "BookFont-Vera"
        assert font.has_glyph("A")
        assert not font.has_glyph("あ")

    def test_measure_positive(self, font):
        assert font.measure("Hello", 11) > 0
        assert font.measure("", 11) == 0

    def test_measure_missing_glyph(self, font):
        with pytest.raises(ValueError):
            font.measure("aあ", 11)

    def test_missing_file(self):
        with pytest.raises(Exception):
            TextService().load_font("/nonexistent/font.ttf")

    def test_loaded_twice(self):
        first = text_service.load_font(str(VERA_TTF))
        second = text_service.load_font(str(VERA_TTF))
        assert first.name == second.name


# ---------------------------------------------------------------------------
# Sanitising
# ---------------------------------------------------------------------------

class TestSanitize:
    def test_strips_emoji(self, font):
        assert text_service.sanitize("Hello 👶🏻 world", font) == "Hello  world"

    def test_strips_joined_sequences(self, all_glyphs_font):
        assert text_service.sanitize("a👨‍👩‍👧b❤️c", all_glyphs_font) == "abc"

    def test_strips_keycap(self, all_glyphs_font):
        assert text_service.sanitize("1️⃣", all_glyphs_font) == "1"

    def test_degree_replaced(self, all_glyphs_font):
        assert text_service.sanitize("36.5℃", all_glyphs_font) == "36.5度"
        assert text_service.sanitize("37.2°C", all_glyphs_font) == "37.2度"
        assert text_service.sanitize("20°", all_glyphs_font) == "20度"

    def test_drops_missing_glyphs(self, font):
        assert text_service.sanitize("あHiい", font) == "Hi"

    def test_keeps_newlines(self, font):
        assert text_service.sanitize("a\n\nb", font) == "a\n\nb"
        assert text_service.sanitize("a\r\nb\rc", font) == "a\nb\nc"

    def test_empty(self, font):
        assert text_service.sanitize("", font) == ""
        assert text_service.sanitize(None, font) == ""

    def test_every_char_renderable(self, font):
        cleaned = text_service.sanitize("今日は🎉 big day! ☀️ 36.5℃", font)
        assert all(font.has_glyph(char) for char in cleaned)

    @pytest.mark.parametrize("text", [
        "Hello 👶 world",
        "36.5℃ then 37°C",
        "あいうABC\n\n123",
        "⌚⏰↗️★",
    ])
    def test_idempotent(self, font, text):
        once = text_service.sanitize(text, font)
        assert text_service.sanitize(once, font) == once


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------

class TestWrap:
    def test_lines_fit_width(self, font):
        text = "The quick brown fox jumps over the lazy dog. " * 6
        max_width = 200
        lines = text_service.wrap(text, font, 11, max_width)
        assert len(lines) > 1
        for line in lines:
            assert len(line) == 1 or font.measure(line, 11) <= max_width

    def test_keeps_all_characters(self, font):
        text = "abcdefghijklmnopqrstuvwxyz" * 4
        lines = text_service.wrap(text, font, 11, 100)
        assert "".join(lines) == text

    def test_short_text_single_line(self, font):
        assert text_service.wrap("Hello", font, 11, 500) == ["Hello"]

    def test_empty_paragraph_kept(self, font):
        assert text_service.wrap("a\n\nb", font, 11, 500) == ["a", "", "b"]

    def test_too_wide_character_gets_own_line(self, font):
        assert text_service.wrap("abc", font, 11, 1) == ["a", "b", "c"]

    def test_unmeasurable_character_skipped(self, font):
        assert text_service.wrap("aあb", font, 11, 500) == ["ab"]
