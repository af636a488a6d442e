"""
文本工具单元测试
"""

import pytest

from jobapplier.services.text_utils import count_words, normalize_text


class TestNormalizeText:
    """测试 normalize_text"""

    def test_trims_whitespace(self):
        assert normalize_text("  hello world \n\t") == "hello world"

    def test_crlf_and_cr_become_lf(self):
        assert normalize_text("a\r\nb\rc") == "a\nb\nc"

    def test_collapses_three_or_more_newlines(self):
        assert normalize_text("a\n\n\nb") == "a\n\nb"
        assert normalize_text("a\n\n\n\n\n\nb") == "a\n\nb"

    def test_keeps_single_blank_line(self):
        assert normalize_text("a\n\nb") == "a\n\nb"

    def test_mixed_line_endings_collapse_after_conversion(self):
        """先统一换行再压缩：\\r\\n\\r\\n\\r\\n 视为 3 个换行"""
        assert normalize_text("Title\r\n\r\n\r\nBody") == "Title\n\nBody"

    @pytest.mark.parametrize("value", ["", "   ", "\n\n\n", "\r\n\t "])
    def test_empty_or_blank_returns_empty(self, value):
        assert normalize_text(value) == ""

    @pytest.mark.parametrize("value", [
        "Senior Python Developer\r\n\r\n\r\n\r\nBerlin",
        "  one\r two\n\n\n\nthree  ",
        "already\n\nnormalized",
    ])
    def test_idempotent(self, value):
        """对规范化结果再次调用不变"""
        once = normalize_text(value)
        assert normalize_text(once) == once


class TestCountWords:
    """测试 count_words"""

    def test_counts_non_whitespace_runs(self):
        assert count_words("one two  three\nfour\tfive") == 5

    def test_empty_text(self):
        assert count_words("") == 0
        assert count_words("   \n ") == 0

    def test_punctuation_stays_attached(self):
        """标点不单独计数：连续非空白字符算一个词"""
        assert count_words("Hello, world! -- done.") == 4
