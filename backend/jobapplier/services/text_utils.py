"""
文本工具
"""

import re

_MULTI_NEWLINE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """
    规范化用户提交 / OCR 得到的文本

    1. 统一换行：CRLF、CR -> LF
    2. 3 个及以上连续换行压缩为 2 个
    3. 去掉首尾空白

    对已经规范化的文本再次调用结果不变；空或纯空白返回 ""
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _MULTI_NEWLINE.sub("\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    """词数 = 连续非空白字符段的个数"""
    return len(text.split())
