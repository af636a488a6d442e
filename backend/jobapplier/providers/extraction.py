"""
文本抽取 Provider

- PDF：pdfplumber 逐页抽取
- DOCX：python-docx 读取段落和表格
- 图片：pytesseract OCR（需要本机安装 tesseract，并设置 OCR_PROVIDER=tesseract）

解析都是阻塞操作，统一放到 asyncio.to_thread 中执行。
"""

import asyncio
import logging
import os
from typing import Iterable, List, Optional

import docx
import pdfplumber
import pytesseract
from PIL import Image

from jobapplier.models.document import MediaKind

from .base import ExtractionProvider, OCRProvider

logger = logging.getLogger(__name__)


class PdfTextExtractor(ExtractionProvider):
    """PDF 文本抽取"""

    def supports_kind(self, kind: MediaKind) -> bool:
        return kind == MediaKind.PDF

    def _extract(self, location: str) -> str:
        text_parts = []
        with pdfplumber.open(location) as pdf:
            for page in pdf.pages:
                text_parts.append(page.extract_text() or "")
        return "\n".join(text_parts).strip()

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        text = await asyncio.to_thread(self._extract, location)
        logger.info("PDF 抽取完成: %s (%d chars)", location, len(text))
        return text


class DocxTextExtractor(ExtractionProvider):
    """DOCX 文本抽取"""

    def supports_kind(self, kind: MediaKind) -> bool:
        return kind == MediaKind.DOCX

    def _extract(self, location: str) -> str:
        document = docx.Document(location)
        lines = [p.text for p in document.paragraphs]
        # 很多简历模板把内容放在表格里
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
        return "\n".join(lines).strip()

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        text = await asyncio.to_thread(self._extract, location)
        logger.info("DOCX 抽取完成: %s (%d chars)", location, len(text))
        return text


class TesseractOCRProvider(OCRProvider):
    """
    Tesseract OCR

    配置：OCR_PROVIDER=tesseract，OCR_LANG 默认 eng；
    tesseract 可执行文件不可用时视为未配置。探测结果按实例缓存，
    is_configured 会启动子进程，异步调用方应放到线程中执行
    """

    IMAGE_KINDS = frozenset({MediaKind.PNG, MediaKind.JPG, MediaKind.JPEG})

    def __init__(self, provider: Optional[str] = None, lang: Optional[str] = None):
        self.provider = (provider if provider is not None else os.environ.get("OCR_PROVIDER", "")).strip().lower()
        self.lang = lang or os.environ.get("OCR_LANG", "eng")
        self._available: Optional[bool] = None

    def supports_kind(self, kind: MediaKind) -> bool:
        return kind in self.IMAGE_KINDS

    def is_configured(self) -> bool:
        if self.provider != "tesseract":
            return False
        if self._available is None:
            self._available = self._probe()
        return self._available

    def _probe(self) -> bool:
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            logger.warning("OCR_PROVIDER=tesseract 但找不到 tesseract 可执行文件")
            return False
        except Exception:
            logger.warning("tesseract 探测失败，视为未配置", exc_info=True)
            return False
        logger.info("tesseract 可用: %s", version)
        return True

    def _extract(self, location: str) -> str:
        with Image.open(location) as image:
            return pytesseract.image_to_string(image, lang=self.lang).strip()

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        text = await asyncio.to_thread(self._extract, location)
        logger.info("OCR 抽取完成: %s (%d chars)", location, len(text))
        return text


class CompositeExtractionProvider(ExtractionProvider):
    """按媒体类型路由到第一个支持它的抽取器"""

    def __init__(self, extractors: Iterable[ExtractionProvider]):
        self.extractors: List[ExtractionProvider] = list(extractors)

    def _select(self, kind: MediaKind) -> Optional[ExtractionProvider]:
        for extractor in self.extractors:
            if extractor.supports_kind(kind):
                return extractor
        return None

    def supports_kind(self, kind: MediaKind) -> bool:
        return self._select(kind) is not None

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        extractor = self._select(kind)
        if extractor is None:
            raise ValueError(f"没有支持 {kind.value} 的抽取器")
        return await extractor.extract_text(location, kind)


def default_document_extractor() -> CompositeExtractionProvider:
    """CV 文档默认抽取器：PDF + DOCX"""
    return CompositeExtractionProvider([PdfTextExtractor(), DocxTextExtractor()])
