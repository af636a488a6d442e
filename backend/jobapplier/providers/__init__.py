"""
Provider 模块
OCR / 文档解析 / LLM 能力的可插拔实现
"""

from .base import (
    TokenUsage,
    GenerationResult,
    ExtractionProvider,
    OCRProvider,
    StructuringProvider,
    GenerationProvider
)
from .extraction import (
    PdfTextExtractor,
    DocxTextExtractor,
    TesseractOCRProvider,
    CompositeExtractionProvider,
    default_document_extractor
)
from .llm_factory import LLMFactory
from .structuring import LLMStructuringProvider
from .generation import LLMCoverLetterProvider

__all__ = [
    "TokenUsage",
    "GenerationResult",
    "ExtractionProvider",
    "OCRProvider",
    "StructuringProvider",
    "GenerationProvider",
    "PdfTextExtractor",
    "DocxTextExtractor",
    "TesseractOCRProvider",
    "CompositeExtractionProvider",
    "default_document_extractor",
    "LLMFactory",
    "LLMStructuringProvider",
    "LLMCoverLetterProvider"
]
