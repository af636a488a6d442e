"""
能力提供者（Provider）抽象

OCR / PDF / DOCX / LLM 后端都是可插拔的：编排层只依赖这里的接口，
通过 is_configured() 判断能力是否可用，测试时替换为确定性的假实现。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from jobapplier.models.document import MediaKind


class TokenUsage(BaseModel):
    """一次生成调用的资源消耗"""
    input_units: int = Field(default=0, ge=0)
    output_units: int = Field(default=0, ge=0)
    total_units: int = Field(default=0, ge=0)


class GenerationResult(BaseModel):
    """生成结果：正文 + 本次调用的用量"""
    text: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class ExtractionProvider(ABC):
    """把已存储的文件转成纯文本"""

    @abstractmethod
    def supports_kind(self, kind: MediaKind) -> bool:
        """是否支持该媒体类型"""

    @abstractmethod
    async def extract_text(self, location: str, kind: MediaKind) -> str:
        """从存储位置读取文件并抽取文本"""


class OCRProvider(ExtractionProvider):
    """图片 OCR；可能未配置"""

    @abstractmethod
    def is_configured(self) -> bool:
        """OCR 后端是否可用"""


class StructuringProvider(ABC):
    """CV 纯文本 -> 结构化画像 JSON"""

    @abstractmethod
    def is_configured(self) -> bool:
        """是否已配置（例如 API Key 已设置）"""

    @abstractmethod
    async def structure(self, raw_text: str) -> Dict[str, Any]:
        """返回完整的结构化画像；失败时抛异常，绝不返回部分结果"""


class GenerationProvider(ABC):
    """结构化画像 + JD 文本 -> 求职信正文"""

    @abstractmethod
    def is_configured(self) -> bool:
        """是否已配置"""

    @abstractmethod
    def model_identifier(self) -> str:
        """provider / 模型标识，写入 Artifact"""

    @abstractmethod
    async def generate(
        self,
        profile: Dict[str, Any],
        target_text: str,
        hint: Optional[str] = None
    ) -> GenerationResult:
        """生成正文并返回本次用量"""

    @abstractmethod
    def last_usage(self) -> TokenUsage:
        """最近一次调用的用量（并发场景请使用 generate 返回值里的 usage）"""
