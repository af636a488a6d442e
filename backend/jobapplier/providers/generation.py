"""
求职信生成 Provider
"""

import json
import logging
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from .base import GenerationProvider, GenerationResult, TokenUsage
from .llm_factory import LLMFactory
from .prompts import COVER_LETTER_SYSTEM_PROMPT, build_cover_letter_user_prompt

logger = logging.getLogger(__name__)


def usage_from_response(response: Any) -> TokenUsage:
    """
    从 LangChain AIMessage 读取用量

    usage_metadata 为 {"input_tokens", "output_tokens", "total_tokens"}；
    部分 provider 不返回，视为 0
    """
    metadata = getattr(response, "usage_metadata", None) or {}
    input_units = int(metadata.get("input_tokens") or 0)
    output_units = int(metadata.get("output_tokens") or 0)
    total_units = int(metadata.get("total_tokens") or (input_units + output_units))
    return TokenUsage(input_units=input_units, output_units=output_units, total_units=total_units)


def _content_to_text(content: Any) -> str:
    # Gemini 等模型可能返回 content block 列表
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


class LLMCoverLetterProvider(GenerationProvider):
    """基于 LangChain 的求职信生成"""

    def __init__(self, factory: Optional[LLMFactory] = None):
        self.factory = factory or LLMFactory()
        self._last_usage = TokenUsage()

    def is_configured(self) -> bool:
        return self.factory.is_configured()

    def model_identifier(self) -> str:
        return self.factory.get_model_identifier()

    async def generate(
        self,
        profile: Dict[str, Any],
        target_text: str,
        hint: Optional[str] = None
    ) -> GenerationResult:
        llm = self.factory.create_llm()
        profile_json = json.dumps(profile, ensure_ascii=False, indent=2)
        messages = [
            SystemMessage(content=COVER_LETTER_SYSTEM_PROMPT),
            HumanMessage(content=build_cover_letter_user_prompt(profile_json, target_text, hint))
        ]

        response = await llm.ainvoke(messages)
        text = _content_to_text(response.content).strip()
        usage = usage_from_response(response)
        self._last_usage = usage

        logger.info(
            "求职信生成完成: model=%s tokens(in=%d, out=%d, total=%d)",
            self.model_identifier(), usage.input_units, usage.output_units, usage.total_units
        )
        return GenerationResult(text=text, usage=usage)

    def last_usage(self) -> TokenUsage:
        return self._last_usage
