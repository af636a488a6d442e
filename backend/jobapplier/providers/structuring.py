"""
CV 结构化 Provider

使用 LLM 的结构化输出（with_structured_output + CVProfile）把 CV 纯文本
转成画像 JSON。失败时直接抛出，由编排层决定是否降级。
"""

import logging
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from .base import StructuringProvider
from .llm_factory import LLMFactory
from .models import CVProfile
from .prompts import CV_STRUCTURING_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class LLMStructuringProvider(StructuringProvider):
    """基于 LangChain 的 CV 结构化实现"""

    def __init__(self, factory: Optional[LLMFactory] = None):
        self.factory = factory or LLMFactory()

    def is_configured(self) -> bool:
        return self.factory.is_configured()

    async def structure(self, raw_text: str) -> Dict[str, Any]:
        # 结构化抽取需要确定性输出
        llm = self.factory.create_llm(temperature=0)
        structured_llm = llm.with_structured_output(CVProfile)
        messages = [
            SystemMessage(content=CV_STRUCTURING_SYSTEM_PROMPT),
            HumanMessage(content=raw_text)
        ]

        result = await structured_llm.ainvoke(messages)
        if result is None:
            raise ValueError("LLM 未返回结构化结果")
        if isinstance(result, dict):
            result = CVProfile.model_validate(result)

        profile = result.model_dump()
        logger.info(
            "CV 结构化完成: %d 段经历, %d 段教育, %d 组技能",
            len(result.experiences), len(result.education), len(result.skills)
        )
        return profile
