"""
服务层模块
提供业务逻辑的抽象层，封装 CV 导入、JD 提交和求职信生成流程
"""

from .background import BackgroundTaskRunner, AsyncioTaskRunner
from .ingestion_service import IngestionService
from .target_service import TargetService
from .generation_service import GenerationService

__all__ = [
    "BackgroundTaskRunner",
    "AsyncioTaskRunner",
    "IngestionService",
    "TargetService",
    "GenerationService"
]
