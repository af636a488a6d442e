"""
流水线装配

根据环境变量构建三个编排服务，供上层（HTTP 层、脚本）直接使用：

    pipeline = build_pipeline()
    await pipeline.init()
    summary = await pipeline.ingestion.ingest(owner_id, data, "cv.pdf")
    ...
    await pipeline.shutdown()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from jobapplier.db.init_db import create_tables, get_engine, get_session_factory
from jobapplier.providers.extraction import TesseractOCRProvider, default_document_extractor
from jobapplier.providers.generation import LLMCoverLetterProvider
from jobapplier.providers.llm_factory import LLMFactory
from jobapplier.providers.structuring import LLMStructuringProvider
from jobapplier.services.background import AsyncioTaskRunner
from jobapplier.services.generation_service import GenerationService
from jobapplier.services.ingestion_service import IngestionService
from jobapplier.services.target_service import TargetService
from jobapplier.storage.content_store import LocalContentStore

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """装配好的服务集合"""
    engine: AsyncEngine
    task_runner: AsyncioTaskRunner
    ingestion: IngestionService
    targets: TargetService
    generation: GenerationService

    async def init(self) -> None:
        """建表（已存在则跳过）"""
        await create_tables(self.engine)

    async def shutdown(self) -> None:
        """等待后台结构化任务结束，释放连接池"""
        await self.task_runner.drain()
        await self.engine.dispose()


def build_pipeline(engine: Optional[AsyncEngine] = None, llm_factory: Optional[LLMFactory] = None) -> Pipeline:
    """
    用默认实现装配流水线

    Args:
        engine: 数据库引擎，为 None 时使用 DATABASE_URL / DATABASE_PATH
        llm_factory: LLM 工厂，为 None 时读取 LLM_CONFIG_PATH
    """
    engine = engine or get_engine()
    session_factory = get_session_factory(engine)
    content_store = LocalContentStore()
    task_runner = AsyncioTaskRunner()
    factory = llm_factory or LLMFactory()

    ingestion = IngestionService(
        session_factory,
        content_store,
        default_document_extractor(),
        LLMStructuringProvider(factory),
        task_runner
    )
    targets = TargetService(session_factory, content_store, TesseractOCRProvider())
    generation = GenerationService(session_factory, LLMCoverLetterProvider(factory))

    logger.info(
        "流水线装配完成: db=%s storage=%s llm=%s",
        engine.url, content_store.root, factory.get_model_identifier()
    )
    return Pipeline(
        engine=engine,
        task_runner=task_runner,
        ingestion=ingestion,
        targets=targets,
        generation=generation
    )
