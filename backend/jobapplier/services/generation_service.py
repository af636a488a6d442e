"""
求职信生成服务层

核心约束：
1. 只有结构化完成（done）且画像非空的 CV 才能生成
2. 每个 (document, target) 组合最多一份求职信：重复调用直接返回已有结果，不再调用 LLM
3. 词数由本地计算，不在 200-400 区间时仍然保存，但标记 needs_review
"""

import logging
from typing import List, Optional

from jobapplier.db.init_db import SessionFactory
from jobapplier.exceptions import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    PreconditionError,
    ServiceError,
    ValidationError,
    service_boundary
)
from jobapplier.models.artifact import Artifact
from jobapplier.models.document import Document
from jobapplier.models.target import Target
from jobapplier.providers.base import GenerationProvider
from jobapplier.repositories.artifact_repository import ArtifactRepository
from jobapplier.repositories.document_repository import DocumentRepository
from jobapplier.repositories.target_repository import TargetRepository
from jobapplier.schemas import ArtifactSummary, OperationStatus

from .text_utils import count_words

logger = logging.getLogger(__name__)

WORD_COUNT_MIN = 200
WORD_COUNT_MAX = 400
MAX_NOTES_LENGTH = 1000


def needs_review(word_count: int) -> bool:
    """词数不在建议区间 [200, 400] 内"""
    return not (WORD_COUNT_MIN <= word_count <= WORD_COUNT_MAX)


def _summary(artifact: Artifact, status: OperationStatus = OperationStatus.OK) -> ArtifactSummary:
    return ArtifactSummary.from_entity(artifact, status, needs_review=needs_review(artifact.word_count))


class GenerationService:
    """
    求职信生成编排

    使用示例：
        service = GenerationService(session_factory, LLMCoverLetterProvider())
        summary = await service.generate(owner_id=1, document_id=3, target_id=7)
    """

    def __init__(self, session_factory: SessionFactory, generation_provider: GenerationProvider):
        self.session_factory = session_factory
        self.generation_provider = generation_provider

    @staticmethod
    async def _get_owned_document(repo: DocumentRepository, owner_id: int, document_id: int) -> Document:
        document = await repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} 不存在")
        if document.owner_id != owner_id:
            raise AuthorizationError(f"Document {document_id} 不属于 owner {owner_id}")
        return document

    @staticmethod
    async def _get_owned_target(repo: TargetRepository, owner_id: int, target_id: int) -> Target:
        target = await repo.get_by_id(target_id)
        if target is None:
            raise NotFoundError(f"Target {target_id} 不存在")
        if target.owner_id != owner_id:
            raise AuthorizationError(f"Target {target_id} 不属于 owner {owner_id}")
        return target

    @staticmethod
    async def _get_owned_artifact(repo: ArtifactRepository, owner_id: int, artifact_id: int) -> Artifact:
        artifact = await repo.get_by_id(artifact_id)
        if artifact is None:
            raise NotFoundError(f"Artifact {artifact_id} 不存在")
        if artifact.owner_id != owner_id:
            raise AuthorizationError(f"Artifact {artifact_id} 不属于 owner {owner_id}")
        return artifact

    @service_boundary("generate_cover_letter")
    async def generate(
        self,
        owner_id: int,
        document_id: int,
        target_id: int,
        hint: Optional[str] = None
    ) -> ArtifactSummary:
        """
        为 (CV, JD) 生成求职信

        流程：
        1. 读取 CV，校验归属和结构化状态
        2. 读取 JD，校验归属
        3. 已存在求职信 -> 直接返回（already_exists）
        4. 调用 Generation Provider（期间不持有数据库会话）
        5. 本地计算词数，插入；唯一索引冲突 -> 返回并发请求写入的那一份

        Raises:
            NotFoundError / AuthorizationError: CV 或 JD 不存在或不属于该用户
            PreconditionError: CV 未结构化、provider 未配置、生成结果为空
            DependencyError: provider 调用失败
        """
        async with self.session_factory() as session:
            document = await self._get_owned_document(DocumentRepository(session), owner_id, document_id)
            if not document.is_ready_for_generation:
                raise PreconditionError(f"Document {document_id} 尚未完成结构化，无法生成求职信")

            target = await self._get_owned_target(TargetRepository(session), owner_id, target_id)

            existing = await ArtifactRepository(session).get_by_document_and_target(document_id, target_id)
            if existing is not None:
                logger.info(
                    "求职信已存在: document_id=%s target_id=%s artifact_id=%s",
                    document_id, target_id, existing.id
                )
                return _summary(existing, OperationStatus.ALREADY_EXISTS)

            profile = document.structured_profile
            target_text = target.content

        if not self.generation_provider.is_configured():
            raise PreconditionError("Generation provider 未配置")

        try:
            result = await self.generation_provider.generate(profile, target_text, hint)
        except ServiceError:
            raise
        except Exception as e:
            logger.exception("求职信生成失败: document_id=%s target_id=%s", document_id, target_id)
            raise DependencyError(f"Generation provider 调用失败: {e}") from e

        content = result.text.strip()
        if not content:
            raise PreconditionError("Generation provider 返回了空内容")

        word_count = count_words(content)
        if needs_review(word_count):
            logger.warning(
                "求职信词数 %d 不在 %d-%d 区间: document_id=%s target_id=%s",
                word_count, WORD_COUNT_MIN, WORD_COUNT_MAX, document_id, target_id
            )

        artifact = Artifact(
            owner_id=owner_id,
            document_id=document_id,
            target_id=target_id,
            content=content,
            word_count=word_count,
            usage_units=result.usage.total_units,
            provider_model=self.generation_provider.model_identifier()[:100]
        )
        async with self.session_factory() as session:
            artifact, created = await ArtifactRepository(session).add_or_get_existing(artifact)

        if not created:
            logger.info(
                "并发生成，返回已有求职信: document_id=%s target_id=%s artifact_id=%s",
                document_id, target_id, artifact.id
            )
            return _summary(artifact, OperationStatus.ALREADY_EXISTS)

        logger.info(
            "求职信生成成功: owner_id=%s artifact_id=%s words=%d usage=%d",
            owner_id, artifact.id, word_count, artifact.usage_units
        )
        return _summary(artifact, OperationStatus.CREATED)

    @service_boundary("get_artifact")
    async def get_artifact(self, owner_id: int, artifact_id: int) -> ArtifactSummary:
        async with self.session_factory() as session:
            artifact = await self._get_owned_artifact(ArtifactRepository(session), owner_id, artifact_id)
            return _summary(artifact)

    @service_boundary("list_artifacts")
    async def list_artifacts(self, owner_id: int) -> List[ArtifactSummary]:
        async with self.session_factory() as session:
            artifacts = await ArtifactRepository(session).get_by_owner(owner_id)
            return [_summary(a) for a in artifacts]

    @service_boundary("list_artifacts_by_document")
    async def list_by_document(self, owner_id: int, document_id: int) -> List[ArtifactSummary]:
        """某份 CV 生成的所有求职信；先校验 CV 归属"""
        async with self.session_factory() as session:
            await self._get_owned_document(DocumentRepository(session), owner_id, document_id)
            artifacts = await ArtifactRepository(session).get_by_document(document_id)
            return [_summary(a) for a in artifacts]

    @service_boundary("update_artifact_content")
    async def update_content(self, owner_id: int, artifact_id: int, content: str) -> ArtifactSummary:
        """用户手动修改正文，重新计算词数"""
        content = (content or "").strip()
        if not content:
            raise ValidationError("求职信内容不能为空")

        async with self.session_factory() as session:
            repo = ArtifactRepository(session)
            artifact = await self._get_owned_artifact(repo, owner_id, artifact_id)
            artifact.content = content
            artifact.word_count = count_words(content)
            await repo.update(artifact)
            await repo.commit()
            await repo.refresh(artifact)
            return _summary(artifact, OperationStatus.UPDATED)

    @service_boundary("add_artifact_notes")
    async def add_notes(self, owner_id: int, artifact_id: int, notes: Optional[str]) -> ArtifactSummary:
        """设置备注；空字符串清除备注"""
        notes = (notes or "").strip() or None
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"备注超过 {MAX_NOTES_LENGTH} 个字符")

        async with self.session_factory() as session:
            repo = ArtifactRepository(session)
            artifact = await self._get_owned_artifact(repo, owner_id, artifact_id)
            artifact.notes = notes
            await repo.update(artifact)
            await repo.commit()
            await repo.refresh(artifact)
            return _summary(artifact, OperationStatus.UPDATED)

    @service_boundary("delete_artifact")
    async def delete_artifact(self, owner_id: int, artifact_id: int) -> None:
        async with self.session_factory() as session:
            repo = ArtifactRepository(session)
            artifact = await self._get_owned_artifact(repo, owner_id, artifact_id)
            await repo.delete(artifact)
            await repo.commit()
        logger.info("求职信已删除: owner_id=%s artifact_id=%s", owner_id, artifact_id)
