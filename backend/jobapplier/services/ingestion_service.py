"""
CV 导入服务层

负责 CV 文档的完整生命周期：
1. 校验（非空、大小、扩展名）
2. 去重：同一用户同一份字节只保留一个 Document
3. 存储原始文件 + 同步抽取文本
4. 后台结构化（LLM），结构化失败不影响导入结果
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

from jobapplier.db.init_db import SessionFactory
from jobapplier.exceptions import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    ValidationError,
    service_boundary
)
from jobapplier.models.document import DOCUMENT_KINDS, Document, MediaKind, StructuringStatus
from jobapplier.providers.base import ExtractionProvider, StructuringProvider
from jobapplier.repositories.document_repository import DocumentRepository
from jobapplier.schemas import DocumentDetails, DocumentSummary, OperationStatus
from jobapplier.storage.content_store import ContentStore, StoredContent, compute_checksum

from .background import BackgroundTaskRunner

logger = logging.getLogger(__name__)

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
MAX_FILE_NAME_LENGTH = 255
DEFAULT_STRUCTURING_TIMEOUT_SECONDS = 120.0


def _structuring_timeout_from_env() -> float:
    raw = os.environ.get("STRUCTURING_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_STRUCTURING_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        logger.warning("STRUCTURING_TIMEOUT_SECONDS 无法解析: %r，使用默认值", raw)
        return DEFAULT_STRUCTURING_TIMEOUT_SECONDS


def media_kind_from_name(file_name: str) -> Optional[MediaKind]:
    """根据扩展名（不区分大小写）判断媒体类型，未知返回 None"""
    extension = Path(file_name).suffix.lower().lstrip(".")
    try:
        return MediaKind(extension)
    except ValueError:
        return None


class IngestionService:
    """
    CV 导入编排

    使用示例：
        service = IngestionService(session_factory, store, extractor, structurer, runner)
        summary = await service.ingest(owner_id=1, data=pdf_bytes, file_name="cv.pdf")
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        content_store: ContentStore,
        extraction_provider: ExtractionProvider,
        structuring_provider: StructuringProvider,
        task_runner: BackgroundTaskRunner,
        structuring_timeout: Optional[float] = None
    ):
        self.session_factory = session_factory
        self.content_store = content_store
        self.extraction_provider = extraction_provider
        self.structuring_provider = structuring_provider
        self.task_runner = task_runner
        if structuring_timeout is None:
            structuring_timeout = _structuring_timeout_from_env()
        self.structuring_timeout = structuring_timeout

    # ------------------------------------------------------------
    # 导入
    # ------------------------------------------------------------

    @service_boundary("ingest_document")
    async def ingest(self, owner_id: int, data: bytes, file_name: str) -> DocumentSummary:
        """
        导入一份 CV

        流程：
        1. 校验输入，计算校验和
        2. 去重检查（任何副作用之前）
        3. 存储文件 + 抽取文本
        4. 插入 Document；唯一索引冲突说明并发上传了同一份文件，回退到已有记录
        5. 提交后台结构化任务

        Returns:
            DocumentSummary，status 为 created 或 duplicate

        Raises:
            ValidationError: 输入不合法
            DependencyError: 存储或抽取失败
        """
        media_kind = self._validate(data, file_name)
        checksum = compute_checksum(data)

        async with self.session_factory() as session:
            existing = await DocumentRepository(session).get_by_owner_and_checksum(owner_id, checksum)
            if existing is not None:
                logger.info("重复上传: owner_id=%s document_id=%s", owner_id, existing.id)
                return DocumentSummary.from_entity(existing, OperationStatus.DUPLICATE)

        stored = await self._store(owner_id, data, file_name)
        try:
            extracted_text = await self._extract(stored.location, media_kind)
            document = Document(
                owner_id=owner_id,
                file_name=file_name,
                media_kind=media_kind,
                storage_location=stored.location,
                size_bytes=stored.size_bytes,
                checksum=stored.checksum,
                extracted_text=extracted_text
            )
            async with self.session_factory() as session:
                document, created = await DocumentRepository(session).add_or_get_existing(document)
        except BaseException:
            # 包括取消：写入会话已关闭，只有行没有提交时才删除文件
            await self._release_unless_committed(stored.location)
            raise

        if not created:
            logger.info("并发重复上传: owner_id=%s document_id=%s", owner_id, document.id)
            await self._discard(stored.location)
            return DocumentSummary.from_entity(document, OperationStatus.DUPLICATE)

        logger.info(
            "CV 导入成功: owner_id=%s document_id=%s kind=%s size=%d",
            owner_id, document.id, media_kind.value, document.size_bytes
        )
        self._schedule_structuring(document.id)
        return DocumentSummary.from_entity(document, OperationStatus.CREATED)

    def _validate(self, data: bytes, file_name: str) -> MediaKind:
        if not data:
            raise ValidationError("文件内容为空")
        if len(data) > MAX_DOCUMENT_BYTES:
            raise ValidationError(f"文件大小超过上限 10 MiB ({len(data)} bytes)")
        if not file_name or not file_name.strip():
            raise ValidationError("缺少文件名")
        if len(file_name) > MAX_FILE_NAME_LENGTH:
            raise ValidationError(f"文件名超过 {MAX_FILE_NAME_LENGTH} 个字符")

        media_kind = media_kind_from_name(file_name)
        if media_kind not in DOCUMENT_KINDS:
            allowed = ", ".join(sorted(kind.value for kind in DOCUMENT_KINDS))
            raise ValidationError(f"不支持的文件扩展名: {file_name}（允许: {allowed}）")
        return media_kind

    async def _store(self, owner_id: int, data: bytes, file_name: str) -> StoredContent:
        try:
            return await self.content_store.save(owner_id, data, file_name)
        except Exception as e:
            logger.exception("文件存储失败: owner_id=%s", owner_id)
            raise DependencyError(f"文件存储失败: {e}") from e

    async def _extract(self, location: str, media_kind: MediaKind) -> str:
        try:
            text = await self.extraction_provider.extract_text(location, media_kind)
        except Exception as e:
            logger.exception("文本抽取失败: %s", location)
            raise DependencyError(f"文本抽取失败: {e}") from e
        if not text.strip():
            logger.warning("文本抽取结果为空: %s", location)
        return text

    async def _release_unless_committed(self, location: str) -> None:
        """
        导入中途失败时的清理

        提交之后才失败（或被取消）时，行已经存活，文件必须保留，
        并补上结构化任务；否则删除文件。查询本身失败时保留文件。
        """
        try:
            async with self.session_factory() as session:
                document = await DocumentRepository(session).get_by_storage_location(location)
        except Exception:
            logger.warning("无法确认文件是否已入库，保留文件: %s", location, exc_info=True)
            return

        if document is None:
            await self._discard(location)
            return

        logger.warning("Document 已提交但导入流程中断: document_id=%s", document.id)
        self._schedule_structuring(document.id)

    async def _discard(self, location: str) -> None:
        """删除已存储但没有对应 Document 的文件；失败只记日志"""
        try:
            await self.content_store.delete(location)
        except Exception:
            logger.warning("清理存储文件失败: %s", location, exc_info=True)

    def _schedule_structuring(self, document_id: int) -> None:
        try:
            self.task_runner.submit(
                f"structure-document-{document_id}",
                lambda: self.structure_document(document_id)
            )
        except Exception:
            # 调度失败不影响导入结果，文档保持 pending，可通过 retry_structuring 重新触发
            logger.exception("结构化任务调度失败: document_id=%s", document_id)

    # ------------------------------------------------------------
    # 后台结构化
    # ------------------------------------------------------------

    async def structure_document(self, document_id: int) -> StructuringStatus:
        """
        后台结构化步骤

        - 文档不存在或已删除：记日志，返回 pending
        - 已经 done：不重复调用
        - provider 未配置：保持 pending（合法终态）
        - provider 出错 / 超时 / 返回空：保持 pending，不写任何部分结果

        LLM 调用期间不持有数据库会话
        """
        async with self.session_factory() as session:
            document = await DocumentRepository(session).get_by_id(document_id)
            if document is None:
                logger.warning("结构化跳过，文档不存在: document_id=%s", document_id)
                return StructuringStatus.PENDING
            if document.structuring_status == StructuringStatus.DONE:
                logger.info("结构化跳过，已完成: document_id=%s", document_id)
                return StructuringStatus.DONE
            raw_text = document.extracted_text

        if not self.structuring_provider.is_configured():
            logger.warning("Structuring provider 未配置，文档保持 pending: document_id=%s", document_id)
            return StructuringStatus.PENDING

        if not raw_text.strip():
            logger.warning("抽取文本为空，无法结构化: document_id=%s", document_id)
            return StructuringStatus.PENDING

        try:
            profile = await asyncio.wait_for(
                self.structuring_provider.structure(raw_text),
                timeout=self.structuring_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "结构化超时 (%.0fs)，文档保持 pending: document_id=%s",
                self.structuring_timeout, document_id
            )
            return StructuringStatus.PENDING
        except Exception:
            logger.exception("结构化失败，文档保持 pending: document_id=%s", document_id)
            return StructuringStatus.PENDING

        if not profile:
            logger.warning("结构化结果为空，文档保持 pending: document_id=%s", document_id)
            return StructuringStatus.PENDING

        async with self.session_factory() as session:
            repo = DocumentRepository(session)
            document = await repo.get_by_id(document_id)
            if document is None:
                logger.warning("结构化结果丢弃，文档已删除: document_id=%s", document_id)
                return StructuringStatus.PENDING
            if document.structuring_status == StructuringStatus.DONE:
                return StructuringStatus.DONE

            document.mark_structured(profile)
            await repo.update(document)
            await repo.commit()

        logger.info("结构化完成: document_id=%s", document_id)
        return StructuringStatus.DONE

    # ------------------------------------------------------------
    # 查询 / 删除 / 重试
    # ------------------------------------------------------------

    async def _get_owned(self, repo: DocumentRepository, owner_id: int, document_id: int) -> Document:
        document = await repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} 不存在")
        if document.owner_id != owner_id:
            raise AuthorizationError(f"Document {document_id} 不属于 owner {owner_id}")
        return document

    @service_boundary("get_document")
    async def get_document(self, owner_id: int, document_id: int) -> DocumentDetails:
        async with self.session_factory() as session:
            document = await self._get_owned(DocumentRepository(session), owner_id, document_id)
            return DocumentDetails.from_entity(document)

    @service_boundary("list_documents")
    async def list_documents(self, owner_id: int) -> List[DocumentSummary]:
        """用户的 CV 列表，最新的在前"""
        async with self.session_factory() as session:
            documents = await DocumentRepository(session).get_by_owner(owner_id)
            return [DocumentSummary.from_entity(d) for d in documents]

    @service_boundary("delete_document")
    async def delete_document(self, owner_id: int, document_id: int) -> None:
        """
        删除 CV：先软删除记录，再释放存储文件

        文件删除失败只记日志；已生成的求职信保留
        """
        async with self.session_factory() as session:
            repo = DocumentRepository(session)
            document = await self._get_owned(repo, owner_id, document_id)
            location = document.storage_location
            await repo.delete(document)
            await repo.commit()

        logger.info("CV 已删除: owner_id=%s document_id=%s", owner_id, document_id)
        await self._discard(location)

    @service_boundary("retry_structuring")
    async def retry_structuring(self, owner_id: int, document_id: int) -> DocumentSummary:
        """重新触发结构化；已经 done 时直接返回"""
        async with self.session_factory() as session:
            document = await self._get_owned(DocumentRepository(session), owner_id, document_id)
            summary = DocumentSummary.from_entity(document)

        if summary.structuring_status == StructuringStatus.DONE:
            return summary

        logger.info("重新触发结构化: owner_id=%s document_id=%s", owner_id, document_id)
        self._schedule_structuring(document_id)
        return summary
