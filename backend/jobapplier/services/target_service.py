"""
JD 提交服务层

JD 可以是纯文本，也可以是截图：
- 文本：规范化后直接保存
- 图片：存储原图，OCR 可用则抽取文本；OCR 失败或未配置时写入占位文本，
  不阻断提交（原图保留，用户可以之后手动补全文本）
"""

import asyncio
import logging
from typing import List, Optional

from jobapplier.db.init_db import SessionFactory
from jobapplier.exceptions import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    ValidationError,
    service_boundary
)
from jobapplier.models.document import MediaKind
from jobapplier.models.target import Target
from jobapplier.providers.base import OCRProvider
from jobapplier.repositories.target_repository import TargetRepository
from jobapplier.schemas import OperationStatus, TargetSummary
from jobapplier.storage.content_store import ContentStore

from .ingestion_service import media_kind_from_name
from .text_utils import normalize_text

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_KINDS = frozenset({MediaKind.PNG, MediaKind.JPG, MediaKind.JPEG})
MAX_LABEL_LENGTH = 255

OCR_FAILED_PLACEHOLDER = "[OCR extraction failed. Please provide text manually.]"
OCR_NOT_CONFIGURED_PLACEHOLDER = "[OCR not configured. Please extract text manually or reconfigure OCR service.]"


def _clean_label(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_LABEL_LENGTH:
        raise ValidationError(f"{field_name} 超过 {MAX_LABEL_LENGTH} 个字符")
    return value


class TargetService:
    """JD 提交与管理"""

    def __init__(
        self,
        session_factory: SessionFactory,
        content_store: ContentStore,
        ocr_provider: Optional[OCRProvider] = None
    ):
        self.session_factory = session_factory
        self.content_store = content_store
        self.ocr_provider = ocr_provider

    @service_boundary("submit_target")
    async def submit(
        self,
        owner_id: int,
        text: Optional[str] = None,
        image_data: Optional[bytes] = None,
        image_file_name: Optional[str] = None,
        title: Optional[str] = None,
        company: Optional[str] = None
    ) -> TargetSummary:
        """
        提交 JD，text 与 image_data 必须且只能提供一个

        Raises:
            ValidationError: 来源缺失 / 同时提供 / 图片不合法
            DependencyError: 图片存储或数据库写入失败
        """
        has_text = text is not None and bool(text.strip())
        has_image = bool(image_data)
        if has_text == has_image:
            raise ValidationError("text 与 image 必须且只能提供一个")

        title = _clean_label(title, "title")
        company = _clean_label(company, "company")

        if has_text:
            target = Target.from_text(owner_id, normalize_text(text), title=title, company=company)
            async with self.session_factory() as session:
                repo = TargetRepository(session)
                await repo.add(target)
                await repo.commit()
            logger.info("JD 提交成功（文本）: owner_id=%s target_id=%s", owner_id, target.id)
            return TargetSummary.from_entity(target, OperationStatus.CREATED)

        return await self._submit_image(owner_id, image_data, image_file_name, title, company)

    async def _submit_image(
        self,
        owner_id: int,
        image_data: bytes,
        image_file_name: Optional[str],
        title: Optional[str],
        company: Optional[str]
    ) -> TargetSummary:
        if len(image_data) > MAX_IMAGE_BYTES:
            raise ValidationError(f"图片大小超过上限 5 MiB ({len(image_data)} bytes)")
        if not image_file_name or not image_file_name.strip():
            raise ValidationError("缺少图片文件名")
        media_kind = media_kind_from_name(image_file_name)
        if media_kind not in IMAGE_KINDS:
            allowed = ", ".join(sorted(kind.value for kind in IMAGE_KINDS))
            raise ValidationError(f"不支持的图片扩展名: {image_file_name}（允许: {allowed}）")

        try:
            stored = await self.content_store.save(owner_id, image_data, image_file_name)
        except Exception as e:
            logger.exception("JD 图片存储失败: owner_id=%s", owner_id)
            raise DependencyError(f"图片存储失败: {e}") from e

        try:
            content = normalize_text(await self._ocr(stored.location, media_kind))
            target = Target.from_image(
                owner_id,
                content,
                image_location=stored.location,
                image_file_name=image_file_name,
                image_size_bytes=stored.size_bytes,
                title=title,
                company=company
            )
            async with self.session_factory() as session:
                repo = TargetRepository(session)
                await repo.add(target)
                await repo.commit()
        except BaseException:
            await self._discard_image(stored.location)
            raise

        logger.info(
            "JD 提交成功（图片）: owner_id=%s target_id=%s size=%d",
            owner_id, target.id, stored.size_bytes
        )
        return TargetSummary.from_entity(target, OperationStatus.CREATED)

    async def _ocr(self, location: str, media_kind: MediaKind) -> str:
        """OCR 属于非关键路径：失败降级为占位文本"""
        if self.ocr_provider is None:
            logger.warning("OCR 未配置，使用占位文本: %s", location)
            return OCR_NOT_CONFIGURED_PLACEHOLDER
        try:
            # 探测可能启动子进程，放到线程中执行
            if not await asyncio.to_thread(self.ocr_provider.is_configured):
                logger.warning("OCR 未配置，使用占位文本: %s", location)
                return OCR_NOT_CONFIGURED_PLACEHOLDER
            text = await self.ocr_provider.extract_text(location, media_kind)
        except Exception:
            logger.warning("OCR 失败，使用占位文本: %s", location, exc_info=True)
            return OCR_FAILED_PLACEHOLDER
        if not text.strip():
            logger.warning("OCR 结果为空，使用占位文本: %s", location)
            return OCR_FAILED_PLACEHOLDER
        return text

    async def _discard_image(self, location: str) -> None:
        try:
            await self.content_store.delete(location)
        except Exception:
            logger.warning("清理 JD 图片失败: %s", location, exc_info=True)

    async def _get_owned(self, repo: TargetRepository, owner_id: int, target_id: int) -> Target:
        target = await repo.get_by_id(target_id)
        if target is None:
            raise NotFoundError(f"Target {target_id} 不存在")
        if target.owner_id != owner_id:
            raise AuthorizationError(f"Target {target_id} 不属于 owner {owner_id}")
        return target

    @service_boundary("get_target")
    async def get_target(self, owner_id: int, target_id: int) -> TargetSummary:
        async with self.session_factory() as session:
            target = await self._get_owned(TargetRepository(session), owner_id, target_id)
            return TargetSummary.from_entity(target)

    @service_boundary("list_targets")
    async def list_targets(self, owner_id: int) -> List[TargetSummary]:
        async with self.session_factory() as session:
            targets = await TargetRepository(session).get_by_owner(owner_id)
            return [TargetSummary.from_entity(t) for t in targets]

    @service_boundary("update_target_text")
    async def update_text(self, owner_id: int, target_id: int, text: str) -> TargetSummary:
        """替换 JD 正文（例如 OCR 占位文本之后手动补全）"""
        content = normalize_text(text or "")
        if not content:
            raise ValidationError("JD 文本不能为空")

        async with self.session_factory() as session:
            repo = TargetRepository(session)
            target = await self._get_owned(repo, owner_id, target_id)
            target.content = content
            await repo.update(target)
            await repo.commit()
            await repo.refresh(target)
            return TargetSummary.from_entity(target, OperationStatus.UPDATED)

    @service_boundary("update_target_labels")
    async def update_labels(
        self,
        owner_id: int,
        target_id: int,
        title: Optional[str],
        company: Optional[str]
    ) -> TargetSummary:
        title = _clean_label(title, "title")
        company = _clean_label(company, "company")

        async with self.session_factory() as session:
            repo = TargetRepository(session)
            target = await self._get_owned(repo, owner_id, target_id)
            target.update_labels(title, company)
            await repo.update(target)
            await repo.commit()
            await repo.refresh(target)
            return TargetSummary.from_entity(target, OperationStatus.UPDATED)

    @service_boundary("delete_target")
    async def delete_target(self, owner_id: int, target_id: int) -> None:
        """软删除 JD，然后尽力删除原图"""
        async with self.session_factory() as session:
            repo = TargetRepository(session)
            target = await self._get_owned(repo, owner_id, target_id)
            image_location = target.image_location
            await repo.delete(target)
            await repo.commit()

        logger.info("JD 已删除: owner_id=%s target_id=%s", owner_id, target_id)
        if image_location:
            await self._discard_image(image_location)
