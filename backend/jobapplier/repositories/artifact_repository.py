"""
交付物 Repository
提供 artifacts 的增删改查操作，按 (document_id, target_id) 保证幂等
"""

from typing import List, Optional

from sqlmodel import col

from jobapplier.models.artifact import Artifact

from .base import SoftDeleteRepository


class ArtifactRepository(SoftDeleteRepository[Artifact]):
    """
    交付物数据访问对象
    封装所有与 artifacts 表相关的数据库操作
    """

    model = Artifact

    async def get_by_document_and_target(self, document_id: int, target_id: int) -> Optional[Artifact]:
        """
        获取某个 CV + JD 组合的交付物

        Args:
            document_id: CV 文档 ID
            target_id: JD ID

        Returns:
            Artifact 对象，不存在则返回 None
        """
        statement = self._live_select().where(
            Artifact.document_id == document_id,
            Artifact.target_id == target_id
        )
        result = await self.session.exec(statement)
        return result.first()

    async def get_by_document(self, document_id: int) -> List[Artifact]:
        """
        获取由某份 CV 生成的所有交付物（按创建时间倒序）

        Args:
            document_id: CV 文档 ID

        Returns:
            Artifact 对象列表
        """
        statement = self._live_select().where(
            Artifact.document_id == document_id
        ).order_by(col(Artifact.created_at).desc(), col(Artifact.id).desc())
        result = await self.session.exec(statement)
        return list(result.all())

    async def _find_conflicting(self, entity: Artifact) -> Optional[Artifact]:
        return await self.get_by_document_and_target(entity.document_id, entity.target_id)
