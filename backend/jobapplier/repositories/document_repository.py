"""
CV 文档 Repository
提供 documents 表的增删改查，以及按 (owner_id, checksum) 去重查询
"""

from typing import Optional

from jobapplier.models.document import Document

from .base import SoftDeleteRepository


class DocumentRepository(SoftDeleteRepository[Document]):
    """
    CV 文档数据访问对象
    封装所有与 documents 表相关的数据库操作
    """

    model = Document

    async def get_by_owner_and_checksum(self, owner_id: int, checksum: str) -> Optional[Document]:
        """
        根据用户和校验和获取文档（去重核心查询）

        Args:
            owner_id: 用户 ID
            checksum: SHA-256 十六进制校验和

        Returns:
            Document 对象，不存在则返回 None
        """
        statement = self._live_select().where(
            Document.owner_id == owner_id,
            Document.checksum == checksum
        )
        result = await self.session.exec(statement)
        return result.first()

    async def _find_conflicting(self, entity: Document) -> Optional[Document]:
        return await self.get_by_owner_and_checksum(entity.owner_id, entity.checksum)

    async def get_by_storage_location(self, location: str) -> Optional[Document]:
        """根据存储位置获取存活的文档（判断文件是否仍被引用）"""
        statement = self._live_select().where(Document.storage_location == location)
        result = await self.session.exec(statement)
        return result.first()
