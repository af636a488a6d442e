"""
Repository 基类
统一的软删除过滤和提交逻辑，各实体 Repository 继承后只补充自己的查询
"""

from typing import Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from jobapplier.models.base import SoftDeleteModel

ModelT = TypeVar("ModelT", bound=SoftDeleteModel)


class SoftDeleteRepository(Generic[ModelT]):
    """
    软删除实体的数据访问对象

    所有读取都经过 _live_select，已删除的行对普通读取不可见
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        初始化 Repository

        Args:
            session: SQLModel 异步数据库会话
        """
        self.session = session

    def _live_select(self):
        return select(self.model).where(col(self.model.deleted_at).is_(None))

    async def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        """
        根据 ID 获取实体（已软删除的视为不存在）

        Args:
            entity_id: 实体 ID

        Returns:
            实体对象，不存在则返回 None
        """
        statement = self._live_select().where(self.model.id == entity_id)
        result = await self.session.exec(statement)
        return result.first()

    async def get_by_owner(self, owner_id: int) -> List[ModelT]:
        """
        获取用户的所有实体（按创建时间倒序）

        Args:
            owner_id: 用户 ID

        Returns:
            实体列表
        """
        statement = self._live_select().where(
            self.model.owner_id == owner_id
        ).order_by(col(self.model.created_at).desc(), col(self.model.id).desc())
        result = await self.session.exec(statement)
        return list(result.all())

    async def add(self, entity: ModelT) -> ModelT:
        """加入会话，等待 commit"""
        self.session.add(entity)
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        """标记实体已修改，等待 commit"""
        self.session.add(entity)
        return entity

    async def delete(self, entity: ModelT) -> ModelT:
        """软删除：写入 deleted_at，等待 commit"""
        entity.mark_deleted()
        self.session.add(entity)
        return entity

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def refresh(self, entity: ModelT) -> ModelT:
        await self.session.refresh(entity)
        return entity

    async def add_or_get_existing(self, entity: ModelT) -> Tuple[ModelT, bool]:
        """
        先插入，唯一索引冲突时回退到已有记录

        并发场景下唯一索引才是事实来源：插入失败说明另一个请求已经写入，
        回滚后按业务键重新查询。

        注意：回滚会让本会话里之前加载的实体全部过期，调用方之后不要再读取它们。
        提交成功后直接返回，不再有任何数据库往返：会话 expire_on_commit=False，
        主键在 flush 时已回填，调用方据此判断"已提交"。

        Returns:
            (实体, 是否新建)
        """
        self.session.add(entity)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            existing = await self._find_conflicting(entity)
            if existing is None:
                # 不是业务唯一键冲突（例如外键），交给调用方
                raise
            return existing, False
        return entity, True

    async def _find_conflicting(self, entity: ModelT) -> Optional[ModelT]:
        """子类实现：按业务唯一键查询已存在的存活记录"""
        return None
