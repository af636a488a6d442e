"""
基础数据库配置模块
提供所有模型共用的基础类：时间戳 + 软删除
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """返回 timezone-aware 的当前 UTC 时间"""
    return datetime.now(timezone.utc)


# 全局基础模型，包含创建和更新时间戳
class TimestampModel(SQLModel):
    """时间戳基类，为所有模型提供 created_at 和 updated_at 字段

    使用 timezone-aware datetime 替代已弃用的 utcnow()
    """
    created_at: Optional[datetime] = Field(
        default_factory=utc_now,
        nullable=False
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={"onupdate": utc_now}
    )


class SoftDeleteModel(TimestampModel):
    """软删除基类

    deleted_at 非空即视为已删除：Repository 层统一过滤，普通读取永远看不到，
    但行本身保留用于审计。
    """
    deleted_at: Optional[datetime] = Field(default=None, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self) -> None:
        self.deleted_at = utc_now()
