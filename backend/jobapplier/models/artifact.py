"""
资产域模型 - 交付物表（求职信）
corresponds to the cover letter table
"""

from typing import Optional

from sqlalchemy import Index, Text, text
from sqlmodel import Field, Column

from .base import SoftDeleteModel


class Artifact(SoftDeleteModel, table=True):
    """
    交付物表
    每个 (document_id, target_id) 组合最多一条存活记录：生成是幂等的
    """
    __tablename__ = "artifacts"

    # 幂等约束：唯一索引才是事实来源，Service 层的预检查只是优化
    __table_args__ = (
        Index(
            "uix_artifacts_document_target",
            "document_id",
            "target_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    # 归属用户
    owner_id: int = Field(index=True, nullable=False)

    # 外键：来源 CV
    document_id: int = Field(foreign_key="documents.id", index=True, nullable=False)

    # 外键：目标 JD
    target_id: int = Field(foreign_key="targets.id", index=True, nullable=False)

    # 生成的正文
    content: str = Field(sa_column=Column(Text, nullable=False))

    # 本地计算的词数（不信任 provider 的统计）
    word_count: int = Field(nullable=False)

    # 成本统计：provider 报告的 total token 数
    usage_units: int = Field(default=0, nullable=False)

    # provider / 模型标识
    provider_model: str = Field(max_length=100, nullable=False)

    # 用户备注
    notes: Optional[str] = Field(default=None, max_length=1000)
