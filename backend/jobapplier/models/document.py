"""
文档域模型 - CV 文档表
上传的简历文件、抽取出的纯文本，以及 AI 结构化后的画像 JSON
"""

from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import Index, Text, text
from sqlmodel import Field, Column, JSON

from enum import Enum

from .base import SoftDeleteModel, utc_now


class MediaKind(str, Enum):
    """媒体类型枚举 - 决定由哪个 Extraction Provider 处理"""
    PDF = "pdf"
    DOCX = "docx"
    PNG = "png"
    JPG = "jpg"
    JPEG = "jpeg"


# CV 只接受这两类
DOCUMENT_KINDS = frozenset({MediaKind.PDF, MediaKind.DOCX})


class StructuringStatus(str, Enum):
    """结构化状态：由 structured_at 是否为空推导，不单独存库"""
    PENDING = "pending"
    DONE = "done"


class Document(SoftDeleteModel, table=True):
    """
    CV 文档表
    生命周期：校验 + 存储 + 抽取成功后创建（pending），结构化步骤只修改一次（done）
    """
    __tablename__ = "documents"

    # 去重约束：同一用户同一份字节只能有一条存活记录
    # 部分索引（deleted_at IS NULL），软删除后允许重新上传
    __table_args__ = (
        Index(
            "uix_documents_owner_checksum",
            "owner_id",
            "checksum",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    # 归属用户，由上游认证层提供
    # 索引优化：按用户查询文档列表
    owner_id: int = Field(index=True, nullable=False)

    # 原始文件名
    file_name: str = Field(max_length=255, nullable=False)

    # 媒体类型（pdf / docx）
    media_kind: MediaKind = Field(nullable=False)

    # Content Store 返回的存储位置
    storage_location: str = Field(max_length=500, nullable=False)

    # 文件大小（字节）
    size_bytes: int = Field(nullable=False)

    # SHA-256 十六进制校验和，用于去重
    checksum: str = Field(max_length=64, nullable=False)

    # 抽取出的原始文本
    extracted_text: str = Field(default="", sa_column=Column(Text, nullable=False))

    # 结构化画像 JSON，结构化完成前为空
    structured_profile: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))

    # 结构化完成时间，非空即 done
    structured_at: Optional[datetime] = Field(default=None)

    @property
    def structuring_status(self) -> StructuringStatus:
        if self.structured_at is not None:
            return StructuringStatus.DONE
        return StructuringStatus.PENDING

    @property
    def is_ready_for_generation(self) -> bool:
        """结构化完成且画像非空，才能用于生成求职信"""
        return self.structuring_status == StructuringStatus.DONE and bool(self.structured_profile)

    def mark_structured(self, profile: Dict[str, Any]) -> None:
        """写入结构化结果并标记 done（只有完整结果才会调用）"""
        self.structured_profile = profile
        self.structured_at = utc_now()
