"""
目标岗位域模型 - JD 表
职位描述可以来自纯文本，也可以来自图片 + OCR
"""

from typing import Optional

from sqlalchemy import Text
from sqlmodel import Field, Column

from enum import Enum

from .base import SoftDeleteModel


class TargetSourceKind(str, Enum):
    """JD 来源枚举"""
    TEXT = "text"
    IMAGE = "image"


class Target(SoftDeleteModel, table=True):
    """
    JD 表
    来源字段（source_kind / is_ocr / image_*）创建后不可变，
    只能通过 from_text / from_image 构造，保证两种来源互斥
    """
    __tablename__ = "targets"

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    # 归属用户，JD 管理列表查询
    owner_id: int = Field(index=True, nullable=False)

    # JD 全文（已规范化）
    content: str = Field(sa_column=Column(Text, nullable=False))

    # 来源类型
    source_kind: TargetSourceKind = Field(nullable=False)

    # 是否 OCR 提取：当且仅当 source_kind == image
    is_ocr: bool = Field(default=False, nullable=False)

    # 图片来源信息，纯文本提交时全部为空
    image_location: Optional[str] = Field(default=None, max_length=500)
    image_file_name: Optional[str] = Field(default=None, max_length=255)
    image_size_bytes: Optional[int] = Field(default=None)

    # 用户自填标签
    title: Optional[str] = Field(default=None, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)

    @classmethod
    def from_text(
        cls,
        owner_id: int,
        content: str,
        title: Optional[str] = None,
        company: Optional[str] = None
    ) -> "Target":
        """纯文本提交"""
        return cls(
            owner_id=owner_id,
            content=content,
            source_kind=TargetSourceKind.TEXT,
            is_ocr=False,
            title=title,
            company=company
        )

    @classmethod
    def from_image(
        cls,
        owner_id: int,
        content: str,
        image_location: str,
        image_file_name: str,
        image_size_bytes: int,
        title: Optional[str] = None,
        company: Optional[str] = None
    ) -> "Target":
        """图片提交，content 为 OCR 结果或占位文本"""
        return cls(
            owner_id=owner_id,
            content=content,
            source_kind=TargetSourceKind.IMAGE,
            is_ocr=True,
            image_location=image_location,
            image_file_name=image_file_name,
            image_size_bytes=image_size_bytes,
            title=title,
            company=company
        )

    def update_labels(self, title: Optional[str], company: Optional[str]) -> None:
        self.title = title
        self.company = company
