"""
编排层返回给调用方的数据结构

与表模型分离：调用方拿到的是只读快照，不会持有数据库会话里的实体
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from jobapplier.models import (
    Artifact,
    Document,
    MediaKind,
    StructuringStatus,
    Target,
    TargetSourceKind
)


class OperationStatus(str, Enum):
    """一次写操作的结果类型"""
    CREATED = "created"
    DUPLICATE = "duplicate"
    ALREADY_EXISTS = "already_exists"
    UPDATED = "updated"
    OK = "ok"


class DocumentSummary(BaseModel):
    """CV 文档摘要"""
    id: int
    owner_id: int
    file_name: str
    media_kind: MediaKind
    size_bytes: int
    checksum: str
    structuring_status: StructuringStatus
    created_at: datetime
    structured_at: Optional[datetime] = None
    status: OperationStatus = OperationStatus.OK

    @classmethod
    def from_entity(cls, document: Document, status: OperationStatus = OperationStatus.OK) -> "DocumentSummary":
        return cls(
            id=document.id,
            owner_id=document.owner_id,
            file_name=document.file_name,
            media_kind=document.media_kind,
            size_bytes=document.size_bytes,
            checksum=document.checksum,
            structuring_status=document.structuring_status,
            created_at=document.created_at,
            structured_at=document.structured_at,
            status=status
        )


class DocumentDetails(DocumentSummary):
    """CV 文档详情：附带抽取文本和结构化画像"""
    extracted_text: str = ""
    structured_profile: Optional[Dict[str, Any]] = None

    @classmethod
    def from_entity(cls, document: Document, status: OperationStatus = OperationStatus.OK) -> "DocumentDetails":
        summary = DocumentSummary.from_entity(document, status)
        return cls(
            **summary.model_dump(),
            extracted_text=document.extracted_text,
            structured_profile=document.structured_profile
        )


class TargetSummary(BaseModel):
    """JD 摘要"""
    id: int
    owner_id: int
    content: str
    source_kind: TargetSourceKind
    is_ocr: bool
    image_file_name: Optional[str] = None
    image_size_bytes: Optional[int] = None
    title: Optional[str] = None
    company: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    status: OperationStatus = OperationStatus.OK

    @classmethod
    def from_entity(cls, target: Target, status: OperationStatus = OperationStatus.OK) -> "TargetSummary":
        return cls(
            id=target.id,
            owner_id=target.owner_id,
            content=target.content,
            source_kind=target.source_kind,
            is_ocr=target.is_ocr,
            image_file_name=target.image_file_name,
            image_size_bytes=target.image_size_bytes,
            title=target.title,
            company=target.company,
            created_at=target.created_at,
            updated_at=target.updated_at,
            status=status
        )


class ArtifactSummary(BaseModel):
    """求职信摘要；needs_review 表示词数不在建议区间内"""
    id: int
    owner_id: int
    document_id: int
    target_id: int
    content: str
    word_count: int
    usage_units: int
    provider_model: str
    notes: Optional[str] = None
    needs_review: bool = False
    created_at: datetime
    updated_at: datetime
    status: OperationStatus = OperationStatus.OK

    @classmethod
    def from_entity(
        cls,
        artifact: Artifact,
        status: OperationStatus = OperationStatus.OK,
        needs_review: bool = False
    ) -> "ArtifactSummary":
        return cls(
            id=artifact.id,
            owner_id=artifact.owner_id,
            document_id=artifact.document_id,
            target_id=artifact.target_id,
            content=artifact.content,
            word_count=artifact.word_count,
            usage_units=artifact.usage_units,
            provider_model=artifact.provider_model,
            notes=artifact.notes,
            needs_review=needs_review,
            created_at=artifact.created_at,
            updated_at=artifact.updated_at,
            status=status
        )
