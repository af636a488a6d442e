"""
Repository (DAO) 模块
提供数据库操作的抽象层，封装 CRUD 逻辑
"""

from .base import SoftDeleteRepository
from .document_repository import DocumentRepository
from .target_repository import TargetRepository
from .artifact_repository import ArtifactRepository

__all__ = [
    "SoftDeleteRepository",
    "DocumentRepository",
    "TargetRepository",
    "ArtifactRepository"
]
