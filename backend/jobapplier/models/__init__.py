"""
数据库模型模块
导出所有表模型和枚举类型
"""

# 文档域模型
from .document import Document, MediaKind, StructuringStatus, DOCUMENT_KINDS

# 岗位域模型
from .target import Target, TargetSourceKind

# 资产域模型
from .artifact import Artifact

# 基础模型
from .base import TimestampModel, SoftDeleteModel, utc_now

# 定义导出的内容
__all__ = [
    # 文档域
    "Document", "MediaKind", "StructuringStatus", "DOCUMENT_KINDS",
    # 岗位域
    "Target", "TargetSourceKind",
    # 资产域
    "Artifact",
    # 基础模型
    "TimestampModel", "SoftDeleteModel", "utc_now"
]
