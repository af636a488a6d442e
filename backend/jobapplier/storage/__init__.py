"""
存储模块
"""

from .content_store import ContentStore, LocalContentStore, StoredContent, compute_checksum

__all__ = [
    "ContentStore",
    "LocalContentStore",
    "StoredContent",
    "compute_checksum"
]
