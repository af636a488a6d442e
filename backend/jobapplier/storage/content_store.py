"""
Content Store - 原始上传文件存储

文件按用户分目录存放，文件名为 时间戳 + 随机串 + 原扩展名，避免冲突；
文件只会被创建或删除，不会原地修改。
"""

import asyncio
import hashlib
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def compute_checksum(data: bytes) -> str:
    """SHA-256 十六进制校验和；相同字节永远得到相同结果"""
    return hashlib.sha256(data).hexdigest()


class StoredContent(BaseModel):
    """保存结果"""
    location: str
    checksum: str
    size_bytes: int


class ContentStore(ABC):
    """Content Store 抽象"""

    @abstractmethod
    async def save(self, owner_id: int, data: bytes, original_name: str) -> StoredContent:
        """保存字节，返回存储位置和校验和"""

    @abstractmethod
    async def delete(self, location: str) -> None:
        """删除存储的文件；文件不存在时静默返回"""

    @abstractmethod
    async def exists(self, location: str) -> bool:
        """文件是否存在"""


class LocalContentStore(ContentStore):
    """
    本地磁盘实现

    location 为文件的绝对路径；delete / exists 只接受 root 之下的路径
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        """
        Args:
            root: 存储根目录，为 None 时读取 STORAGE_PATH 环境变量，默认 backend/storage
        """
        if root is None:
            root = os.environ.get("STORAGE_PATH") or Path(__file__).parent.parent.parent / "storage"
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _build_path(self, owner_id: int, original_name: str) -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        random_part = uuid.uuid4().hex[:12]
        extension = Path(original_name).suffix.lower()
        return self.root / str(owner_id) / f"{timestamp}_{random_part}{extension}"

    def _resolve(self, location: str) -> Path:
        path = Path(location).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"存储位置不在 Content Store 根目录下: {location}")
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # "xb"：路径已存在时直接失败，绝不覆盖已有文件
        with open(path, "xb") as f:
            f.write(data)

    async def save(self, owner_id: int, data: bytes, original_name: str) -> StoredContent:
        checksum = compute_checksum(data)
        path = self._build_path(owner_id, original_name)
        await asyncio.to_thread(self._write, path, data)
        logger.info("文件已保存: %s (%d bytes, owner=%s)", path, len(data), owner_id)
        return StoredContent(location=str(path), checksum=checksum, size_bytes=len(data))

    async def delete(self, location: str) -> None:
        path = self._resolve(location)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("文件已删除: %s", path)

    async def exists(self, location: str) -> bool:
        try:
            path = self._resolve(location)
        except ValueError:
            return False
        return await asyncio.to_thread(path.is_file)
