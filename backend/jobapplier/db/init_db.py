"""
数据库初始化脚本
负责创建异步引擎、会话工厂和数据库表结构
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# 导入模型以注册到 SQLModel.metadata
from jobapplier.models import Document, Target, Artifact  # noqa: F401

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]

_engine: Optional[AsyncEngine] = None


def get_database_url() -> str:
    """
    获取数据库连接 URL
    优先使用 DATABASE_URL，其次 DATABASE_PATH，否则使用默认的 SQLite 文件
    """
    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        return database_url

    db_path = os.environ.get("DATABASE_PATH", "database.db")
    # 确保路径是绝对路径
    if not os.path.isabs(db_path):
        # 从项目根目录解析
        project_root = Path(__file__).parent.parent.parent
        db_path = str(project_root / db_path)
    return f"sqlite+aiosqlite:///{db_path}"


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """
    根据 URL 创建异步引擎
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        # 并发写入时等待锁而不是立即失败
        connect_args = {"timeout": 30}
    return create_async_engine(
        database_url,
        echo=False,  # 设置为 True 可查看 SQL 语句
        connect_args=connect_args
    )


def get_engine() -> AsyncEngine:
    """
    返回进程内共享的数据库引擎（懒加载）
    """
    global _engine
    if _engine is None:
        _engine = create_engine_for_url(get_database_url())
    return _engine


def get_session_factory(engine: Optional[AsyncEngine] = None) -> SessionFactory:
    """
    创建会话工厂

    expire_on_commit=False：提交后返回给调用方的实体仍可读取，
    异步会话里不能再隐式懒加载
    """
    return async_sessionmaker(
        engine or get_engine(),
        class_=AsyncSession,
        expire_on_commit=False
    )


async def create_tables(engine: AsyncEngine) -> None:
    """
    创建所有数据库表
    SQLModel 会自动根据模型创建表结构（含部分唯一索引）
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("数据库表创建完成: %s", engine.url)


async def init_db() -> None:
    """
    完整的数据库初始化流程
    1. 创建数据库引擎
    2. 创建所有表结构
    """
    logger.info("=== Initializing database ===")
    engine = get_engine()
    await create_tables(engine)
    logger.info("=== Database initialization completed ===")


if __name__ == "__main__":
    # 直接运行此脚本时，执行数据库初始化
    from jobapplier.logging_config import configure_logging

    configure_logging()
    asyncio.run(init_db())
