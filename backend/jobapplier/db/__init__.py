"""
数据库模块
提供数据库连接、会话工厂和初始化功能
"""

from .init_db import (
    SessionFactory,
    init_db,
    get_engine,
    get_database_url,
    create_engine_for_url,
    get_session_factory,
    create_tables
)

__all__ = [
    "SessionFactory",
    "init_db",
    "get_engine",
    "get_database_url",
    "create_engine_for_url",
    "get_session_factory",
    "create_tables"
]
