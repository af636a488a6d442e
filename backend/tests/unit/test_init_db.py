"""
数据库初始化单元测试
验证连接 URL 解析、表结构和部分唯一索引的创建
"""

import os

import pytest
from sqlalchemy import inspect

from jobapplier.db.init_db import create_engine_for_url, create_tables, get_database_url


class TestDatabaseUrl:
    """测试数据库 URL 解析"""

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/jobs")
        monkeypatch.setenv("DATABASE_PATH", "/tmp/ignored.db")

        assert get_database_url() == "postgresql+asyncpg://u:p@db/jobs"

    def test_absolute_database_path(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "jobs.db"))

        assert get_database_url() == f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}"

    def test_relative_path_resolves_under_backend(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DATABASE_PATH", raising=False)

        url = get_database_url()

        assert url.startswith("sqlite+aiosqlite:///")
        path = url[len("sqlite+aiosqlite:///"):]
        assert os.path.isabs(path)
        assert path.endswith(os.path.join("backend", "database.db"))


class TestCreateTables:
    """测试建表"""

    async def test_create_tables(self, tmp_path):
        engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}")
        try:
            await create_tables(engine)
            # 重复执行不报错
            await create_tables(engine)

            async with engine.connect() as conn:
                tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
                document_indexes = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).get_indexes("documents")
                )
                artifact_indexes = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).get_indexes("artifacts")
                )
        finally:
            await engine.dispose()

        assert {"documents", "targets", "artifacts"} <= set(tables)

        dedup = next(i for i in document_indexes if i["name"] == "uix_documents_owner_checksum")
        assert dedup["unique"]
        assert dedup["column_names"] == ["owner_id", "checksum"]

        idempotency = next(i for i in artifact_indexes if i["name"] == "uix_artifacts_document_target")
        assert idempotency["unique"]
        assert idempotency["column_names"] == ["document_id", "target_id"]
