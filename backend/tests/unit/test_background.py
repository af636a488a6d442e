"""
后台任务执行器单元测试
"""

import asyncio
import logging

import pytest

from jobapplier.services.background import AsyncioTaskRunner


class TestAsyncioTaskRunner:
    """测试 AsyncioTaskRunner"""

    async def test_submit_runs_in_background(self):
        runner = AsyncioTaskRunner()
        done = []

        async def work():
            await asyncio.sleep(0)
            done.append("ok")

        runner.submit("work", work)
        assert done == []  # submit 立即返回

        await runner.drain()

        assert done == ["ok"]
        assert runner.pending_count == 0

    async def test_failure_is_logged_not_raised(self, caplog):
        runner = AsyncioTaskRunner()

        async def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="jobapplier.services.background"):
            runner.submit("structure-document-1", broken)
            await runner.drain()

        assert "structure-document-1" in caplog.text
        assert runner.pending_count == 0

    async def test_cancel_all(self):
        runner = AsyncioTaskRunner()
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.Event().wait()

        runner.submit("forever", forever)
        await started.wait()

        await runner.cancel_all()

        assert runner.pending_count == 0

    def test_submit_requires_running_loop(self):
        runner = AsyncioTaskRunner()

        async def work():
            return None

        coro_holder = []

        def factory():
            coro = work()
            coro_holder.append(coro)
            return coro

        with pytest.raises(RuntimeError):
            runner.submit("no-loop", factory)
        # 没有事件循环时不会创建协程
        assert coro_holder == []
