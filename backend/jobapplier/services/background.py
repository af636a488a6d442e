"""
后台任务执行

结构化等耗时步骤不阻塞请求：编排层只依赖 BackgroundTaskRunner 接口，
默认实现用 asyncio 任务；换成队列 / worker 进程时只需实现 submit。
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Set

logger = logging.getLogger(__name__)

CoroutineFactory = Callable[[], Awaitable[Any]]


class BackgroundTaskRunner(ABC):
    """后台执行契约"""

    @abstractmethod
    def submit(self, name: str, coro_factory: CoroutineFactory) -> None:
        """
        提交任务后立即返回

        Args:
            name: 任务名，写入日志
            coro_factory: 无参函数，调用后返回要执行的协程
        """


class AsyncioTaskRunner(BackgroundTaskRunner):
    """
    在当前事件循环上以 asyncio.Task 运行

    持有任务引用直到完成，避免任务被垃圾回收；
    任务异常只记日志，不会传播给提交方
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, coro_factory: CoroutineFactory) -> None:
        task = asyncio.get_running_loop().create_task(coro_factory(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug("后台任务已提交: %s", name)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("后台任务已取消: %s", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("后台任务失败: %s", task.get_name(), exc_info=exc)

    async def drain(self) -> None:
        """等待所有已提交的任务结束（关闭服务或测试时使用）"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """取消所有未完成的任务并等待其退出"""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
