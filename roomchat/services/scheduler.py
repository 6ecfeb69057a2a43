"""
roomchat.services.scheduler
~~~~~~~~~~~~~~~~~~~~~~~~~~~

共享的定时任务设施 —— 大厅倒计时和空房间延迟删除都跑在这里。

任务按 key 管理：同一个 key 同时最多只有一个未完成的任务。
取消是尽力而为的：回调一旦开始执行就不会再被 ``cancel`` 打断，
所以回调必须自己重新检查触发条件。
"""
from __future__ import annotations

import asyncio
import contextvars
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from roomchat.core.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[[], Awaitable[None]]


class TaskScheduler:
    """基于 asyncio Task 的单次 / 周期任务调度器。"""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @staticmethod
    def _spawn(coro: Coroutine[Any, Any, None], key: str) -> asyncio.Task[None]:
        # 使用空白上下文，后台任务的日志不带调度者的连接 ID
        return asyncio.create_task(coro, name=key, context=contextvars.Context())

    def is_pending(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def schedule_once(self, key: str, delay: float, callback: Callback) -> bool:
        """``delay`` 秒后执行一次 ``callback``。

        Returns:
            是否真正创建了任务；同 key 已有未完成任务时为 ``False``。
        """
        if self.is_pending(key):
            return False

        async def runner() -> None:
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                return
            # 到期后先移除记录，之后的 cancel 不再影响本次执行
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]
            try:
                await callback()
            except Exception as e:
                logger.error("定时任务执行失败 | key=%s | %s", key, e, exc_info=True)

        self._tasks[key] = self._spawn(runner(), key)
        return True

    def schedule_repeating(self, key: str, interval: float, callback: Callback) -> bool:
        """每隔 ``interval`` 秒执行一次 ``callback``，直到被取消。

        tick 以事件循环时钟上的固定时间点为准；回调超时时后续 tick 会立即补上。

        单次回调抛出异常只记录日志，不影响后续执行。
        """
        if self.is_pending(key):
            return False

        async def runner() -> None:
            loop = asyncio.get_running_loop()
            next_at = loop.time()
            while True:
                # 按固定时间点推进，回调耗时不拉长周期
                next_at += interval
                await asyncio.sleep(max(0.0, next_at - loop.time()))
                try:
                    await callback()
                except Exception as e:
                    logger.error("周期任务执行失败 | key=%s | %s", key, e, exc_info=True)

        self._tasks[key] = self._spawn(runner(), key)
        return True

    def cancel(self, key: str) -> bool:
        """取消指定任务，返回是否确实取消了一个未完成的任务。"""
        task = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def shutdown(self) -> None:
        """取消所有任务并等待它们结束。"""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
