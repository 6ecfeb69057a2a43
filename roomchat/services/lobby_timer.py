"""
roomchat.services.lobby_timer
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

大厅倒计时 —— 每个 tick 递减并广播剩余值，归零时清空大厅历史并重新开始。
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from roomchat.core.logging import get_logger
from roomchat.schemas.protocol import LOBBY_RESET, lobby_tick_frame
from roomchat.services.room import LOBBY
from roomchat.services.scheduler import TaskScheduler

if TYPE_CHECKING:
    from roomchat.services.room_store import RoomStore

logger = get_logger(__name__)


class LobbyCountdown:
    """进程内唯一的大厅倒计时数值。

    Attributes:
        duration: 完整周期的 tick 数。
        remaining: 当前剩余 tick 数，永远不会停留在 0。
    """

    def __init__(self, duration: int) -> None:
        self.duration = duration
        self.remaining = duration

    def step(self) -> tuple[int, bool]:
        """递减一次。

        Returns:
            ``(本次 tick 的值, 是否到期)``。到期时 ``remaining`` 已重置为 ``duration``。
        """
        self.remaining -= 1
        value = self.remaining
        if value <= 0:
            self.remaining = self.duration
            return value, True
        return value, False


class LobbyTimer:
    """驱动 ``LobbyCountdown`` 的周期任务。"""

    TASK_KEY: str = "lobby:tick"

    def __init__(
        self,
        countdown: LobbyCountdown,
        store: RoomStore,
        scheduler: TaskScheduler,
        tick_seconds: float = 1.0,
    ) -> None:
        self.countdown = countdown
        self.store = store
        self.scheduler = scheduler
        self.tick_seconds = tick_seconds

    def start(self) -> None:
        if self.scheduler.schedule_repeating(self.TASK_KEY, self.tick_seconds, self.tick):
            logger.info(
                "大厅倒计时已启动 | duration=%d | tick=%.2fs",
                self.countdown.duration, self.tick_seconds,
            )

    def stop(self) -> None:
        self.scheduler.cancel(self.TASK_KEY)

    async def tick(self) -> None:
        """执行一次倒计时：广播剩余值，到期时清空历史并广播重置。"""
        value, expired = self.countdown.step()
        if expired:
            # 先同步清空，保证此后加入的连接看不到旧历史
            self.store.reset_history(LOBBY)
        await self.store.broadcast_to_room(LOBBY, lobby_tick_frame(value))
        if expired:
            logger.info("大厅周期结束，历史已清空")
            await self.store.broadcast_to_room(LOBBY, LOBBY_RESET)
