"""
roomchat.services.chat_system
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

聊天系统 —— 进程内唯一，持有会话、房间、调度器与大厅倒计时。

在 FastAPI lifespan 中创建并挂载到 ``app.state.chat_system``；
传输层只需要把连接建立、收到文本、连接断开三类事件交给它。
"""
from __future__ import annotations

from roomchat.core.config import Settings, settings
from roomchat.core.logging import get_logger
from roomchat.schemas.chat import LobbyStatusData
from roomchat.services.broadcaster import Broadcaster
from roomchat.services.connection import Connection
from roomchat.services.dispatcher import CommandDispatcher
from roomchat.services.lobby_timer import LobbyCountdown, LobbyTimer
from roomchat.services.room import LOBBY
from roomchat.services.room_store import RoomStore
from roomchat.services.scheduler import TaskScheduler
from roomchat.services.session import SessionRegistry

logger = get_logger(__name__)


class ChatSystem:
    """聊天核心的组装点与传输层事件入口。

    - ``on_connect(connection)``        → 登记连接
    - ``on_text(connection_id, text)``  → 解析并执行指令
    - ``on_disconnect(connection_id)``  → 离开房间并清理会话
    """

    def __init__(self, config: Settings | None = None) -> None:
        cfg = config or settings
        self.broadcaster = Broadcaster()
        self.scheduler = TaskScheduler()
        self.sessions = SessionRegistry()
        self.countdown = LobbyCountdown(cfg.LOBBY_DURATION_SECONDS)
        self.rooms = RoomStore(
            broadcaster=self.broadcaster,
            scheduler=self.scheduler,
            countdown=self.countdown,
            grace_seconds=cfg.ROOM_GRACE_SECONDS,
            reserved_case_insensitive=cfg.LOBBY_RESERVED_CASE_INSENSITIVE,
        )
        self.lobby_timer = LobbyTimer(
            countdown=self.countdown,
            store=self.rooms,
            scheduler=self.scheduler,
            tick_seconds=cfg.LOBBY_TICK_SECONDS,
        )
        self.dispatcher = CommandDispatcher(self.sessions, self.rooms, self.broadcaster)

    def start(self) -> None:
        """启动后台任务。需要在事件循环内调用。"""
        self.lobby_timer.start()

    async def shutdown(self) -> None:
        await self.scheduler.shutdown()
        logger.info("聊天系统已停止")

    def on_connect(self, connection: Connection) -> None:
        self.broadcaster.register(connection)
        logger.info(
            "连接建立 | 在线: %d | 已登录: %d",
            self.broadcaster.online_count, len(self.sessions),
        )

    async def on_text(self, connection_id: str, payload: str) -> None:
        await self.dispatcher.dispatch(connection_id, payload)

    async def on_disconnect(self, connection_id: str) -> None:
        """连接关闭：即使从未登录或加入房间，两步清理也都会执行。"""
        self.rooms.leave(connection_id)
        self.sessions.forget(connection_id)
        self.broadcaster.unregister(connection_id)
        logger.info(
            "连接断开 | 在线: %d | 已登录: %d",
            self.broadcaster.online_count, len(self.sessions),
        )

    def lobby_status(self) -> LobbyStatusData:
        return LobbyStatusData(
            remaining=self.countdown.remaining,
            duration=self.countdown.duration,
            online_count=len(self.rooms.members_of(LOBBY)),
        )
