"""
roomchat.services.dispatcher
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

指令分发器 —— 把一帧客户端文本解析为指令并调用会话 / 房间操作。
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable

from roomchat.core.logging import get_logger
from roomchat.schemas.protocol import LOGIN_OK, chat_line, parse_command, rooms_frame
from roomchat.services.broadcaster import Broadcaster
from roomchat.services.room_store import RoomStore
from roomchat.services.session import SessionRegistry

logger = get_logger(__name__)

Handler = Callable[[str, str], Awaitable[None]]


class CommandDispatcher:
    """按指令类型路由到对应的处理方法。"""

    def __init__(
        self,
        sessions: SessionRegistry,
        rooms: RoomStore,
        broadcaster: Broadcaster,
    ) -> None:
        self.sessions = sessions
        self.rooms = rooms
        self.broadcaster = broadcaster
        self._handlers: dict[str, Handler] = {
            "login": self._login,
            "create": self._create,
            "join": self._move,
            "switch": self._move,
            "chat": self._chat,
        }

    async def dispatch(self, connection_id: str, payload: str) -> None:
        command = parse_command(payload)
        await self._handlers[command.kind](connection_id, command.argument)

    async def _login(self, connection_id: str, name: str) -> None:
        self.sessions.login(connection_id, name)
        await self.broadcaster.send(connection_id, LOGIN_OK)
        await self.broadcaster.send(connection_id, rooms_frame(self.rooms.room_names()))

    async def _create(self, connection_id: str, name: str) -> None:
        if not self.rooms.can_create(name):
            logger.debug("拒绝创建房间 | room=%r", name)
            return
        self.rooms.ensure_room(name)
        await self.rooms.broadcast_room_list()

    async def _move(self, connection_id: str, name: str) -> None:
        """``__join__`` 与 ``__switch__``：先离开当前房间，再加入目标房间。"""
        self.rooms.leave(connection_id)
        await self.rooms.join(connection_id, name)

    async def _chat(self, connection_id: str, text: str) -> None:
        room = self.rooms.room_of(connection_id)
        name = self.sessions.name_of(connection_id)
        if room is None or name is None:
            # 未登录或不在任何房间：静默丢弃
            logger.debug("丢弃消息 | room=%s | logged_in=%s", room, name is not None)
            return
        await self.rooms.append(room, chat_line(name, text))
