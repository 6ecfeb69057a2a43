"""
roomchat.services.room_store
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间仓库 —— 管理所有房间的成员、历史与生命周期。

``lobby`` 常驻且永不删除；其它房间按需创建，最后一个成员离开后进入
宽限期，宽限期内无人加入则被删除。所有修改都在不含 ``await`` 的同步片段内
完成，广播前先对成员集合取快照。
"""
from __future__ import annotations

from roomchat.core.logging import get_logger
from roomchat.schemas.chat import RoomInfoData
from roomchat.schemas.protocol import LOBBY_RESET, lobby_tick_frame, rooms_frame
from roomchat.services.broadcaster import Broadcaster
from roomchat.services.lobby_timer import LobbyCountdown
from roomchat.services.room import LOBBY, Room
from roomchat.services.scheduler import TaskScheduler

logger = get_logger(__name__)


class RoomStore:
    """所有房间的注册表。

    Attributes:
        grace_seconds: 空房间延迟删除的宽限期。
        reserved_case_insensitive: 创建房间时是否忽略大小写地保留 ``lobby``。
    """

    def __init__(
        self,
        broadcaster: Broadcaster,
        scheduler: TaskScheduler,
        countdown: LobbyCountdown,
        grace_seconds: float = 10.0,
        reserved_case_insensitive: bool = True,
    ) -> None:
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.countdown = countdown
        self.grace_seconds = grace_seconds
        self.reserved_case_insensitive = reserved_case_insensitive
        self._rooms: dict[str, Room] = {LOBBY: Room(LOBBY)}
        self._user_room: dict[str, str] = {}

    # ── 查询 ──────────────────────────────────────────────────────────

    def get(self, name: str) -> Room | None:
        return self._rooms.get(name)

    def room_names(self) -> list[str]:
        """当前所有房间名，``lobby`` 在前，其余按创建顺序。"""
        return list(self._rooms)

    def room_of(self, connection_id: str) -> str | None:
        return self._user_room.get(connection_id)

    def members_of(self, name: str) -> list[str]:
        room = self._rooms.get(name)
        return list(room.members) if room else []

    def all_members(self) -> list[str]:
        """所有身处任一房间的连接 ID 快照。"""
        return list(self._user_room)

    def info(self) -> list[RoomInfoData]:
        return [room.info() for room in list(self._rooms.values())]

    def is_reserved(self, name: str) -> bool:
        if self.reserved_case_insensitive:
            return name.lower() == LOBBY
        return name == LOBBY

    def can_create(self, name: str) -> bool:
        """``__create__`` 拒绝空名与保留名。"""
        return bool(name) and not self.is_reserved(name)

    # ── 生命周期 ──────────────────────────────────────────────────────

    @staticmethod
    def _deletion_key(name: str) -> str:
        return f"room-delete:{name}"

    def ensure_room(self, name: str) -> bool:
        """确保房间存在，并取消其待执行的删除任务。

        Returns:
            本次是否新建了房间。
        """
        if self.scheduler.cancel(self._deletion_key(name)):
            logger.info("房间在宽限期内被重新启用 | room=%s", name)
        if name in self._rooms:
            return False
        self._rooms[name] = Room(name)
        logger.info("房间已创建 | room=%s | 房间总数: %d", name, len(self._rooms))
        return True

    async def join(self, connection_id: str, name: str) -> None:
        """加入房间并回放完整历史；加入 ``lobby`` 时额外下发当前倒计时。

        回放期间追加的新消息会在回放循环中补发，直到历史不再增长才把连接
        加入成员集合，因此新成员收到的顺序与历史顺序一致。回放期间大厅被重置时
        先下发 ``__lobby_reset__``，再从新的历史开头补发。
        """
        self.ensure_room(name)
        room = self._rooms[name]
        history = room.history
        sent = 0
        while True:
            current = self._rooms.get(name)
            if current is None:
                # 回放期间房间被删除，重新创建
                self.ensure_room(name)
                current = self._rooms[name]
            if current is not room or current.history is not history:
                # 房间被重建或历史被重置，从新列表开头补发
                lobby_reset = sent > 0 and current is room and room.is_lobby
                room, history, sent = current, current.history, 0
                if lobby_reset:
                    await self.broadcaster.send(connection_id, LOBBY_RESET)
                    continue
            pending = history[sent:]
            if not pending:
                self._user_room[connection_id] = name
                room.members.add(connection_id)
                break
            for line in pending:
                await self.broadcaster.send(connection_id, line)
                sent += 1
                if self._rooms.get(name) is not room or room.history is not history:
                    break

        logger.info("加入房间 | room=%s | 在线: %d", name, room.online_count)
        if name == LOBBY:
            await self.broadcaster.send(connection_id, lobby_tick_frame(self.countdown.remaining))

    def leave(self, connection_id: str) -> str | None:
        """离开当前房间，返回原房间名；不在任何房间时返回 ``None``。"""
        name = self._user_room.pop(connection_id, None)
        if name is None:
            return None
        room = self._rooms.get(name)
        if room is None:
            return name
        room.members.discard(connection_id)
        logger.info("离开房间 | room=%s | 在线: %d", name, room.online_count)
        if not room.is_lobby and room.is_empty:
            self._schedule_deletion(name)
        return name

    def _schedule_deletion(self, name: str) -> None:
        async def expire() -> None:
            await self.expire_room(name)

        if self.scheduler.schedule_once(self._deletion_key(name), self.grace_seconds, expire):
            logger.info("房间已空，%.1fs 后删除 | room=%s", self.grace_seconds, name)

    def is_deletion_pending(self, name: str) -> bool:
        return self.scheduler.is_pending(self._deletion_key(name))

    def delete_if_empty(self, name: str) -> bool:
        """仅当房间存在、非大厅且为空时删除。"""
        room = self._rooms.get(name)
        if room is None or room.is_lobby or not room.is_empty:
            return False
        del self._rooms[name]
        logger.info("房间已删除 | room=%s | 房间总数: %d", name, len(self._rooms))
        return True

    async def expire_room(self, name: str) -> None:
        """宽限期到期回调：重新检查是否为空，删除后广播新的房间列表。"""
        if self.delete_if_empty(name):
            await self.broadcast_room_list()

    # ── 消息 ──────────────────────────────────────────────────────────

    async def append(self, name: str, text: str) -> bool:
        """追加历史并广播给房间成员；房间已不存在时丢弃。"""
        room = self._rooms.get(name)
        if room is None:
            return False
        room.history.append(text)
        await self.broadcaster.broadcast(list(room.members), text)
        return True

    def reset_history(self, name: str) -> None:
        room = self._rooms.get(name)
        if room is not None:
            # 替换而非原地清空，回放中的 join 据此发现重置
            room.history = []

    async def broadcast_to_room(self, name: str, message: str) -> int:
        return await self.broadcaster.broadcast(self.members_of(name), message)

    async def broadcast_room_list(self) -> int:
        """向所有身处房间的连接广播当前房间列表。"""
        return await self.broadcaster.broadcast(self.all_members(), rooms_frame(self.room_names()))
