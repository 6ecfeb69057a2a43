"""
roomchat.services.room
~~~~~~~~~~~~~~~~~~~~~~

聊天房间实体 —— 成员集合与按插入顺序排列的历史消息。
"""
from __future__ import annotations

from roomchat.schemas.chat import RoomInfoData

LOBBY: str = "lobby"


class Room:
    """一个聊天房间。

    Attributes:
        name: 房间名，路由时按字符串精确比较。
        members: 当前在房间内的连接 ID。
        history: 房间历史消息，按追加顺序排列。
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.members: set[str] = set()
        self.history: list[str] = []

    @property
    def is_lobby(self) -> bool:
        return self.name == LOBBY

    @property
    def online_count(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def info(self) -> RoomInfoData:
        """返回房间摘要信息。"""
        return RoomInfoData(
            name=self.name,
            online_count=self.online_count,
            history_size=len(self.history),
            is_lobby=self.is_lobby,
        )
