"""
roomchat.services.broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

连接簿记与尽力而为的消息投递。

所有发送失败都在发送点被捕获并记录，只算作“这个接收者错过了这一条”，
不会中断广播，也不会抛给调用方。
"""
from __future__ import annotations

import asyncio
from collections.abc import Iterable

from roomchat.core.logging import get_logger
from roomchat.services.connection import Connection

logger = get_logger(__name__)


class Broadcaster:
    """按连接 ID 维护在线连接，并提供单播与广播能力。

    Attributes:
        active_connections: 连接 ID → 连接句柄。
    """

    def __init__(self) -> None:
        self.active_connections: dict[str, Connection] = {}

    def register(self, connection: Connection) -> None:
        self.active_connections[connection.connection_id] = connection

    def unregister(self, connection_id: str) -> None:
        self.active_connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Connection | None:
        return self.active_connections.get(connection_id)

    @property
    def online_count(self) -> int:
        """当前在线连接数。"""
        return len(self.active_connections)

    async def send(self, connection_id: str, message: str) -> bool:
        """向单个连接发送文本，返回是否成功。

        连接不存在、已关闭或发送抛出异常时返回 ``False``。
        """
        connection = self.active_connections.get(connection_id)
        if connection is None or not connection.is_open:
            return False
        try:
            await connection.send_text(message)
        except Exception as e:
            logger.warning("发送失败，跳过该连接 | conn=%s | %s", connection_id, e)
            return False
        return True

    async def broadcast(self, connection_ids: Iterable[str], message: str) -> int:
        """向一组连接并发广播，返回成功送达的数量。

        先对 ``connection_ids`` 取快照，广播期间成员变化不影响本轮投递。
        """
        targets = list(connection_ids)
        if not targets:
            return 0
        results = await asyncio.gather(
            *(self.send(cid, message) for cid in targets),
            return_exceptions=True,
        )
        delivered = sum(1 for result in results if result is True)
        if delivered < len(targets):
            logger.debug("广播部分失败 | 送达 %d/%d", delivered, len(targets))
        return delivered
