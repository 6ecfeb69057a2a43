"""
roomchat.services.connection
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

连接句柄 —— 把传输层的 WebSocket 包装成聊天核心只关心的三件事：
唯一 ID、是否仍然打开、发送文本。
"""
from __future__ import annotations

import uuid
from typing import Protocol

from fastapi import WebSocket
from fastapi.websockets import WebSocketState


class Connection(Protocol):
    """聊天核心依赖的最小连接接口。"""

    connection_id: str

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, message: str) -> None: ...


class WebSocketConnection:
    """基于 FastAPI ``WebSocket`` 的连接实现。

    Attributes:
        websocket: 底层 WebSocket 对象。
        connection_id: 连接生命周期内稳定不变的唯一标识。
    """

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self.websocket = websocket
        self.connection_id = connection_id or f"ws-{uuid.uuid4().hex[:8]}"

    @property
    def is_open(self) -> bool:
        """双向都仍处于 CONNECTED 状态时才视为打开。"""
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, message: str) -> None:
        await self.websocket.send_text(message)
