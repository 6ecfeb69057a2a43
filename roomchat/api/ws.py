"""
roomchat.api.ws
~~~~~~~~~~~~~~~

WebSocket 聊天端点。

端点本身只负责传输：接受连接、逐帧读取文本交给 ``ChatSystem``，
断开时无论原因都执行清理。协议细节见 ``roomchat.schemas.protocol``。
"""
from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from roomchat.core.logging import connection_id_ctx_var, get_logger
from roomchat.services.chat_system import ChatSystem
from roomchat.services.connection import WebSocketConnection

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.websocket("/chat")
async def websocket_chat_endpoint(websocket: WebSocket) -> None:
    """多房间聊天端点。

    Args:
        websocket: FastAPI WebSocket 连接对象。
    """
    connection = WebSocketConnection(websocket)
    token = connection_id_ctx_var.set(connection.connection_id)
    system: ChatSystem = websocket.app.state.chat_system

    try:
        await websocket.accept()
        system.on_connect(connection)
        try:
            while True:
                payload: str = await websocket.receive_text()
                await system.on_text(connection.connection_id, payload)
        except WebSocketDisconnect:
            pass  # 正常断开
        except Exception as e:
            logger.error("WebSocket 异常: %s", e, exc_info=True)
        finally:
            await system.on_disconnect(connection.connection_id)
    finally:
        connection_id_ctx_var.reset(token)
