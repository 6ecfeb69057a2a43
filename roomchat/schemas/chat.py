"""
roomchat.schemas.chat
~~~~~~~~~~~~~~~~~~~~~

房间与大厅状态的 Pydantic 响应模型。
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class RoomInfoData(BaseModel):
    """房间摘要信息。"""

    name: str = Field(..., description="房间名")
    online_count: int = Field(..., description="当前房间内的连接数")
    history_size: int = Field(..., description="房间历史消息条数")
    is_lobby: bool = Field(..., description="是否为常驻大厅")


class LobbyStatusData(BaseModel):
    """大厅倒计时状态。"""

    remaining: int = Field(..., description="距离下次清空大厅历史的剩余 tick 数")
    duration: int = Field(..., description="倒计时完整周期")
    online_count: int = Field(..., description="大厅当前在线数")
