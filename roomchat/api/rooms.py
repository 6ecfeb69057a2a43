"""
roomchat.api.rooms
~~~~~~~~~~~~~~~~~~

房间与大厅状态的只读 HTTP 接口。
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from roomchat.api.deps import get_chat_system
from roomchat.schemas.api_response import ApiResponse
from roomchat.schemas.chat import LobbyStatusData, RoomInfoData
from roomchat.services.chat_system import ChatSystem

router: APIRouter = APIRouter()


@router.get("/rooms", response_model=ApiResponse[list[RoomInfoData]])
async def list_rooms(
    system: ChatSystem = Depends(get_chat_system),
) -> ApiResponse[list[RoomInfoData]]:
    """列出当前所有房间（含 lobby）的摘要。"""
    return ApiResponse.ok(data=system.rooms.info())


@router.get("/lobby", response_model=ApiResponse[LobbyStatusData])
async def lobby_status(
    system: ChatSystem = Depends(get_chat_system),
) -> ApiResponse[LobbyStatusData]:
    """返回大厅倒计时状态。"""
    return ApiResponse.ok(data=system.lobby_status())
