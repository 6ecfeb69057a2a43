"""
roomchat.schemas
~~~~~~~~~~~~~~~~
Pydantic 模型：HTTP 应答体、房间摘要与聊天协议指令。
"""
from roomchat.schemas.api_response import ApiResponse
from roomchat.schemas.chat import LobbyStatusData, RoomInfoData
from roomchat.schemas.protocol import ClientCommand, parse_command

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
