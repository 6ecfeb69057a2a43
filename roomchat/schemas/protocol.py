"""
roomchat.schemas.protocol
~~~~~~~~~~~~~~~~~~~~~~~~~

聊天文本协议 —— 客户端帧解析与服务端帧构造。

所有帧都是纯文本，指令仅靠固定前缀区分:
  - ``__login__<name>``  —— 设置显示名
  - ``__create__<name>`` —— 创建房间
  - ``__join__<name>``   —— 加入房间
  - ``__switch__<name>`` —— 离开当前房间并加入目标房间
  - 其它任何文本         —— 聊天消息

服务端下发 ``__login_ok__``、``__rooms__<csv>``、``__lobby_tick__<n>``、
``__lobby_reset__`` 以及 ``"<name>: <text>"`` 格式的聊天行。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

LOGIN_PREFIX: str = "__login__"
CREATE_PREFIX: str = "__create__"
JOIN_PREFIX: str = "__join__"
SWITCH_PREFIX: str = "__switch__"

LOGIN_OK: str = "__login_ok__"
ROOMS_PREFIX: str = "__rooms__"
LOBBY_TICK_PREFIX: str = "__lobby_tick__"
LOBBY_RESET: str = "__lobby_reset__"

CommandKind = Literal["login", "create", "join", "switch", "chat"]

# (前缀, 指令类型, 是否去除首尾空白)，按优先级排列，第一个匹配者生效
_PREFIXES: tuple[tuple[str, CommandKind, bool], ...] = (
    (LOGIN_PREFIX, "login", True),
    (CREATE_PREFIX, "create", True),
    (JOIN_PREFIX, "join", False),
    (SWITCH_PREFIX, "switch", False),
)


class ClientCommand(BaseModel):
    """解析后的客户端指令。"""

    kind: CommandKind = Field(..., description="指令类型")
    argument: str = Field(..., description="前缀之后的参数；聊天消息时为原始文本")


def parse_command(payload: str) -> ClientCommand:
    """把一帧客户端文本解析为 ``ClientCommand``。

    未匹配任何前缀的文本一律视为聊天消息，原样保留。
    """
    for prefix, kind, trim in _PREFIXES:
        if payload.startswith(prefix):
            argument = payload[len(prefix):]
            return ClientCommand(kind=kind, argument=argument.strip() if trim else argument)
    return ClientCommand(kind="chat", argument=payload)


def rooms_frame(names: list[str]) -> str:
    return ROOMS_PREFIX + ",".join(names)


def lobby_tick_frame(remaining: int) -> str:
    return f"{LOBBY_TICK_PREFIX}{remaining}"


def chat_line(display_name: str, text: str) -> str:
    return f"{display_name}: {text}"
