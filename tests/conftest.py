"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 用 ``AsyncMock`` 伪造连接，并提供缩短了
宽限期与 tick 间隔的测试配置，使定时相关的测试可以在毫秒级完成。
"""
from __future__ import annotations

import os
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")

from roomchat.core.config import Settings  # noqa: E402
from roomchat.services.chat_system import ChatSystem  # noqa: E402

FAST_GRACE_SECONDS: float = 0.05


def make_fake_connection(connection_id: str, is_open: bool = True) -> MagicMock:
    """构造一个满足 ``Connection`` 接口的假连接。"""
    connection = MagicMock()
    connection.connection_id = connection_id
    connection.is_open = is_open
    connection.send_text = AsyncMock()
    return connection


def sent_texts(connection: MagicMock) -> list[str]:
    """返回假连接收到的全部文本帧（按发送顺序）。"""
    return [call.args[0] for call in connection.send_text.call_args_list]


@pytest.fixture()
def fast_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        LOBBY_DURATION_SECONDS=300,
        LOBBY_TICK_SECONDS=3600,
        ROOM_GRACE_SECONDS=FAST_GRACE_SECONDS,
    )


@pytest.fixture()
def system(fast_settings: Settings) -> ChatSystem:
    """未启动大厅倒计时的聊天系统，tick 由测试手动触发。"""
    return ChatSystem(fast_settings)


@pytest.fixture()
def connect(system: ChatSystem) -> Callable[[str], MagicMock]:
    """登记一个新的假连接并返回它。"""

    def _connect(connection_id: str) -> MagicMock:
        connection = make_fake_connection(connection_id)
        system.on_connect(connection)
        return connection

    return _connect
