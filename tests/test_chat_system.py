"""
tests.test_chat_system
~~~~~~~~~~~~~~~~~~~~~~

端到端的指令流程测试：经由 ``ChatSystem`` 的传输层事件入口驱动。
"""
from __future__ import annotations

import asyncio
import logging

import pytest

from roomchat.services.room import LOBBY
from tests.conftest import FAST_GRACE_SECONDS, sent_texts


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_acknowledges_and_sends_room_list(self, system, connect) -> None:
        a = connect("a")
        system.rooms.ensure_room("general")

        await system.on_text("a", "__login__ alice ")

        assert sent_texts(a) == ["__login_ok__", "__rooms__lobby,general"]
        assert system.sessions.name_of("a") == "alice"

    @pytest.mark.asyncio
    async def test_relogin_overwrites_name(self, system, connect) -> None:
        connect("a")

        await system.on_text("a", "__login__alice")
        await system.on_text("a", "__login__alicia")

        assert system.sessions.name_of("a") == "alicia"


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_broadcasts_room_list_to_connections_in_rooms(self, system, connect) -> None:
        a = connect("a")
        b = connect("b")
        await system.on_text("a", "__join__lobby")
        a.send_text.reset_mock()

        await system.on_text("b", "__create__ general ")

        assert "general" in system.rooms.room_names()
        assert sent_texts(a) == ["__rooms__lobby,general"]
        # b 不在任何房间，收不到列表广播
        assert sent_texts(b) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", "lobby", "Lobby"])
    async def test_create_reserved_or_empty_is_ignored(self, system, connect, name: str) -> None:
        a = connect("a")
        await system.on_text("a", "__join__lobby")
        await system.rooms.append(LOBBY, "x: keep")
        a.send_text.reset_mock()

        await system.on_text("a", f"__create__{name}")

        assert system.rooms.room_names() == [LOBBY]
        assert system.rooms.get(LOBBY).history == ["x: keep"]
        assert sent_texts(a) == []

    @pytest.mark.asyncio
    async def test_create_revives_room_pending_deletion(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__join__general")
        await system.on_text("a", "__switch__lobby")
        assert system.rooms.is_deletion_pending("general")

        await system.on_text("a", "__create__general")
        await asyncio.sleep(FAST_GRACE_SECONDS * 3)

        assert "general" in system.rooms.room_names()


class TestJoinAndSwitch:

    @pytest.mark.asyncio
    async def test_join_leaves_previous_room(self, system, connect) -> None:
        connect("a")

        await system.on_text("a", "__join__lobby")
        await system.on_text("a", "__join__general")

        assert system.rooms.room_of("a") == "general"
        assert system.rooms.members_of(LOBBY) == []
        assert system.rooms.members_of("general") == ["a"]

    @pytest.mark.asyncio
    async def test_join_name_is_not_trimmed(self, system, connect) -> None:
        connect("a")

        await system.on_text("a", "__join__ general")

        assert system.rooms.room_of("a") == " general"

    @pytest.mark.asyncio
    async def test_switch_into_lobby_syncs_timer(self, system, connect) -> None:
        a = connect("a")
        system.countdown.remaining = 42

        await system.on_text("a", "__switch__lobby")

        assert sent_texts(a) == ["__lobby_tick__42"]

    @pytest.mark.asyncio
    async def test_rejoin_same_room_keeps_it_alive(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__join__general")

        await system.on_text("a", "__join__general")
        await asyncio.sleep(FAST_GRACE_SECONDS * 3)

        assert system.rooms.room_of("a") == "general"
        assert "general" in system.rooms.room_names()


class TestChat:

    @pytest.mark.asyncio
    async def test_text_before_login_is_dropped(self, system, connect) -> None:
        a = connect("a")
        b = connect("b")
        await system.on_text("a", "__join__lobby")
        await system.on_text("b", "__join__lobby")
        a.send_text.reset_mock()
        b.send_text.reset_mock()

        await system.on_text("a", "hello")

        assert system.rooms.get(LOBBY).history == []
        assert sent_texts(a) == []
        assert sent_texts(b) == []

    @pytest.mark.asyncio
    async def test_text_outside_any_room_is_dropped(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__login__alice")

        await system.on_text("a", "hello")

        assert all(not system.rooms.get(name).history for name in system.rooms.room_names())

    @pytest.mark.asyncio
    async def test_empty_display_name_can_chat(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__login__")
        await system.on_text("a", "__join__lobby")

        await system.on_text("a", "hi")

        assert system.rooms.get(LOBBY).history == [": hi"]

    @pytest.mark.asyncio
    async def test_general_room_scenario(self, system, connect) -> None:
        """alice 与 bob 在 general 中聊天，双双离开后房间在宽限期后消失。"""
        a = connect("a")
        b = connect("b")

        await system.on_text("a", "__login__alice")
        await system.on_text("a", "__join__general")
        await system.on_text("a", "hi")
        assert system.rooms.get("general").history == ["alice: hi"]

        await system.on_text("b", "__login__bob")
        b.send_text.reset_mock()
        await system.on_text("b", "__join__general")
        assert sent_texts(b) == ["alice: hi"]

        a.send_text.reset_mock()
        await system.on_text("b", "yo")
        assert sent_texts(a) == ["bob: yo"]
        assert sent_texts(b)[-1] == "bob: yo"

        await system.on_text("a", "__switch__lobby")
        await system.on_text("b", "__switch__lobby")
        assert "general" in system.rooms.room_names()
        a.send_text.reset_mock()
        b.send_text.reset_mock()

        await asyncio.sleep(FAST_GRACE_SECONDS * 3)

        assert system.rooms.room_names() == [LOBBY]
        assert sent_texts(a) == ["__rooms__lobby"]
        assert sent_texts(b) == ["__rooms__lobby"]


class TestDisconnect:

    @pytest.mark.asyncio
    async def test_disconnect_cleans_session_and_membership(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__login__alice")
        await system.on_text("a", "__join__general")

        await system.on_disconnect("a")

        assert system.sessions.name_of("a") is None
        assert system.rooms.room_of("a") is None
        assert system.broadcaster.get("a") is None
        assert system.rooms.is_deletion_pending("general")
        await system.shutdown()

    @pytest.mark.asyncio
    async def test_disconnect_without_login_or_join(self, system, connect) -> None:
        connect("a")

        await system.on_disconnect("a")

        assert system.broadcaster.online_count == 0

    @pytest.mark.asyncio
    async def test_lobby_status(self, system, connect) -> None:
        connect("a")
        await system.on_text("a", "__join__lobby")

        status = system.lobby_status()

        assert status.remaining == 300
        assert status.duration == 300
        assert status.online_count == 1

    @pytest.mark.asyncio
    async def test_disconnect_log_reports_logged_in_count(self, system, connect, caplog) -> None:
        connect("a")
        connect("b")
        await system.on_text("a", "__login__alice")
        await system.on_text("b", "__login__bob")
        caplog.set_level(logging.INFO, logger="roomchat.services.chat_system")

        await system.on_disconnect("a")

        assert len(system.sessions) == 1
        assert "已登录: 1" in caplog.text
