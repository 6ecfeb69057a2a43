"""
roomchat.services.session
~~~~~~~~~~~~~~~~~~~~~~~~~

会话注册表 —— 连接 ID → 显示名。
"""
from __future__ import annotations

from roomchat.core.logging import get_logger

logger = get_logger(__name__)


class SessionRegistry:
    """保存每个连接登录时选择的显示名。

    显示名不要求唯一，也不做内容校验；空字符串同样是合法的名字。
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def login(self, connection_id: str, name: str) -> str:
        """记录（或覆盖）显示名，返回去除首尾空白后的实际值。"""
        display_name = name.strip()
        self._names[connection_id] = display_name
        logger.info("登录 | name=%r", display_name)
        return display_name

    def name_of(self, connection_id: str) -> str | None:
        """返回显示名；未登录时返回 ``None``。"""
        return self._names.get(connection_id)

    def forget(self, connection_id: str) -> None:
        self._names.pop(connection_id, None)

    def __len__(self) -> int:
        return len(self._names)
