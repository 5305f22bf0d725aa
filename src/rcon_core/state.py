# File: src/rcon_core/state.py
"""
RCON 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Session 读写。
"""

from dataclasses import dataclass
from enum import Enum, auto

from .protocols.constants import SessionConst


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTED -> AUTHENTICATED (-> 命令收发循环)
                        |              |
                        v              v
                      ERROR          ERROR
    任意状态调用 close() 后进入 CLOSED。
    """

    DISCONNECTED = auto()
    """初始状态，会话已实例化但尚未建立 TCP 连接。"""

    CONNECTED = auto()
    """TCP 连接已建立，尚未认证 (或认证被拒绝)。"""

    AUTHENTICATED = auto()
    """认证成功，可以发送命令。"""

    CLOSED = auto()
    """连接已由本地主动关闭。"""

    ERROR = auto()
    """传输层发生不可恢复的错误，会话已失效，需要重新连接。"""


@dataclass
class RconState:
    """存储 RCON 会话的易变状态数据。

    该对象是非持久化的。重新连接时应创建新的会话，
    以避免旧的 ID 序列污染新连接。

    Attributes:
        status: 当前会话状态。
        last_sent_id: 最近一次成功发送的命令 ID。
        next_send_id: 下一条命令将使用的 ID，每次发送成功后自增。
        last_received_id: 最近一次收到的数据包 ID。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
    """

    status: SessionStatus = SessionStatus.DISCONNECTED
    last_sent_id: int = 0
    next_send_id: int = SessionConst.FIRST_COMMAND_ID
    last_received_id: int = 0
    last_error: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def is_usable(self) -> bool:
        """连接是否仍可用于收发 (已连接或已认证)。"""
        return self.status in (SessionStatus.CONNECTED, SessionStatus.AUTHENTICATED)
