# src/rcon_core/__init__.py
"""
RCON-Core v1.0.0
Source Engine RCON 协议客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    resolve_password,
)

# 暴露会话与状态
from .core import RconSession, connect, evaluate_auth_responses

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthError,
    ConfigError,
    LargePacketError,
    NetworkError,
    NonAsciiBodyError,
    PacketError,
    ProtocolError,
    RconError,
    StateError,
    UndersizedPacketError,
)
from .protocols import Packet, PacketKind
from .state import RconState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "RconSession",
    "connect",
    "evaluate_auth_responses",
    "RconConfig",
    "RconState",
    "SessionStatus",
    "Packet",
    "PacketKind",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "resolve_password",
    "RconError",
    "ConfigError",
    "NetworkError",
    "ProtocolError",
    "PacketError",
    "NonAsciiBodyError",
    "UndersizedPacketError",
    "LargePacketError",
    "AuthError",
    "StateError",
]
