# src/rcon_core/protocols/__init__.py
"""
RCON 协议层 (Protocol Layer)

本包负责协议数据包的纯粹构建 (Encode) 、解析 (Decode) 与分帧。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何会话状态管理 (State)。
- 不依赖于 core 或 network 层。
"""

from . import constants
from .framing import PacketBuffer
from .packet import (
    Packet,
    PacketKind,
    build_packet,
    decode_packet,
    encode_packet,
    frame_length,
)
from .sanitizer import strip_color_codes

# 公共 API
__all__ = [
    "constants",
    "Packet",
    "PacketKind",
    "PacketBuffer",
    "build_packet",
    "encode_packet",
    "decode_packet",
    "frame_length",
    "strip_color_codes",
]
