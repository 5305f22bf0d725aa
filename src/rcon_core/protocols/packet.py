# src/rcon_core/protocols/packet.py
"""
RCON 协议层 - 数据包编解码 (Packet Codec)

帧结构 (小端序):
    int32 size | int32 id | int32 type | bytes body | 0x00 | 0x00

size 为其后所有字节的长度 (id + type + body + 2)，线上总长度为 size + 4。
本模块只做纯粹的构建与解析，不包含任何 socket 操作。
"""

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum

from ..exceptions import LargePacketError, NonAsciiBodyError, UndersizedPacketError
from .constants import COLOR_CODE_INTRODUCER, PacketCode, PacketConst
from .sanitizer import strip_color_codes

logger = logging.getLogger(__name__)


class PacketKind(IntEnum):
    """数据包类型。

    COMMAND 与 AUTH_RESPONSE 共用数值 2，只能由上下文区分。
    未知的数值不会被拒绝，而是解码为携带原始值的 UNKNOWN 伪成员。
    """

    LOGIN = PacketCode.LOGIN
    COMMAND = PacketCode.COMMAND
    RESPONSE = PacketCode.RESPONSE

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int):
            return None
        pseudo = int.__new__(cls, value)
        pseudo._name_ = "UNKNOWN"
        pseudo._value_ = value
        return pseudo

    @property
    def is_unknown(self) -> bool:
        return self._name_ == "UNKNOWN"

    @property
    def label(self) -> str:
        """人类可读的类型名称。"""
        if self.is_unknown:
            return f"UNKNOWN({self._value_})"
        return _KIND_LABELS[self._name_]


_KIND_LABELS = {
    "LOGIN": "Login",
    "COMMAND": "Command/Auth Response",
    "RESPONSE": "Response Data",
}


@dataclass(frozen=True)
class Packet:
    """单个 RCON 数据包 (值对象)。

    Attributes:
        size: 帧头声明的 size。新构建的包满足 size == len(body) + 10，
            解码得到的包保留服务器发送的原值。
        id: 关联 ID。服务器成功时回显，认证失败时为 -1。
        kind: 包类型。
        body: 原始正文字节 (不含结束符)。
        text: 经过 UTF-8 解码与颜色代码清洗的显示文本。
    """

    size: int
    id: int
    kind: PacketKind
    body: bytes
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.body

    def to_bytes(self) -> bytes:
        """序列化为线上字节 (使用本包自身的 size 字段)。"""
        return (
            struct.pack(PacketConst.HEADER_FORMAT, self.size, self.id, int(self.kind))
            + self.body
            + PacketConst.TERMINATOR
        )

    def __str__(self) -> str:
        return f"Size: {self.size}, ID: {self.id}, Type: {self.kind.label}\n{self.text}"


def _body_to_bytes(body: str | bytes) -> bytes:
    """将正文转换为字节并校验 ASCII 与长度约束。"""
    if isinstance(body, str):
        try:
            raw = body.encode("ascii")
        except UnicodeEncodeError as e:
            raise NonAsciiBodyError(f"正文包含非 ASCII 字符 (位置 {e.start})") from e
    else:
        raw = bytes(body)
        if not raw.isascii():
            raise NonAsciiBodyError("正文包含 >= 0x80 的字节")

    if len(raw) > PacketConst.MAX_BODY_LEN:
        raise LargePacketError(
            f"正文过长: {len(raw)} 字节 (上限 {PacketConst.MAX_BODY_LEN})",
            length=len(raw),
        )
    return raw


def build_packet(packet_id: int, kind: PacketKind | int, body: str | bytes) -> Packet:
    """构建待发送的数据包对象。

    Raises:
        NonAsciiBodyError: 正文不是 7-bit ASCII。
        LargePacketError: 正文超过单帧上限。
    """
    raw = _body_to_bytes(body)
    return Packet(
        size=len(raw) + PacketConst.SIZE_OVERHEAD,
        id=packet_id,
        kind=PacketKind(kind),
        body=raw,
        text=raw.decode("ascii"),
    )


def encode_packet(packet_id: int, kind: PacketKind | int, body: str | bytes) -> bytes:
    """构建并序列化一个数据包。

    Args:
        packet_id: 客户端选择的关联 ID。
        kind: 包类型 (LOGIN / COMMAND / RESPONSE)。
        body: 正文，必须为 7-bit ASCII。

    Returns:
        bytes: 可直接写入 socket 的完整帧。

    Raises:
        NonAsciiBodyError: 正文不是 7-bit ASCII (不会替换或截断字节)。
        LargePacketError: 正文超过 MAX_BODY_LEN。
    """
    return build_packet(packet_id, kind, body).to_bytes()


def frame_length(size: int) -> int:
    """根据帧头声明的 size 计算该帧在线上占用的字节数。

    帧总是按声明的 size 完整消费，即使 size 超过 4096；
    正文的截断由 decode_packet 负责。

    Raises:
        UndersizedPacketError: size < 10。
        LargePacketError: size 超过 MAX_DECLARED_SIZE，数据流已无法再同步。
    """
    if size < PacketConst.MIN_SIZE:
        raise UndersizedPacketError(f"数据帧长度不足: size={size}", size=size)
    if size > PacketConst.MAX_DECLARED_SIZE:
        raise LargePacketError(f"帧声明的 size 异常: size={size}", length=size)
    return size + PacketConst.SIZE_FIELD_LEN


def decode_packet(
    data: bytes | bytearray | memoryview,
    introducer: str = COLOR_CODE_INTRODUCER,
) -> Packet:
    """解析单个数据帧。

    解析流程:
    1. 读取 size / id / type (小端 int32)。
    2. size 合法时正文长度为 size - 10；越界时截断为 MAX_BODY_LEN，
       且永远不会读出缓冲区之外的数据。
    3. 正文按 UTF-8 解码；失败时显示文本为空，原始字节保留在 body 中。
    4. 显示文本经过颜色代码清洗。

    Args:
        data: 以 size 字段开头的帧数据。
        introducer: 颜色代码引导符。

    Returns:
        Packet: 解析结果。未知的 type 不会报错。

    Raises:
        UndersizedPacketError: 缓冲区不足以容纳包头，或 size < 10。
    """
    buf = bytes(data)
    if len(buf) < PacketConst.HEADER_LEN:
        raise UndersizedPacketError(f"数据不足以容纳包头: {len(buf)} 字节")

    size, packet_id, type_code = struct.unpack_from(PacketConst.HEADER_FORMAT, buf, 0)
    if size < PacketConst.MIN_SIZE:
        raise UndersizedPacketError(f"数据帧长度不足: size={size}", size=size)

    if size > PacketConst.MAX_SIZE:
        logger.warning(
            f"size 越界 ({size})，正文截断为 {PacketConst.MAX_BODY_LEN} 字节"
        )
        body_len = PacketConst.MAX_BODY_LEN
    else:
        body_len = size - PacketConst.SIZE_OVERHEAD

    start = PacketConst.HEADER_LEN
    body = buf[start : start + body_len]

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"正文不是合法的 UTF-8 (ID: {packet_id})，显示文本置空")
        logger.debug(f"原始正文: {body!r}")
        text = ""

    return Packet(
        size=size,
        id=packet_id,
        kind=PacketKind(type_code),
        body=body,
        text=strip_color_codes(text, introducer),
    )
