# src/rcon_core/protocols/framing.py
"""
RCON 协议层 - 流式分帧 (Stream Framing)

TCP 是字节流，一次 recv 可能只拿到半个包，也可能拿到粘连的多个包。
PacketBuffer 缓存收到的字节，严格按照 size 字段切出完整帧。
"""

import logging
import struct
from collections.abc import Iterator

from ..exceptions import PacketError
from .constants import PacketConst
from .packet import frame_length

logger = logging.getLogger(__name__)


class PacketBuffer:
    """按 size 字段切分字节流的接收缓冲区。"""

    def __init__(self) -> None:
        self._buf = bytearray()

    @property
    def pending(self) -> int:
        """缓冲区中尚未组成完整帧的字节数。"""
        return len(self._buf)

    def feed(self, data: bytes) -> None:
        self._buf += data

    def clear(self) -> None:
        self._buf.clear()

    def next_frame(self) -> bytes | None:
        """取出下一个完整帧；数据不足时返回 None。

        Raises:
            UndersizedPacketError: 帧头声明的 size < 10。
            LargePacketError: 帧头声明的 size 超过 MAX_DECLARED_SIZE。
            两种情况下缓冲区都会被清空。
        """
        if len(self._buf) < PacketConst.SIZE_FIELD_LEN:
            return None

        (size,) = struct.unpack_from(PacketConst.SIZE_FORMAT, self._buf, 0)
        try:
            length = frame_length(size)
        except PacketError:
            self.clear()
            raise

        if len(self._buf) < length:
            return None

        if size > PacketConst.MAX_SIZE:
            logger.warning(f"帧声明的 size 超过 {PacketConst.MAX_SIZE} ({size})，正文将被截断")

        frame = bytes(self._buf[:length])
        del self._buf[:length]
        return frame

    def pop_frames(self) -> list[bytes]:
        """取出当前所有完整帧。"""
        return list(self)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            frame = self.next_frame()
            if frame is None:
                return
            yield frame
