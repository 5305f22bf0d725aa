# src/rcon_core/network.py
"""
RCON 核心库 - 网络模块 (Network)

封装 TCP Socket 的连接、发送和接收逻辑。
该模块屏蔽了底层 Socket 的复杂性，向会话层提供纯粹的 bytes 收发接口。
它不了解数据包边界，只负责超时约束下的字节收发。
"""

import logging
import socket
from collections.abc import Iterator

from .config import RconConfig
from .exceptions import NetworkError

logger = logging.getLogger(__name__)


class NetworkClient:
    """
    封装阻塞式 TCP 操作的客户端。

    读写均设置较短的超时，保证 recv 不会无限期阻塞。
    """

    def __init__(self, config: RconConfig):
        self.config = config
        self.sock: socket.socket | None = None

    @property
    def is_connected(self) -> bool:
        return self.sock is not None

    def connect(self) -> None:
        """
        建立 TCP 连接并设置读写超时。

        Raises:
            NetworkError: 连接被拒绝、超时或地址无法解析。
        """
        if self.sock is not None:
            return

        target = self.config.address
        try:
            sock = socket.create_connection(target, timeout=self.config.connect_timeout)
        except OSError as e:
            raise NetworkError(f"无法连接到 {target[0]}:{target[1]}: {e}") from e

        # settimeout 同时作用于 send 与 recv
        sock.settimeout(self.config.timeout)
        self.sock = sock
        logger.debug(f"TCP 连接已建立: {target}")

    def send(self, data: bytes) -> None:
        """
        完整写出一段字节 (write_all)。

        Raises:
            NetworkError: 未连接、写超时或连接被重置。
        """
        if self.sock is None:
            raise NetworkError("连接未建立")

        try:
            self.sock.sendall(data)
        except socket.timeout as e:
            raise NetworkError(f"发送超时 ({self.config.timeout}s)") from e
        except OSError as e:
            raise NetworkError(f"发送失败: {e}") from e

    def read_available(self) -> Iterator[bytes]:
        """
        逐块读取当前可用的数据，直到一次读取超时。

        这是一个一次性的惰性序列：每次调用返回新的生成器，读超时即结束，
        不能跨调用续读。读超时被视为"暂无更多数据"，而不是错误。

        Yields:
            bytes: 单次 recv 得到的数据块 (非空)。

        Raises:
            NetworkError: 未连接、对端关闭连接或读取失败。
        """
        if self.sock is None:
            raise NetworkError("连接未建立")

        while True:
            try:
                chunk = self.sock.recv(self.config.buffer_size)
            except socket.timeout:
                return
            except OSError as e:
                raise NetworkError(f"接收错误: {e}") from e

            if not chunk:
                raise NetworkError("连接已被服务器关闭")

            yield chunk

    def close(self) -> None:
        """关闭连接 (可重复调用)"""
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None
                logger.debug("TCP 连接已关闭")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
