# tests/conftest.py
import socket
import sys
import threading
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig
from rcon_core.protocols.framing import PacketBuffer
from rcon_core.protocols.packet import decode_packet


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个用于单元测试的 RconConfig 对象。
    关闭认证后续空命令，便于精确控制 Mock 的收发次数。
    """
    return RconConfig(
        host="127.0.0.1",
        port=27015,
        password="test_password",
        timeout=0.2,
        connect_timeout=1.0,
        buffer_size=4096,
        oversize_policy="reject",
        auth_followup=False,
    )


class StubRconServer:
    """
    单连接的 RCON 桩服务器 (仅用于测试)。

    handler(packet) 返回要回写的字节块列表，每个字节块用一次 sendall 发出；
    返回 None 时服务器关闭连接。
    """

    def __init__(self, handler):
        self.handler = handler
        self.received = []
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self._sock.settimeout(5.0)
        self.port = self._sock.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self):
        self._thread.start()
        return self

    def _serve(self):
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return

        buffer = PacketBuffer()
        with conn:
            conn.settimeout(5.0)
            while True:
                try:
                    data = conn.recv(4096)
                except OSError:
                    return
                if not data:
                    return
                buffer.feed(data)
                for frame in buffer:
                    packet = decode_packet(frame)
                    self.received.append(packet)
                    replies = self.handler(packet)
                    if replies is None:
                        return
                    for reply in replies:
                        conn.sendall(reply)

    def stop(self):
        self._sock.close()
        self._thread.join(timeout=5.0)


@pytest.fixture
def stub_server():
    """[Fixture] 返回一个启动桩服务器的工厂函数，测试结束后自动关闭。"""
    servers = []

    def _start(handler):
        server = StubRconServer(handler).start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.stop()
