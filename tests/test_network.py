# tests/test_network.py
import socket
from unittest.mock import MagicMock, patch

import pytest

from rcon_core.network import NetworkClient, NetworkError


@pytest.fixture
def mock_sock():
    with patch("socket.create_connection") as create:
        sock = MagicMock()
        create.return_value = sock
        yield create, sock


def test_network_connect(valid_config, mock_sock):
    create, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()

    create.assert_called_with(
        (valid_config.host, valid_config.port), timeout=valid_config.connect_timeout
    )
    sock.settimeout.assert_called_with(valid_config.timeout)
    assert client.is_connected


def test_network_connect_refused(valid_config):
    with patch("socket.create_connection", side_effect=ConnectionRefusedError("refused")):
        client = NetworkClient(valid_config)

        with pytest.raises(NetworkError, match="无法连接"):
            client.connect()

    assert not client.is_connected


def test_network_send(valid_config, mock_sock):
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()

    client.send(b"data")

    sock.sendall.assert_called_once_with(b"data")


def test_network_send_error(valid_config, mock_sock):
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()
    sock.sendall.side_effect = ConnectionResetError("Mock Error")

    with pytest.raises(NetworkError, match="发送失败"):
        client.send(b"data")


def test_network_send_timeout(valid_config, mock_sock):
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()
    sock.sendall.side_effect = socket.timeout

    with pytest.raises(NetworkError, match="超时"):
        client.send(b"data")


def test_network_send_not_connected(valid_config):
    with pytest.raises(NetworkError, match="连接未建立"):
        NetworkClient(valid_config).send(b"data")


def test_read_available_stops_on_timeout(valid_config, mock_sock):
    """读超时表示本轮数据已读完，而不是错误"""
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()
    sock.recv.side_effect = [b"ab", b"cd", socket.timeout]

    assert list(client.read_available()) == [b"ab", b"cd"]
    sock.recv.assert_called_with(valid_config.buffer_size)


def test_read_available_peer_closed(valid_config, mock_sock):
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()
    sock.recv.side_effect = [b"ab", b""]

    chunks = client.read_available()
    assert next(chunks) == b"ab"
    with pytest.raises(NetworkError, match="关闭"):
        next(chunks)


def test_read_available_reset(valid_config, mock_sock):
    _, sock = mock_sock
    client = NetworkClient(valid_config)
    client.connect()
    sock.recv.side_effect = ConnectionResetError("reset")

    with pytest.raises(NetworkError, match="接收错误"):
        list(client.read_available())


def test_network_close_is_idempotent(valid_config, mock_sock):
    _, sock = mock_sock
    with NetworkClient(valid_config) as client:
        assert client.is_connected

    assert not client.is_connected
    client.close()
    sock.close.assert_called_once()
