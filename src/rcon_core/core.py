# File: src/rcon_core/core.py
"""
RCON 核心引擎 (Session)

职责：
1. 资源组装：State + Network + Config。
2. ID 序列管理：每条命令使用递增的关联 ID。
3. 认证握手与多包响应聚合。
4. 生命周期：Connect -> Authenticate -> Command* -> Close。
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from .config import RconConfig, create_config_from_dict
from .exceptions import (
    AuthError,
    LargePacketError,
    NetworkError,
    PacketError,
    ProtocolError,
    StateError,
)
from .network import NetworkClient
from .protocols.constants import AuthConst, PacketConst, SessionConst
from .protocols.framing import PacketBuffer
from .protocols.packet import Packet, PacketKind, build_packet, decode_packet
from .state import RconState, SessionStatus

logger = logging.getLogger(__name__)

# 状态回调函数类型别名
StatusCallback = Callable[[SessionStatus, str], Any]

# int32 上限，ID 超出后回绕
_MAX_PACKET_ID = 0x7FFFFFFF


def evaluate_auth_responses(packets: Iterable[Packet], sent_id: int) -> bool:
    """判断认证响应序列是否表示成功。

    当且仅当至少收到一个包、每个包的 ID 都等于发送的登录 ID、
    且没有任何包的 ID 为 -1 时认证成功。
    不匹配的 ID 也视为失败：部分服务器在拒绝时会回显随机 ID。
    """
    packets = list(packets)
    if not packets:
        return False
    return all(p.id == sent_id and p.id != AuthConst.FAILED_ID for p in packets)


def _is_end_of_response(packet: Packet) -> bool:
    """多包响应的结束标志：空正文或哨兵 ID。"""
    return packet.is_empty or packet.id == AuthConst.FAILED_ID


def _is_end_of_auth(packet: Packet) -> bool:
    """认证响应的结束标志。

    服务器会先回一个空的 RESPONSE_VALUE，再回 AUTH_RESPONSE (type 2)，
    因此不能以空正文作为结束条件。
    """
    return packet.kind == PacketKind.COMMAND or packet.id == AuthConst.FAILED_ID


class RconSession:
    """RCON 会话 (同步阻塞)。

    一个会话独占一个 TCP 连接，不支持多线程并发使用。
    """

    def __init__(
        self,
        config: RconConfig,
        status_callback: StatusCallback | None = None,
    ) -> None:
        """初始化会话。

        Args:
            config: 全局配置对象。
            status_callback: 初始状态回调，也可使用 add_listener 注册。
        """
        self.config = config

        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

        self._state = RconState()
        self._buffer = PacketBuffer()
        self._auth_ids: list[int] = []
        self.net_client = NetworkClient(config)

    @property
    def state(self) -> RconState:
        """获取当前会话状态的只读副本。

        返回的是一个副本 (Copy)，修改它不会影响会话内部状态。
        """
        return replace(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """建立 TCP 连接，并重置 ID 序列。

        Raises:
            NetworkError: 连接失败。
            StateError: 会话不处于 DISCONNECTED 状态。已关闭或失效的会话
                不能重新连接，调用方应创建新的会话。
        """
        if self._state.status is not SessionStatus.DISCONNECTED:
            raise StateError(f"会话无法连接 (当前状态: {self.status.name})")

        try:
            self.net_client.connect()
        except NetworkError as e:
            self._fail(e)
            raise

        self._state = RconState()
        self._buffer.clear()
        self._update_status(
            SessionStatus.CONNECTED,
            f"已连接到 {self.config.host}:{self.config.port}",
        )

    def close(self) -> None:
        """关闭连接 (可重复调用)。"""
        self.net_client.close()
        self._buffer.clear()
        if self._state.status is not SessionStatus.CLOSED:
            self._update_status(SessionStatus.CLOSED, "连接已关闭")

    def __enter__(self):
        if self._state.status is SessionStatus.DISCONNECTED:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # 认证
    # ------------------------------------------------------------------

    def authenticate(self, password: str | None = None) -> bool:
        """执行一次认证。

        不会在内部重试；返回 False 时由调用方决定是否换密码再试。

        Args:
            password: RCON 密码。为 None 时使用配置中的密码。

        Returns:
            bool: 认证成功返回 True；密码被拒绝或密码无法编码时返回 False。

        Raises:
            StateError: 会话未连接。
            NetworkError: 网络通信异常 (会话随之失效)。
            ProtocolError: 响应无法解析。
        """
        self._require_usable()
        if password is None:
            password = self.config.password

        try:
            login = build_packet(AuthConst.LOGIN_ID, PacketKind.LOGIN, password)
        except PacketError as e:
            self._state.last_error = str(e)
            logger.warning(f"登录包构建失败，未发送: {e}")
            return False

        logger.info("正在认证...")
        self._discard_stale()
        self._send(login)
        responses = self._receive_packets(_is_end_of_auth, login.id)
        self._auth_ids = [p.id for p in responses]

        if not evaluate_auth_responses(responses, login.id):
            self._state.last_error = f"认证被拒绝 (收到 ID: {self._auth_ids})"
            if self._state.status is SessionStatus.AUTHENTICATED:
                self._update_status(SessionStatus.CONNECTED, "重新认证失败")
            logger.warning(self._state.last_error)
            return False

        self._update_status(SessionStatus.AUTHENTICATED, "认证成功")

        if self.config.auth_followup:
            self._auth_followup()

        return True

    def login(self, password: str | None = None) -> None:
        """认证的异常风格封装。

        Raises:
            AuthError: 服务器拒绝了密码。
        """
        self._auth_ids = []
        if not self.authenticate(password):
            last_id = self._auth_ids[-1] if self._auth_ids else None
            raise AuthError(self._state.last_error or "认证失败", packet_id=last_id)

    def _auth_followup(self) -> None:
        """部分服务器要求认证后先处理一个空命令，连接才真正可用。"""
        try:
            responses = self._exchange(PacketKind.COMMAND, AuthConst.FOLLOWUP_BODY)
            logger.debug(f"认证后续空命令已排空 ({len(responses)} 个包)")
        except ProtocolError as e:
            logger.warning(f"认证后续空命令失败 (忽略): {e}")

    # ------------------------------------------------------------------
    # 命令
    # ------------------------------------------------------------------

    def send_command(self, text: str) -> list[Packet]:
        """发送一条命令并收集其 (可能由多个包组成的) 响应。

        Args:
            text: 命令文本，必须为 ASCII。

        Returns:
            list[Packet]: 按接收顺序排列的响应包，包含结束包。

        Raises:
            StateError: 会话未认证 (ID 序列不会改变)。
            ProtocolError: 命令非 ASCII / 超长 (reject 策略)，或响应解析失败。
            NetworkError: 网络通信异常 (会话随之失效)。
        """
        if not self._state.is_authenticated:
            raise StateError(f"会话未认证，无法发送命令 (当前状态: {self.status.name})")

        return self._exchange(PacketKind.COMMAND, text)

    def _exchange(self, kind: PacketKind, body: str) -> list[Packet]:
        """分配 ID、发送一个包并收集响应。"""
        packet_id = self._state.next_send_id
        packet = self._build_command(packet_id, kind, body)

        self._discard_stale()
        self._send(packet)

        self._state.last_sent_id = packet_id
        self._state.next_send_id = (
            packet_id + 1 if packet_id < _MAX_PACKET_ID else SessionConst.FIRST_COMMAND_ID
        )

        return self._receive_packets(_is_end_of_response, packet_id)

    def _build_command(self, packet_id: int, kind: PacketKind, body: str) -> Packet:
        try:
            return build_packet(packet_id, kind, body)
        except LargePacketError:
            if self.config.oversize_policy != SessionConst.OVERSIZE_TRUNCATE:
                raise
            logger.warning(
                f"命令过长 ({len(body)} 字节)，截断为 {PacketConst.MAX_BODY_LEN} 字节"
            )
            return build_packet(packet_id, kind, body[: PacketConst.MAX_BODY_LEN])

    # ------------------------------------------------------------------
    # 收发
    # ------------------------------------------------------------------

    def _send(self, packet: Packet) -> None:
        if packet.kind == PacketKind.LOGIN:
            logger.debug(f"<<< 发送: {packet.kind.label} ID={packet.id} (正文已隐藏)")
        else:
            logger.debug(f"<<< 发送: {packet.kind.label} ID={packet.id} {packet.text!r}")

        try:
            self.net_client.send(packet.to_bytes())
        except NetworkError as e:
            self._fail(e)
            raise

    def _receive_packets(
        self, is_terminal: Callable[[Packet], bool], expected_id: int
    ) -> list[Packet]:
        """接收循环：按 size 分帧并解码，直到出现结束包或读超时。

        ID 与 expected_id 不符的包 (例如上一条超时命令的迟到响应) 仍会收集，
        但会记录一条调试日志。

        Raises:
            ProtocolError: 解码失败，已收集的包被丢弃。
            NetworkError: 连接失效。
        """
        packets: list[Packet] = []
        try:
            for chunk in self.net_client.read_available():
                self._buffer.feed(chunk)
                for frame in self._buffer:
                    packet = decode_packet(frame, self.config.color_code_introducer)
                    logger.debug(
                        f">>> 接收: {packet.kind.label} ID={packet.id} "
                        f"({len(packet.body)} 字节)"
                    )
                    if packet.id not in (expected_id, AuthConst.FAILED_ID):
                        logger.debug(
                            f"响应 ID 不匹配: 期望 {expected_id}，收到 {packet.id}"
                        )
                    packets.append(packet)
                    self._state.last_received_id = packet.id
                    if is_terminal(packet):
                        return packets
        except PacketError as e:
            self._buffer.clear()
            self._state.last_error = str(e)
            raise ProtocolError(f"响应解析失败，本次请求已放弃: {e}") from e
        except NetworkError as e:
            self._fail(e)
            raise

        logger.debug(f"读超时，以超时作为响应结束 (已收到 {len(packets)} 个包)")
        return packets

    def _discard_stale(self) -> None:
        """丢弃上一轮请求结束后残留的字节。"""
        if self._buffer.pending:
            logger.debug(f"丢弃 {self._buffer.pending} 字节残留数据")
            self._buffer.clear()

    # ------------------------------------------------------------------
    # 内部状态
    # ------------------------------------------------------------------

    def _require_usable(self) -> None:
        if not self._state.is_usable:
            raise StateError(f"会话不可用 (当前状态: {self.status.name})")

    def _fail(self, error: Exception) -> None:
        self._state.last_error = str(error)
        self.net_client.close()
        self._update_status(SessionStatus.ERROR, f"连接异常: {error}")

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并触发所有回调。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")


def connect(
    address: str | tuple[str, int] | RconConfig,
    status_callback: StatusCallback | None = None,
    **options: Any,
) -> RconSession:
    """创建会话并建立连接。

    Args:
        address: "host:port" 字符串、(host, port) 元组或完整的 RconConfig。
        status_callback: 状态回调。
        **options: 其余配置字段 (如 timeout、oversize_policy)，
            仅在 address 不是 RconConfig 时生效。

    Returns:
        RconSession: 处于 CONNECTED 状态的会话。

    Raises:
        ConfigError: 地址格式错误。
        NetworkError: 连接失败。
    """
    if isinstance(address, RconConfig):
        config = address
    else:
        if isinstance(address, str):
            host, sep, port = address.rpartition(":")
            raw = {"host": host, "port": port} if sep else {"host": port}
        else:
            host, port = address
            raw = {"host": host, "port": port}
        config = create_config_from_dict({**options, **raw})

    session = RconSession(config, status_callback=status_callback)
    session.connect()
    return session
