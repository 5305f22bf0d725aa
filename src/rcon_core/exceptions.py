# File: src/rcon_core/exceptions.py
"""
RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 Shell/CLI）能进行精细的错误处理。
"""


class RconError(Exception):
    """RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 host)。
    2. 字段格式错误 (如端口越界、超时非正数、未知的超长策略)。
    3. 找不到配置文件或环境变量。
    """

    pass


class NetworkError(RconError):
    """网络层面的错误 (I/O 级别)。

    触发场景:
    1. 连接被拒绝、主机不可达或 DNS 解析失败。
    2. 发送 (send) 超时或失败。
    3. 对端关闭连接 (recv 返回空) 或连接被重置。

    注意: 读超时不属于此类错误，它被传输层视为"本轮数据已读完"。
    此类错误意味着会话已不可用，上层逻辑应销毁会话并重新连接。
    """

    pass


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 收到的数据帧声明长度不足 (size < 10)。
    2. 命令正文无法编码为合法数据包 (非 ASCII 或超长)。
    3. 在接收循环中解码失败，本次命令被整体放弃。
    """

    pass


class PacketError(ProtocolError):
    """数据包编解码错误的基类 (由 Packet Codec 抛出)。"""

    pass


class NonAsciiBodyError(PacketError):
    """正文包含 >= 0x80 的字节，协议只允许 7-bit ASCII。"""

    pass


class UndersizedPacketError(PacketError):
    """数据帧声明的 size 小于协议最小值 (10)，或缓冲区不足以容纳包头。"""

    def __init__(self, message: str, size: int | None = None) -> None:
        super().__init__(message)
        self.size = size


class LargePacketError(PacketError):
    """正文超出单帧可承载的最大长度 (4096 - 12 字节)。"""

    def __init__(self, message: str, length: int | None = None) -> None:
        super().__init__(message)
        self.length = length


class AuthError(RconError):
    """认证被拒绝 (业务层面的失败)。

    认证流程完整走完，但服务器返回了 -1 或不匹配的 ID。
    与 NetworkError 不同，这通常意味着密码错误，需要用户重新输入。
    """

    def __init__(self, message: str, packet_id: int | None = None) -> None:
        """初始化认证错误。

        Args:
            message: 错误描述信息。
            packet_id: 服务器回显的包 ID (通常为 -1)，未收到响应时为 None。
        """
        super().__init__(message)
        self.packet_id = packet_id


class StateError(RconError):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 未认证就尝试发送命令。
    2. 在连接已关闭或已出错的会话上继续操作。
    """

    pass
