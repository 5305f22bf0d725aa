# src/rcon_core/protocols/constants.py
"""
RCON 协议层 - 常量定义

本模块定义了所有协议相关的魔法数字、偏移量和固定值。
采用命名空间 (Class Namespace) 组织，不使用扁平全局变量。
"""

# =========================================================================
# 1. 包类型码 (Packet Type Codes)
# =========================================================================


class PacketCode:
    """数据包 type 字段取值"""

    LOGIN = 3  # SERVERDATA_AUTH
    COMMAND = 2  # SERVERDATA_EXECCOMMAND / SERVERDATA_AUTH_RESPONSE
    RESPONSE = 0  # SERVERDATA_RESPONSE_VALUE


# =========================================================================
# 2. 帧结构常量
# =========================================================================


class PacketConst:
    # <i size> <i id> <i type>，全部小端序
    HEADER_FORMAT = "<iii"
    SIZE_FORMAT = "<i"
    SIZE_FIELD_LEN = 4
    HEADER_LEN = 12

    # 正文后的两个 NUL 字节 (正文结束符 + 空字符串填充)
    TERMINATOR = b"\x00\x00"

    # size = id(4) + type(4) + body + 2
    SIZE_OVERHEAD = 10
    MIN_SIZE = 10
    MAX_SIZE = 4096

    # 单帧可承载的最大正文长度
    MAX_BODY_LEN = MAX_SIZE - 12

    # 分帧时可接受的最大声明 size；更大的值视为数据流已错乱
    MAX_DECLARED_SIZE = 4 * MAX_SIZE


# =========================================================================
# 3. 认证阶段常量
# =========================================================================


class AuthConst:
    # 登录包使用的固定 ID (ASCII "RCON")，需非零且与命令 ID 序列错开
    LOGIN_ID = 0x52434F4E

    # 服务器拒绝认证时回显的哨兵 ID
    FAILED_ID = -1

    # 认证成功后发送的空命令 (部分服务器要求)
    FOLLOWUP_BODY = ""


# =========================================================================
# 4. 会话与传输默认值
# =========================================================================


class SessionConst:
    FIRST_COMMAND_ID = 1

    # 超长命令的处理策略
    OVERSIZE_REJECT = "reject"
    OVERSIZE_TRUNCATE = "truncate"
    OVERSIZE_POLICIES = (OVERSIZE_REJECT, OVERSIZE_TRUNCATE)


class NetworkConst:
    DEFAULT_PORT = 27015
    DEFAULT_TIMEOUT = 1.0
    DEFAULT_CONNECT_TIMEOUT = 5.0
    RECV_BUFFER_SIZE = 4096


# =========================================================================
# 5. 文本清洗
# =========================================================================

# 部分游戏服务器 (如 Minecraft) 用 "§" + 1 个字符表示颜色代码
COLOR_CODE_INTRODUCER = "§"
