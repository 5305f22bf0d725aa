"""
RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError
from .protocols.constants import (
    COLOR_CODE_INTRODUCER,
    NetworkConst,
    PacketConst,
    SessionConst,
)

logger = logging.getLogger(__name__)

PASSWORD_ENV_KEY = "RCON_PASSWORD"


@dataclass(frozen=True)
class RconConfig:
    """RconSession 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: RCON 服务器地址 (IP 或域名)。
        port: RCON 服务器端口 (Source 默认 27015)。
        password: RCON 密码，可为空 (由调用方在认证时另行提供)。
        timeout: 单次读/写的超时秒数。读超时同时作为多包响应的兜底结束条件。
        connect_timeout: 建立 TCP 连接的超时秒数。
        buffer_size: 单次 recv 的缓冲区大小。
        oversize_policy: 命令超长时的处理策略 ("reject" 或 "truncate")。
        auth_followup: 认证成功后是否发送一个空命令并排空其响应。
        color_code_introducer: 颜色代码引导符。
    """

    host: str
    port: int = NetworkConst.DEFAULT_PORT
    password: str = ""
    timeout: float = NetworkConst.DEFAULT_TIMEOUT
    connect_timeout: float = NetworkConst.DEFAULT_CONNECT_TIMEOUT
    buffer_size: int = NetworkConst.RECV_BUFFER_SIZE
    oversize_policy: str = SessionConst.OVERSIZE_REJECT
    auth_followup: bool = True
    color_code_introducer: str = COLOR_CODE_INTRODUCER

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"server={self.host}:{self.port}, "
            f"password='******', "
            f"timeout={self.timeout}, "
            f"oversize_policy={self.oversize_policy}>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data or raw_data[key] in (None, ""):
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _get(key: str, default: Any) -> Any:
            """获取可选字段，缺失则使用默认值"""
            return raw_data.get(key, default)

        def _to_port(key: str, default: int) -> int:
            val = _get(key, default)
            try:
                port = int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"端口格式无效 '{key}': {val}")
            if not 0 < port < 65536:
                raise ConfigError(f"端口超出范围 '{key}': {port}")
            return port

        def _to_seconds(key: str, default: float) -> float:
            val = _get(key, default)
            try:
                seconds = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效 '{key}': {val}")
            if seconds <= 0:
                raise ConfigError(f"超时必须为正数 '{key}': {seconds}")
            return seconds

        def _to_bool(key: str, default: bool) -> bool:
            val = _get(key, default)
            if isinstance(val, bool):
                return val
            return str(val).strip().lower() in ("true", "1", "t", "yes", "on")

        policy = str(_get("oversize_policy", SessionConst.OVERSIZE_REJECT)).lower()
        if policy not in SessionConst.OVERSIZE_POLICIES:
            raise ConfigError(f"未知的超长策略: {policy}")

        buffer_size = int(_get("buffer_size", NetworkConst.RECV_BUFFER_SIZE))
        if buffer_size < PacketConst.HEADER_LEN:
            raise ConfigError(f"接收缓冲区过小: {buffer_size}")

        introducer = str(_get("color_code_introducer", COLOR_CODE_INTRODUCER))
        if len(introducer) > 1:
            raise ConfigError(f"颜色代码引导符必须为单个字符: {introducer!r}")

        # --- 构建对象 ---
        return RconConfig(
            host=str(_req("host")),
            port=_to_port("port", NetworkConst.DEFAULT_PORT),
            password=str(_get("password", "")),
            timeout=_to_seconds("timeout", NetworkConst.DEFAULT_TIMEOUT),
            connect_timeout=_to_seconds(
                "connect_timeout", NetworkConst.DEFAULT_CONNECT_TIMEOUT
            ),
            buffer_size=buffer_size,
            oversize_policy=policy,
            auth_followup=_to_bool("auth_followup", True),
            color_code_introducer=introducer,
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        raw_config = data["rcon"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def _load_dotenv(dotenv_path: Path | None) -> None:
    # 从当前工作目录 (而不是本模块所在目录) 开始查找 .env
    load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True))


def load_config_from_env(dotenv_path: Path | None = None) -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    会先通过 python-dotenv 加载 .env 文件 (不覆盖已有环境变量)，
    再读取所有以 `RCON_` 开头的环境变量并映射到配置字段。
    例如: `RCON_HOST` -> `host`。

    Args:
        dotenv_path: 指定 .env 文件路径，None 时从当前工作目录向上查找。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    _load_dotenv(dotenv_path)

    # 字段映射表 (Config Field -> Env Suffix)
    env_map = {
        "host": "HOST",
        "port": "PORT",
        "password": "PASSWORD",
        "timeout": "TIMEOUT",
        "connect_timeout": "CONNECT_TIMEOUT",
        "buffer_size": "BUFFER_SIZE",
        "oversize_policy": "OVERSIZE_POLICY",
        "auth_followup": "AUTH_FOLLOWUP",
        "color_code_introducer": "COLOR_CODE_INTRODUCER",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        env_key = f"RCON_{env_suffix}"
        val = os.environ.get(env_key)
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 RCON_ 前缀的环境变量")

    return create_config_from_dict(raw_data)


def resolve_password(
    password: str | None = None,
    prompt: Callable[[str], str] | None = None,
    dotenv_path: Path | None = None,
) -> str:
    """按优先级获取 RCON 密码。

    顺序: 显式传入 -> 环境变量 RCON_PASSWORD (含 .env) -> 交互式提示。
    任何来源不可用或结果不是 ASCII 时返回空字符串，
    空密码认证在有密码的服务器上会直接失败，由调用方决定是否重试。

    Args:
        password: 显式指定的密码。
        prompt: 交互式读取函数，例如 getpass.getpass。
        dotenv_path: 指定 .env 文件路径，None 时从当前工作目录向上查找。

    Returns:
        str: 密码 (可能为空)。
    """
    if password is None:
        _load_dotenv(dotenv_path)
        password = os.environ.get(PASSWORD_ENV_KEY)

    if password is None and prompt is not None:
        try:
            password = prompt("Password: ")
        except (EOFError, OSError) as e:
            logger.warning(f"无法读取密码: {e}")
            password = None

    if password is None:
        logger.warning("未获取到密码，将使用空密码认证")
        return ""

    if not password.isascii():
        logger.warning("密码包含非 ASCII 字符，将使用空密码认证")
        return ""

    return password
