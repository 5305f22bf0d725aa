#!/usr/bin/env python
# run.py
# 功能：交互式 RCON Shell。优先加载本地 config.toml，其次读取 RCON_ 环境变量。

import argparse
import getpass
import logging
import sys
import time
from pathlib import Path

# --- 0. 环境准备 ---
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

try:
    from rcon_core import (
        ConfigError,
        NetworkError,
        ProtocolError,
        RconSession,
        SessionStatus,
        __version__,
        create_config_from_dict,
        load_config_from_env,
        load_config_from_toml,
        resolve_password,
    )
    from rcon_core.protocols.constants import NetworkConst, PacketConst
except ImportError as e:
    print(f"❌ 无法导入 rcon_core: {e}")
    sys.exit(1)

logger = logging.getLogger("RconShell")

SEPARATOR = "====" * 22
RECONNECT_DELAY = 3.0


def on_status_change(status: SessionStatus, msg: str):
    icon_map = {
        SessionStatus.CONNECTED: "🔗",
        SessionStatus.AUTHENTICATED: "✅",
        SessionStatus.CLOSED: "🔌",
        SessionStatus.ERROR: "❌",
    }
    icon = icon_map.get(status, "ℹ️")
    logger.debug(f"{icon} 状态变更: {status.name} | {msg}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Interactive Source RCON shell")
    parser.add_argument("-i", "--ip", help="RCON server address")
    parser.add_argument("-p", "--port", type=int, help="RCON server port")
    parser.add_argument("-c", "--config", type=Path, help="config.toml path")
    parser.add_argument("--profile", default="default", help="config profile")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def load_config(args):
    config_path = args.config or PROJECT_ROOT / "config.toml"
    raw = {}
    if config_path.exists():
        logger.info(f"📄 发现配置文件: {config_path}")
        config = load_config_from_toml(config_path, args.profile)
        raw = {"host": config.host, "port": config.port, "password": config.password}
    else:
        try:
            config = load_config_from_env()
            raw = {"host": config.host, "port": config.port, "password": config.password}
        except ConfigError:
            raw = {"host": "127.0.0.1", "port": NetworkConst.DEFAULT_PORT}

    if args.ip:
        raw["host"] = args.ip
    if args.port:
        raw["port"] = args.port
    return create_config_from_dict(raw)


def print_response(packets):
    for packet in packets:
        if packet.text:
            print(packet.text)
    print(SEPARATOR)


def authenticate(session: RconSession, password: str) -> None:
    """认证直到成功。失败时重新提示输入密码。"""
    print("Authenticating...")
    while not session.authenticate(password):
        print("Incorrect password. Please try again...")
        if not sys.stdin.isatty():
            raise SystemExit("No interactive terminal for password prompt, giving up.")
        password = getpass.getpass("Password: ")


def shell(session: RconSession) -> None:
    print_response(session.send_command("help"))

    while True:
        try:
            line = input("λ ")
        except EOFError:
            return

        line = line.rstrip()
        if not line:
            continue
        if len(line) > PacketConst.MAX_BODY_LEN:
            print("Woah there! That command is waaay too long.")
            print("You might want to try that again.")
            continue

        try:
            print_response(session.send_command(line))
        except ProtocolError as e:
            print(f"⚠️ {e}")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    )
    print(f"RCON-Core v{__version__} Shell")

    try:
        config = load_config(args)
    except ConfigError as ce:
        logger.error(f"🔧 配置错误: {ce}")
        return 2

    password = resolve_password(config.password or None, prompt=getpass.getpass)

    # 连接断开后自动重连，认证失败则重新提示密码
    while True:
        session = RconSession(config, status_callback=on_status_change)
        try:
            print(f"Connecting to host at {config.host}:{config.port} ...")
            session.connect()
            authenticate(session, password)
            shell(session)
            return 0
        except NetworkError as ne:
            logger.error(f"网络异常: {ne}")
            print(f"Connection lost, reconnecting in {RECONNECT_DELAY:.0f}s ...")
            time.sleep(RECONNECT_DELAY)
        except KeyboardInterrupt:
            print()
            return 0
        finally:
            session.close()


if __name__ == "__main__":
    sys.exit(main())
