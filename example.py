# example.py
"""
这是一个 RconSession API 的最小示例。

它演示了如何将 rcon-core 作为一个库导入到你自己的项目中，
完成"连接-认证-执行命令-关闭"的完整流程。

运行此示例：
1. 在根目录创建 .env 文件，写入 RCON_HOST / RCON_PORT / RCON_PASSWORD。
2. 确保已安装依赖： pip install -e .
3. 从项目根目录运行： python example.py [命令]
"""

import logging
import sys

# 日志配置开始
logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("RconExample")
# 日志配置结束

try:
    from rcon_core import (
        AuthError,
        ConfigError,
        NetworkError,
        ProtocolError,
        connect,
        load_config_from_env,
    )

    logger.info("成功导入 rcon_core。")
except ImportError as ie:
    logger.critical(f"导入 rcon_core 失败: {ie}")
    logger.critical("请先执行 pip install -e . 安装本项目")
    sys.exit(1)


def main() -> int:
    """
    程序主入口点。
    从环境变量加载配置，执行一条命令并打印响应。
    """
    command = " ".join(sys.argv[1:]) or "status"

    try:
        config = load_config_from_env()
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return 2

    try:
        with connect(config) as session:
            session.login()
            for packet in session.send_command(command):
                print(packet)

    except AuthError as ae:
        logger.error(f"认证被拒绝: {ae}")
        return 1
    except (NetworkError, ProtocolError) as e:
        logger.error(f"执行失败: {e}")
        return 1

    return 0


# 程序入口
if __name__ == "__main__":
    sys.exit(main())
