"""
进程入口
python -m qqmusic_login [--config config.json] [--host 0.0.0.0] [--port 3200]
"""

import argparse
import sys

from qqmusic_login.config_manager import ConfigManager
from qqmusic_login.logger import LoggerManager
from qqmusic_login.server import create_app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="QQ 音乐登录服务")
    parser.add_argument('--config', help="配置文件路径")
    parser.add_argument('--host', help="监听地址")
    parser.add_argument('--port', type=int, help="监听端口")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config = ConfigManager(args.config)
    config.load()
    config.apply_env()
    if args.host:
        config.set("host", args.host)
    if args.port:
        config.set("port", args.port)

    ok, error = config.validate()
    if not ok:
        print(f"[!] 配置无效: {error}", file=sys.stderr)
        return 1

    logger = LoggerManager(config.get("log_dir"), console_level=config.get("log_level")).setup()
    if config.proxy_url():
        logger.info(f"[+] 使用代理: {config.proxy_url()}")

    app = create_app(config)
    logger.info(f"QQ 音乐登录服务启动在 {config.get('host')}:{config.get('port')}")
    app.run(host=config.get("host"), port=config.get("port"), debug=False)
    return 0


if __name__ == '__main__':
    sys.exit(main())
