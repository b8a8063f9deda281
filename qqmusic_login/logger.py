"""
日志管理模块
按日期保存日志文件,支持控制台和文件双输出
"""

import logging
import os
from datetime import datetime
from typing import Optional

LOGGER_NAME = "QQMusicLogin"


class LoggerManager:
    """日志管理器 - 按日期保存日志,支持多级别输出"""

    def __init__(self, log_dir: str = "logs", name: str = LOGGER_NAME, console_level: str = "INFO"):
        """
        初始化日志管理器

        Args:
            log_dir: 日志文件保存目录
            name: 日志记录器名称
            console_level: 控制台输出级别
        """
        self.log_dir = log_dir
        self.logger_name = name
        self.console_level = logging.getLevelName(console_level.upper())
        self.logger: Optional[logging.Logger] = None

    def setup(self) -> logging.Logger:
        """
        创建日志目录并安装文件/控制台处理器, 只在进程启动时调用一次

        Returns:
            日志记录器实例
        """
        # 确保日志目录存在
        if not os.path.exists(self.log_dir):
            os.makedirs(self.log_dir)

        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(logging.DEBUG)

        # 清除已有的处理器(避免重复)
        self.logger.handlers.clear()

        # 创建按日期命名的日志文件
        log_filename = datetime.now().strftime("%Y-%m-%d.log")
        log_filepath = os.path.join(self.log_dir, log_filename)

        # 文件处理器 - 保存所有级别的日志
        file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

        # 控制台处理器
        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        ))

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

        return self.logger

    def get_logger(self) -> logging.Logger:
        """
        获取日志记录器

        未调用 setup 时返回同名的 logging 记录器, 由宿主程序决定输出位置

        Returns:
            日志记录器实例
        """
        if self.logger is None:
            self.logger = logging.getLogger(self.logger_name)
        return self.logger


def truncate(secret: Optional[str], length: int = 16) -> str:
    """日志中只保留凭证前缀"""
    if not secret:
        return ''
    return secret if len(secret) <= length else f"{secret[:length]}..."
