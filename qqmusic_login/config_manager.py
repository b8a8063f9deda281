"""
配置管理模块
负责读取、保存和验证配置文件, 并应用环境变量覆盖
"""

from __future__ import annotations

import json
import os
from typing import Dict, Any, Optional, Mapping

CONFIG_PATH_ENV = "QQMUSIC_LOGIN_CONFIG"
PORT_ENVS = ("QQ_PORT", "PORT")


class ConfigManager:
    """配置管理器 - 处理配置文件的读取、保存和默认值"""

    DEFAULT_CONFIG = {
        "host": "0.0.0.0",  # 监听地址
        "port": 3200,  # 监听端口
        "request_timeout": 10,  # 访问厂商接口的超时时间(秒)
        "use_proxy": False,  # 是否通过代理访问厂商接口
        "proxy_host": "",  # 代理主机地址
        "proxy_port": 0,  # 代理端口
        "cookie_max_age": 86400,  # 登录成功后下发Cookie的有效期(秒)
        "log_dir": "logs",  # 日志目录
        "log_level": "INFO"  # 控制台日志级别
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径, 为空时读取环境变量 QQMUSIC_LOGIN_CONFIG, 默认 config.json
        """
        self.config_path = config_path or os.environ.get(CONFIG_PATH_ENV, "config.json")
        self.config: Dict[str, Any] = self.DEFAULT_CONFIG.copy()

    def load(self) -> Dict[str, Any]:
        """
        加载配置文件, 文件不存在时使用默认配置

        Returns:
            配置字典
        """
        self.config = self.DEFAULT_CONFIG.copy()
        if not os.path.exists(self.config_path):
            return self.config

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)
        except (OSError, ValueError) as e:
            raise Exception(f"加载配置文件失败: {e}")

        # 合并默认配置,确保所有字段都存在
        self.config.update(loaded_config)
        return self.config

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        应用环境变量覆盖, 端口优先读取 QQ_PORT, 其次 PORT

        Args:
            environ: 环境变量字典, 默认 os.environ
        """
        environ = os.environ if environ is None else environ
        for name in PORT_ENVS:
            value = environ.get(name)
            if value:
                try:
                    self.config["port"] = int(value)
                except ValueError:
                    raise Exception(f"环境变量 {name} 不是有效端口: {value}")
                break

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置项的值

        Args:
            key: 配置项键名
            default: 默认值

        Returns:
            配置项的值
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """设置配置项的值"""
        self.config[key] = value

    def proxy_url(self) -> Optional[str]:
        """构建代理地址, 未启用代理时返回 None"""
        if self.config.get("use_proxy") and self.config.get("proxy_host") and self.config.get("proxy_port"):
            return f"http://{self.config['proxy_host']}:{self.config['proxy_port']}"
        return None

    def validate(self) -> tuple[bool, Optional[str]]:
        """
        验证配置是否完整

        Returns:
            (是否有效, 错误信息)
        """
        port = self.config.get("port")
        if not isinstance(port, int) or not 0 < port < 65536:
            return False, f"端口无效: {port}"

        timeout = self.config.get("request_timeout")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            return False, "请求超时时间必须大于0"

        if self.config.get("use_proxy") and not (self.config.get("proxy_host") and self.config.get("proxy_port")):
            return False, "已启用代理但未配置代理地址"

        max_age = self.config.get("cookie_max_age")
        if not isinstance(max_age, int) or max_age <= 0:
            return False, "Cookie有效期必须大于0"

        return True, None
