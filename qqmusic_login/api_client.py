"""
HTTP请求客户端
封装浏览器会话和 musicu 网关(u6.y.qq.com)的签名请求
"""

from http.cookiejar import DefaultCookiePolicy
from typing import Any, Callable, Dict, NamedTuple, Optional

import requests

from qqmusic_login.exceptions import TransportError, VendorBusinessError, VendorProtocolError
from qqmusic_login.logger import LoggerManager
from qqmusic_login.sign import serialize_payload, sign

BROWSER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept-Language': 'zh-CN,zh;q=0.9',
    'sec-ch-ua': '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    'sec-ch-ua-mobile': '?0',
    'sec-ch-ua-platform': '"Windows"'
}


def create_session(proxy: Optional[str] = None) -> requests.Session:
    """
    创建带浏览器固定请求头的会话
    会话不保存也不发送 Set-Cookie, 各步骤所需的 Cookie 由调用方显式传入

    Args:
        proxy: 代理地址, 如 http://127.0.0.1:8080
    """
    session = requests.Session()
    session.headers.update(BROWSER_HEADERS)
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    if proxy:
        session.proxies = {
            'http': proxy,
            'https': proxy
        }
    return session


def send_request(session: requests.Session, method: str, url: str, timeout: float,
                 allow_redirects: bool = True, **kwargs) -> requests.Response:
    """
    发送请求并检查状态码

    Args:
        session: 会话
        method: get 或 post
        url: 请求地址
        timeout: 超时时间(秒)
        allow_redirects: 为 False 时不跟随跳转, 3xx 响应直接返回供调用方读取

    Raises:
        TransportError: 网络异常, 或状态码不在 2xx(不跟随跳转时为 2xx-3xx)
    """
    try:
        response = getattr(session, method)(url, timeout=timeout, allow_redirects=allow_redirects, **kwargs)
    except requests.RequestException as e:
        raise TransportError(f"{method.upper()} {url} failed: {e}")

    upper = 300 if allow_redirects else 400
    if not 200 <= response.status_code < upper:
        raise TransportError(f"{method.upper()} {url} returned {response.status_code}")
    return response


class LoginRequest(NamedTuple):
    """musicu 网关的单个请求模块, 构建后不再修改"""

    module: str
    method: str
    param: Dict[str, Any]

    def to_payload(self) -> Dict[str, Any]:
        return {
            'req1': {
                'module': self.module,
                'method': self.method,
                'param': dict(self.param)
            }
        }


class MusicuClient:
    """musicu 网关客户端 - 签名后以 GET 方式发送请求"""

    # 接口URL常量
    MUSICU_URL = "https://u6.y.qq.com/cgi-bin/musics.fcg"

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10,
                 proxy: Optional[str] = None, signer: Callable[[Any], str] = sign):
        """
        初始化网关客户端

        Args:
            session: 复用的会话, 为空时新建
            timeout: 请求超时时间(秒)
            proxy: 代理地址
            signer: 签名函数, 接收请求体返回签名字符串
        """
        self.session = session or create_session(proxy)
        self.timeout = timeout
        self.signer = signer
        self.logger = LoggerManager().get_logger()

    def request(self, login_request: LoginRequest) -> Dict[str, Any]:
        """
        发送签名请求

        Args:
            login_request: 请求模块

        Returns:
            网关返回的 JSON

        Raises:
            TransportError: 网络异常或HTTP状态码异常
            VendorProtocolError: 响应不是JSON
        """
        payload = login_request.to_payload()
        params = {
            'sign': self.signer(payload),
            'format': 'json',
            'inCharset': 'utf8',
            'outCharset': 'utf-8',
            'data': serialize_payload(payload)
        }

        self.logger.debug(f"请求 {login_request.module}.{login_request.method}")
        response = send_request(self.session, 'get', self.MUSICU_URL, self.timeout, params=params)

        try:
            return response.json()
        except ValueError:
            raise VendorProtocolError(f"invalid JSON from {login_request.method}", raw=response.text)

    def login(self, login_request: LoginRequest, fallback_message: str) -> Dict[str, str]:
        """
        调用登录类方法并取出返回的 Cookie

        Args:
            login_request: 请求模块
            fallback_message: 厂商未返回错误信息时使用的提示

        Returns:
            Cookie 名到值的字典

        Raises:
            VendorBusinessError: 网关返回 code 非 0
        """
        result = self.request(login_request)
        req1 = nested(result)
        if req1.get('code') == 0:
            return req1.get('data') or {}

        raise VendorBusinessError(vendor_err_msg(result, fallback_message), raw=result)


def nested(result: Any) -> Dict[str, Any]:
    """取出 req1 模块的返回, 结构异常时返回空字典"""
    if isinstance(result, dict) and isinstance(result.get('req1'), dict):
        return result['req1']
    return {}


def vendor_err_msg(result: Any, fallback_message: str) -> str:
    """厂商错误信息 req1.data.errMsg, 不存在时使用兜底提示"""
    data = nested(result).get('data')
    if isinstance(data, dict) and data.get('errMsg'):
        return data['errMsg']
    return fallback_message
