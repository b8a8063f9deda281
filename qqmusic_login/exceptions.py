"""
自定义异常类
每个异常携带对应的信封 result 码,由路由层统一转换为响应
"""

from typing import Any, Optional

from qqmusic_login.results import LoginResult


class LoginError(Exception):
    """登录流程异常基类"""

    result = 500

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.raw = raw

    def to_result(self):
        """转换为统一响应信封"""
        return LoginResult(self.result, err_msg=self.message, raw=self.raw)


class ValidationError(LoginError):
    """缺少必填参数,未发起任何网络请求"""
    pass


class VendorProtocolError(LoginError):
    """厂商响应格式变化(正则未命中、字段缺失)"""
    pass


class VendorBusinessError(LoginError):
    """厂商接口调用成功但返回业务失败"""

    result = 200


class TransportError(LoginError):
    """网络异常或非预期的HTTP状态码"""
    pass
