"""
统一响应信封
{result, data | errMsg, message?, raw?}
"""

from typing import Any, Dict, Optional

SUCCESS = 100
QR_WAITING = 101
QR_AUTHENTICATING = 102
QR_EXPIRED = 103
VENDOR_FAILURE = 200
LOCAL_FAILURE = 500


class LoginResult:
    """单次调用的结果 - cookies 不进入响应体,由服务层写入 Set-Cookie"""

    def __init__(self, result: int, data: Any = None, err_msg: Optional[str] = None,
                 message: Optional[str] = None, raw: Any = None,
                 cookies: Optional[Dict[str, str]] = None):
        self.result = result
        self.data = data
        self.err_msg = err_msg
        self.message = message
        self.raw = raw
        self.cookies = cookies or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {'result': self.result}
        if self.data is not None:
            body['data'] = self.data
        if self.err_msg is not None:
            body['errMsg'] = self.err_msg
        if self.message is not None:
            body['message'] = self.message
        if self.raw is not None:
            body['raw'] = self.raw
        return body

    def __repr__(self):
        return f"LoginResult(result={self.result}, data={self.data!r}, errMsg={self.err_msg!r})"


def success(data: Any, cookies: Optional[Dict[str, str]] = None) -> LoginResult:
    return LoginResult(SUCCESS, data=data, cookies=cookies)


def pending(result: int, message: str, raw: Any = None) -> LoginResult:
    return LoginResult(result, message=message, raw=raw)
