"""
手机号验证码登录
发送验证码和验证码登录是两次独立的网关调用
"""

from qqmusic_login.api_client import LoginRequest, MusicuClient, nested, vendor_err_msg
from qqmusic_login.exceptions import ValidationError, VendorBusinessError
from qqmusic_login.logger import LoggerManager
from qqmusic_login.results import LoginResult, success

LOGIN_MODULE = 'music.login.LoginServer'
DEFAULT_COUNTRY_CODE = 86


class PhoneLogin:
    def __init__(self, client: MusicuClient):
        self.client = client
        self.logger = LoggerManager().get_logger()

    def send_code(self, phone, country_code=DEFAULT_COUNTRY_CODE) -> LoginResult:
        """
        发送短信验证码

        Raises:
            ValidationError: 未提供手机号
            VendorBusinessError: 网关返回失败
        """
        if not phone:
            raise ValidationError("phone is required")

        request = LoginRequest(LOGIN_MODULE, 'SendPhoneAuthCode', {
            'tmeAppid': 'qqmusic',
            'phoneNo': str(phone),
            'areaCode': str(country_code)
        })
        result = self.client.request(request)

        if nested(result).get('code') == 0:
            self.logger.info(f"[+] 验证码已发送: +{country_code} {phone}")
            return success("code sent")

        raise VendorBusinessError(vendor_err_msg(result, "failed to send code"), raw=result)

    def login(self, phone, code, country_code=DEFAULT_COUNTRY_CODE) -> LoginResult:
        """
        验证码登录, 成功时返回网关下发的 Cookie

        Raises:
            ValidationError: 未提供手机号或验证码
            VendorBusinessError: 网关返回失败
        """
        if not phone or not code:
            raise ValidationError("phone and code are required")

        request = LoginRequest(LOGIN_MODULE, 'Login', {
            'code': str(code),
            'phoneNo': str(phone),
            'areaCode': str(country_code),
            'loginMode': 1
        })
        cookies = self.client.login(request, "login failed")

        self.logger.info(f"[+] 手机号登录成功: {phone}, 获得 {len(cookies)} 个 Cookie")
        return success(cookies, cookies=cookies)
