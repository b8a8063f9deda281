"""
微信扫码登录
uuid -> 二维码图片 -> 长轮询 wx_code -> 网关登录
"""

import time
from typing import Optional, Tuple

import requests

from qqmusic_login.api_client import LoginRequest, MusicuClient, create_session, send_request
from qqmusic_login.exceptions import ValidationError
from qqmusic_login.extractors import extract_wx_uuid, parse_wx_poll
from qqmusic_login.images import to_data_uri
from qqmusic_login.logger import LoggerManager, truncate
from qqmusic_login.results import LoginResult, pending, success

APPID = 'wx48db31d50e334801'
# 扫码确认后的 errcode, 其余均视为等待中
CONFIRMED = 405


class WeChatLogin:
    # 接口URL常量
    QRCONNECT_URL = 'https://open.weixin.qq.com/connect/qrconnect'
    QRCODE_URL = 'https://open.weixin.qq.com/connect/qrcode/{uuid}'
    POLL_URL = 'https://lp.open.weixin.qq.com/connect/l/qrconnect'

    def __init__(self, client: MusicuClient, session: Optional[requests.Session] = None,
                 timeout: float = 10, proxy: Optional[str] = None):
        self.client = client
        self.session = session or create_session(proxy)
        self.timeout = timeout
        self.logger = LoggerManager().get_logger()

    def get_qrcode(self) -> LoginResult:
        """
        步骤1: 请求二维码登录页面提取 uuid, 再下载对应的二维码图片
        """
        params = {
            'appid': APPID,
            'redirect_uri': 'https://y.qq.com/portal/wx_redirect.html?login_type=2&surl=https://y.qq.com/',
            'response_type': 'code',
            'scope': 'snsapi_login',
            'state': 'STATE',
            'href': 'https://y.qq.com/mediastyle/music_v17/src/css/popup_wechat.css#wechat_redirect'
        }

        response = send_request(self.session, 'get', self.QRCONNECT_URL, self.timeout, params=params)
        uuid = extract_wx_uuid(response.text)
        self.logger.info(f"[+] 提取 uuid: {uuid}")

        image = send_request(self.session, 'get', self.QRCODE_URL.format(uuid=uuid), self.timeout)
        self.logger.debug(f"[+] 二维码图片大小: {len(image.content)} 字节")

        return success({
            'uuid': uuid,
            'image': to_data_uri(image.content, 'image/jpeg')
        })

    def check_scan_status(self, uuid: str) -> Tuple[int, str, str]:
        """
        步骤2: 长轮询扫码状态

        Returns:
            (errcode, wx_code, 原始响应)
        """
        params = {
            'uuid': uuid,
            '_': str(int(time.time() * 1000))
        }

        response = send_request(self.session, 'get', self.POLL_URL, self.timeout,
                                params=params, headers={'Referer': 'https://open.weixin.qq.com/'})
        errcode, wx_code = parse_wx_poll(response.text)
        return errcode, wx_code, response.text

    def finalize(self, wx_code: str) -> LoginResult:
        """
        步骤3: 用 wx_code 换取 QQ 音乐登录 Cookie
        """
        request = LoginRequest('music.login.LoginServer', 'Login', {
            'code': wx_code,
            'strAppid': APPID
        })
        cookies = self.client.login(request, "WX login failed")
        self.logger.info(f"[+] 微信扫码登录成功, 获得 {len(cookies)} 个 Cookie")
        return success(cookies, cookies=cookies)

    def check(self, uuid: str) -> LoginResult:
        """
        单次轮询, errcode 非 405 时原样返回给调用方继续轮询
        """
        if not uuid:
            raise ValidationError("uuid is required")

        errcode, wx_code, raw = self.check_scan_status(uuid)
        if errcode != CONFIRMED:
            self.logger.debug(f"[*] uuid {uuid} errcode: {errcode}")
            return pending(errcode, "waiting or incomplete", raw=raw)

        self.logger.info(f"[+] 获取到 wx_code: {truncate(wx_code)}")
        return self.finalize(wx_code)
