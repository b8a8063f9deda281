"""
QQ 扫码登录
qrsig -> ptqrtoken -> 扫码状态 -> check_sig(p_skey) -> authorize(code) -> QQConnect 登录

服务端不保存任何状态, 每次轮询都只依赖调用方持有的 qrsig 和厂商的实时响应
"""

import time
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

import requests

from qqmusic_login.api_client import LoginRequest, MusicuClient, create_session, send_request
from qqmusic_login.cookies import merge_cookies, response_cookies, serialize_cookies
from qqmusic_login.crypto import calculate_g_tk, get_ptqrtoken, random_token, uuid4
from qqmusic_login.exceptions import ValidationError, VendorProtocolError
from qqmusic_login.extractors import extract_auth_code, extract_sigx_and_uin, parse_ptuicb
from qqmusic_login.images import to_data_uri
from qqmusic_login.logger import LoggerManager, truncate
from qqmusic_login.results import (LoginResult, QR_AUTHENTICATING, QR_EXPIRED, QR_WAITING,
                                   VENDOR_FAILURE, pending, success)

APPID = '716027609'
DAID = '383'
PT_3RD_AID = '100497308'
LOGIN_JUMP_URL = 'https://graph.qq.com/oauth2.0/login_jump'
PTLOGIN_REFERER = 'https://xui.ptlogin2.qq.com/'


class QRState(Enum):
    ISSUED = 'issued'
    PENDING = 'pending'
    AUTHENTICATED = 'authenticated'
    EXCHANGING = 'exchanging'
    COMPLETE = 'complete'
    EXPIRED = 'expired'
    ERROR = 'error'


class PollResult(NamedTuple):
    """单次轮询的解释结果, AUTHENTICATED 时 redirect_url 为 check_sig 跳转地址"""

    state: QRState
    result: Optional[LoginResult] = None
    redirect_url: str = ''


def interpret_qr_status(fields: List[str]) -> PollResult:
    """
    把 ptuiCB 参数映射为轮询结果

    66=未扫码, 67=认证中, 65=二维码失效, 0=已确认, 其余为未知状态
    """
    code = fields[0] if fields else ''

    if code == '66':
        return PollResult(QRState.PENDING, pending(QR_WAITING, "waiting for scan"))
    if code == '67':
        return PollResult(QRState.PENDING, pending(QR_AUTHENTICATING, "authenticating"))
    if code == '65':
        return PollResult(QRState.EXPIRED, pending(QR_EXPIRED, "QR code expired"))
    if code != '0':
        return PollResult(QRState.ERROR, LoginResult(VENDOR_FAILURE, err_msg=f"unknown status code: {code}", raw=fields))

    return PollResult(QRState.AUTHENTICATED, redirect_url=fields[2] if len(fields) > 2 else '')


class QQLogin:
    # 接口URL常量
    QRSHOW_URL = 'https://ssl.ptlogin2.qq.com/ptqrshow'
    QRLOGIN_URL = 'https://ssl.ptlogin2.qq.com/ptqrlogin'
    CHECK_SIG_URL = 'https://ssl.ptlogin2.graph.qq.com/check_sig'
    AUTHORIZE_URL = 'https://graph.qq.com/oauth2.0/authorize'

    def __init__(self, client: MusicuClient, session: Optional[requests.Session] = None,
                 timeout: float = 10, proxy: Optional[str] = None):
        self.client = client
        self.session = session or create_session(proxy)
        self.timeout = timeout
        self.logger = LoggerManager().get_logger()

    def get_qrcode(self) -> LoginResult:
        """
        Step 1: Fetch QR code and extract qrsig from cookies.
        Returns qrsig and the image as a data URI.
        """
        params = {
            'appid': APPID,
            'e': '2',
            'l': 'M',
            's': '3',
            'd': '72',
            'v': '4',
            't': random_token(),
            'daid': DAID,
            'pt_3rd_aid': PT_3RD_AID
        }

        response = send_request(self.session, 'get', self.QRSHOW_URL, self.timeout,
                                params=params, headers={'Referer': PTLOGIN_REFERER})

        qrsig = response_cookies(response).get('qrsig')
        if not qrsig:
            raise VendorProtocolError("failed to get qrsig cookie")

        self.logger.info(f"[+] qrsig: {truncate(qrsig)}, 二维码图片大小: {len(response.content)} 字节 ({QRState.ISSUED.value})")
        return success({
            'qrsig': qrsig,
            'image': to_data_uri(response.content, 'image/png')
        })

    def check_qr_status(self, qrsig: str) -> List[str]:
        """
        Step 2: Poll QR code scan status.
        Returns the parsed ptuiCB() arguments.
        """
        params = {
            'u1': LOGIN_JUMP_URL,
            'ptqrtoken': str(get_ptqrtoken(qrsig)),
            'ptredirect': '0',
            'h': '1',
            't': '1',
            'g': '1',
            'from_ui': '1',
            'ptlang': '2052',
            'action': f'0-0-{int(time.time() * 1000)}',
            'js_ver': '20102616',
            'js_type': '1',
            'pt_uistyle': '40',
            'aid': APPID,
            'daid': DAID,
            'pt_3rd_aid': PT_3RD_AID,
            'has_onekey': '1'
        }

        headers = {
            'Referer': PTLOGIN_REFERER,
            'Cookie': f'qrsig={qrsig}'
        }

        response = send_request(self.session, 'get', self.QRLOGIN_URL, self.timeout,
                                params=params, headers=headers)
        return parse_ptuicb(response.text)

    def check_sig(self, uin: str, sigx: str) -> Dict[str, str]:
        """
        Step 3: 访问 check_sig 换取 OAuth cookies (p_skey 等)
        不跟随跳转, 302 响应上的 Set-Cookie 即为所需
        """
        params = {
            'uin': uin,
            'pttype': '1',
            'service': 'ptqrlogin',
            'nodirect': '0',
            'ptsigx': sigx,
            's_url': LOGIN_JUMP_URL,
            'ptlang': '2052',
            'ptredirect': '100',
            'aid': APPID,
            'daid': DAID,
            'j_later': '0',
            'low_login_hour': '0',
            'regmaster': '0',
            'pt_login_type': '3',
            'pt_aid': '0',
            'pt_aaid': '16',
            'pt_light': '0',
            'pt_3rd_aid': PT_3RD_AID
        }

        response = send_request(self.session, 'get', self.CHECK_SIG_URL, self.timeout,
                                allow_redirects=False, params=params,
                                headers={'Referer': PTLOGIN_REFERER})
        self.logger.debug(f"[+] check_sig 响应状态码: {response.status_code}")

        cookies = response_cookies(response)
        if not cookies.get('p_skey'):
            raise VendorProtocolError("failed to get p_skey")
        return cookies

    def oauth_authorize(self, cookies: Dict[str, str]) -> str:
        """
        Step 4: POST to authorize to get the auth code
        """
        g_tk = calculate_g_tk(cookies['p_skey'])
        self.logger.debug(f"[+] 计算 g_tk: {g_tk}")

        data = {
            'response_type': 'code',
            'client_id': PT_3RD_AID,
            'redirect_uri': 'https://y.qq.com/portal/wx_redirect.html?login_type=1&surl=https://y.qq.com/',
            'scope': 'get_user_info,get_app_friends',
            'state': 'state',
            'switch': '',
            'from_ptlogin': '1',
            'src': '1',
            'update_auth': '1',
            'openapi': '1010_1030',
            'g_tk': str(g_tk),
            'auth_time': str(int(time.time() * 1000)),
            'ui': uuid4()
        }

        headers = {
            'Content-Type': 'application/x-www-form-urlencoded',
            'Cookie': serialize_cookies(cookies)
        }

        # 禁用自动重定向以获取Location header
        response = send_request(self.session, 'post', self.AUTHORIZE_URL, self.timeout,
                                allow_redirects=False, data=data, headers=headers)
        self.logger.debug(f"[+] authorize 响应状态码: {response.status_code}")

        location = response.headers.get('Location')
        if not location:
            raise VendorProtocolError("failed to get Location")
        return extract_auth_code(location)

    def finalize(self, auth_code: str) -> LoginResult:
        """
        Step 5: Exchange the auth code for QQ Music session cookies
        """
        request = LoginRequest('QQConnectLogin.LoginServer', 'QQLogin', {'code': auth_code})
        cookies = self.client.login(request, "QQLogin failed")
        self.logger.info(f"[+] QQ 扫码登录成功, 获得 {len(cookies)} 个 Cookie ({QRState.COMPLETE.value})")
        return success(cookies, cookies=cookies)

    def check(self, qrsig: str) -> LoginResult:
        """
        单次轮询: 未确认时返回等待状态, 已确认时在本次调用内完成全部换取步骤

        Args:
            qrsig: get_qrcode 返回的 qrsig

        Returns:
            轮询或登录结果
        """
        if not qrsig:
            raise ValidationError("qrsig is required")

        poll = interpret_qr_status(self.check_qr_status(qrsig))
        if poll.state is not QRState.AUTHENTICATED:
            self.logger.debug(f"[*] qrsig {truncate(qrsig)} 状态: {poll.state.value}")
            return poll.result

        self.logger.info(f"[+] 二维码已确认, 开始换取登录凭证 ({QRState.EXCHANGING.value})")
        sigx, uin = extract_sigx_and_uin(poll.redirect_url)

        # 本次握手的 Cookie 只在此处累积, 会话本身不保存
        jar: Dict[str, str] = {}
        jar = merge_cookies(jar, self.check_sig(uin, sigx))
        auth_code = self.oauth_authorize(jar)
        self.logger.info(f"[+] 获取到 auth code: {truncate(auth_code)}")

        return self.finalize(auth_code)
