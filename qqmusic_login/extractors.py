"""
厂商响应解析模块
ptlogin / 微信开放平台的响应是 HTML 或 JS 片段,每个正则单独封装,格式变化时可单独定位
"""

import re
from typing import List, Tuple

from bs4 import BeautifulSoup

from qqmusic_login.exceptions import VendorProtocolError

PTUICB_PATTERN = re.compile(r"ptuiCB\((.*?)\)")
SIGX_PATTERN = re.compile(r"&ptsigx=([^&]+)")
UIN_PATTERN = re.compile(r"&uin=(.+?)&service")
AUTH_CODE_PATTERN = re.compile(r"code=(.+?)&")
WX_UUID_PATTERN = re.compile(r'uuid=(.+?)"')
WX_QRCODE_SRC_PATTERN = re.compile(r"/connect/qrcode/([^\"?&/]+)")
WX_POLL_PATTERN = re.compile(r"window\.wx_errcode=(\d+);window\.wx_code='([^']*)'")


def parse_ptuicb(text: str) -> List[str]:
    """
    解析 ptqrlogin 响应中的 ptuiCB(...) 调用

    格式: ptuiCB('66','0','','0','二维码未失效。', '')

    Returns:
        去掉引号和空白后的参数列表, 第一项为状态码
    """
    match = PTUICB_PATTERN.search(text or '')
    if not match:
        raise VendorProtocolError("failed to parse ptuiCB response", raw=text)
    return [field.strip().replace("'", '') for field in match.group(1).split(',')]


def extract_sigx_and_uin(url: str) -> Tuple[str, str]:
    """从扫码成功后的 check_sig 跳转地址中提取 ptsigx 和 uin"""
    sigx_match = SIGX_PATTERN.search(url or '')
    uin_match = UIN_PATTERN.search(url or '')
    if not sigx_match or not uin_match:
        raise VendorProtocolError("failed to parse ptsigx or uin", raw=url)
    return sigx_match.group(1), uin_match.group(1)


def extract_auth_code(location: str) -> str:
    """从 authorize 的 Location 头中提取 code"""
    match = AUTH_CODE_PATTERN.search(location or '')
    if not match:
        raise VendorProtocolError("failed to get auth code", raw=location)
    return match.group(1)


def extract_wx_uuid(html: str) -> str:
    """
    从 qrconnect 页面提取二维码 uuid

    策略1: 正则匹配 uuid=xxx"
    策略2(降级): 解析 <img class="js_qrcode_img"> 的 src
    """
    match = WX_UUID_PATTERN.search(html or '')
    if match:
        return match.group(1)

    soup = BeautifulSoup(html or '', 'html.parser')
    img = soup.find('img', class_='js_qrcode_img')
    if img and img.get('src'):
        src_match = WX_QRCODE_SRC_PATTERN.search(img['src'])
        if src_match:
            return src_match.group(1)

    raise VendorProtocolError("failed to get uuid")


def parse_wx_poll(text: str) -> Tuple[int, str]:
    """
    解析微信长轮询响应

    格式: window.wx_errcode=408;window.wx_code='';

    Returns:
        (errcode, wx_code)
    """
    match = WX_POLL_PATTERN.search(text or '')
    if not match:
        raise VendorProtocolError("failed to parse wx poll response", raw=text)
    return int(match.group(1)), match.group(2)
