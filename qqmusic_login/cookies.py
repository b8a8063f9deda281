"""
Cookie 解析与序列化
从响应的 Set-Cookie 头构建 Cookie 字典,再拼回下一次请求的 Cookie 头
"""

from typing import Dict, Iterable, List, Optional


def parse_cookies(set_cookie_headers: Optional[Iterable[str]]) -> Dict[str, str]:
    """
    解析 Set-Cookie 头集合

    Args:
        set_cookie_headers: 多个 Set-Cookie 头的值, 可为 None

    Returns:
        Cookie 名到值的字典, 同名 Cookie 以最后一次出现为准
    """
    cookies: Dict[str, str] = {}
    if not set_cookie_headers:
        return cookies

    for header in set_cookie_headers:
        # 只取第一段 name=value, 忽略 Path/Domain 等属性
        pair = header.split(';')[0]
        if '=' in pair:
            key, value = pair.split('=', 1)
        else:
            key, value = pair, ''
        cookies[key.strip()] = value.strip()

    return cookies


def get_set_cookie_headers(response) -> List[str]:
    """
    读取响应中所有 Set-Cookie 头

    requests 会把同名头合并成一个字符串,这里从 urllib3 的原始头中逐条读取
    """
    raw = getattr(response, 'raw', None)
    raw_headers = getattr(raw, 'headers', None)
    if raw_headers is not None and hasattr(raw_headers, 'getlist'):
        return list(raw_headers.getlist('Set-Cookie'))

    value = response.headers.get('Set-Cookie')
    return [value] if value else []


def response_cookies(response) -> Dict[str, str]:
    """解析单个响应设置的 Cookie"""
    return parse_cookies(get_set_cookie_headers(response))


def serialize_cookies(cookies: Dict[str, str]) -> str:
    """按字典顺序拼接为 Cookie 头: a=1; b=2"""
    return '; '.join(f"{key}={value}" for key, value in cookies.items())


def merge_cookies(*jars: Dict[str, str]) -> Dict[str, str]:
    """合并多次响应的 Cookie, 后出现的覆盖先出现的"""
    merged: Dict[str, str] = {}
    for jar in jars:
        merged.update(jar)
    return merged
