"""
musicu 网关请求签名 (zzc sign)

用法:
    payload = {"req1": {...}}
    text = serialize_payload(payload)
    signature = sign(payload)

签名与 data 参数必须基于同一份 JSON 文本,因此发送时使用 serialize_payload 的结果。
"""

import base64
import hashlib
import json
import re

PART_1_INDEXES = (23, 14, 6, 36, 16, 7, 19)
PART_2_INDEXES = (16, 1, 32, 12, 19, 27, 8, 5)
SCRAMBLE_VALUES = (89, 39, 179, 150, 218, 82, 58, 252, 177, 52,
                   186, 123, 120, 64, 242, 133, 143, 161, 121, 179)


def serialize_payload(payload) -> str:
    """紧凑 JSON,与浏览器端 JSON.stringify 输出一致"""
    return json.dumps(payload, separators=(',', ':'), ensure_ascii=False)


def sign(payload) -> str:
    """
    计算请求签名

    Args:
        payload: 可 JSON 序列化的请求体

    Returns:
        以 zzc 开头的小写签名字符串
    """
    digest = hashlib.sha1(serialize_payload(payload).encode('utf-8')).hexdigest().upper()

    part1 = ''.join(digest[i] for i in PART_1_INDEXES)
    part2 = ''.join(digest[i] for i in PART_2_INDEXES)

    # 前20字节与固定表异或后 base64,去掉 \ / + =
    part3 = bytearray(len(SCRAMBLE_VALUES))
    for i, v in enumerate(SCRAMBLE_VALUES):
        part3[i] = v ^ int(digest[i * 2:i * 2 + 2], 16)
    b64_part = re.sub(r'[\\/+=]', '', base64.b64encode(bytes(part3)).decode('utf-8'))

    return f"zzc{part1}{b64_part}{part2}".lower()
