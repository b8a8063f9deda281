"""
ptlogin 相关的哈希与随机参数
"""

import random


def hash33(s, seed=0):
    """
    Hash33 rolling hash, masked to 31 bits.
    JavaScript: hash = seed, then hash += (hash << 5) + charCodeAt(i)

    charCodeAt 按 UTF-16 码元取值, BMP 之外的字符计为两个代理码元, 这里按同样方式遍历
    """
    units = s.encode('utf-16-le')
    e = seed
    for i in range(0, len(units), 2):
        e += (e << 5) + int.from_bytes(units[i:i + 2], 'little')
    return e & 0x7fffffff


def get_ptqrtoken(qrsig):
    """Calculate ptqrtoken from the qrsig cookie (seed 0)."""
    return hash33(qrsig)


def calculate_g_tk(p_skey):
    """Calculate g_tk from the p_skey cookie (seed 5381)."""
    return hash33(p_skey, 5381)


def uuid4():
    """
    生成 v4 格式的随机 UUID 字符串
    格式: xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx, y 取 8/9/a/b
    """
    chars = []
    for c in 'xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx':
        if c == 'x':
            chars.append('%x' % random.randint(0, 15))
        elif c == 'y':
            chars.append('%x' % (random.randint(0, 15) & 0x3 | 0x8))
        else:
            chars.append(c)
    return ''.join(chars)


def random_token():
    """二维码接口的防缓存参数 t"""
    return str(random.random())
