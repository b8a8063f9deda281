"""
二维码图片处理
"""

import base64
import io

from PIL import Image, UnidentifiedImageError

MIME_TYPES = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'GIF': 'image/gif',
    'BMP': 'image/bmp',
    'WEBP': 'image/webp'
}


def detect_mime(content: bytes, default: str) -> str:
    """用 Pillow 识别图片格式, 无法识别时返回默认类型"""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return MIME_TYPES.get(img.format, default)
    except (UnidentifiedImageError, OSError):
        return default


def to_data_uri(content: bytes, default_mime: str = 'image/png') -> str:
    """二维码图片转为 data URI, 供前端直接展示"""
    mime = detect_mime(content, default_mime)
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"
