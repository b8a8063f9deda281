"""QQ 音乐登录服务: 手机号验证码、QQ 扫码、微信扫码登录"""

__version__ = "1.0.0"
