"""
HTTP 服务
六个登录路由, 统一返回 {result, data | errMsg} 信封, 登录成功时同时下发 Cookie
"""

from typing import Callable, Optional

import requests
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from qqmusic_login.api_client import MusicuClient, create_session
from qqmusic_login.config_manager import ConfigManager
from qqmusic_login.exceptions import LoginError
from qqmusic_login.logger import LoggerManager
from qqmusic_login.phone_login import DEFAULT_COUNTRY_CODE, PhoneLogin
from qqmusic_login.qq_login import QQLogin
from qqmusic_login.results import LOCAL_FAILURE, LoginResult, success
from qqmusic_login.wx_login import WeChatLogin


def create_app(config: Optional[ConfigManager] = None,
               session_factory: Optional[Callable[[], requests.Session]] = None) -> Flask:
    """
    创建 Flask 应用

    Args:
        config: 已加载的配置, 为空时使用默认配置
        session_factory: 每个请求创建外呼会话的工厂, 默认按配置创建带代理的会话

    Returns:
        Flask 应用
    """
    config = config or ConfigManager()
    logger = LoggerManager().get_logger()

    timeout = config.get("request_timeout")
    cookie_max_age = config.get("cookie_max_age")
    proxy = config.proxy_url()
    if session_factory is None:
        def session_factory():
            return create_session(proxy)

    app = Flask(__name__)

    # 每个请求独立的会话和流程对象, 请求之间不共享状态
    def musicu_client(session):
        return MusicuClient(session=session, timeout=timeout)

    def phone_flow():
        session = session_factory()
        return PhoneLogin(musicu_client(session))

    def qq_flow():
        session = session_factory()
        return QQLogin(musicu_client(session), session=session, timeout=timeout)

    def wx_flow():
        session = session_factory()
        return WeChatLogin(musicu_client(session), session=session, timeout=timeout)

    def respond(result: LoginResult):
        response = jsonify(result.to_dict())
        for name, value in result.cookies.items():
            response.set_cookie(name, str(value), max_age=cookie_max_age)
        return response

    @app.errorhandler(LoginError)
    def handle_login_error(error: LoginError):
        logger.warning(f"[!] {request.path} 失败({error.result}): {error.message}")
        return respond(error.to_result())

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"[!] {request.path} 发生未知错误: {error}")
        return respond(LoginResult(LOCAL_FAILURE, err_msg=str(error)))

    @app.route('/health')
    def health():
        return respond(success("ok"))

    @app.route('/phone/send')
    def phone_send():
        args = request.args
        return respond(phone_flow().send_code(
            args.get('phone'), args.get('country_code', DEFAULT_COUNTRY_CODE)))

    @app.route('/phone/login')
    def phone_login():
        args = request.args
        return respond(phone_flow().login(
            args.get('phone'), args.get('code'), args.get('country_code', DEFAULT_COUNTRY_CODE)))

    @app.route('/qr/qq/key')
    def qq_key():
        return respond(qq_flow().get_qrcode())

    @app.route('/qr/qq/check')
    def qq_check():
        return respond(qq_flow().check(request.args.get('qrsig')))

    @app.route('/qr/wx/key')
    def wx_key():
        return respond(wx_flow().get_qrcode())

    @app.route('/qr/wx/check')
    def wx_check():
        return respond(wx_flow().check(request.args.get('uuid')))

    return app
