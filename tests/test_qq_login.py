import json
import logging

import pytest
import requests

from qqmusic_login.api_client import MusicuClient, create_session
from qqmusic_login.crypto import calculate_g_tk, get_ptqrtoken
from qqmusic_login.exceptions import TransportError, ValidationError, VendorBusinessError, VendorProtocolError
from qqmusic_login.qq_login import QQLogin, QRState, interpret_qr_status

from tests.fakes import MUSICU_URL, FakeResponse, image_bytes, mount_scripted, musicu_data, musicu_response

QRSIG = 'qrsig-abcdefghijklmnopqrstuvwxyz0123456789'
REDIRECT_URL = (
    "https://ssl.ptlogin2.graph.qq.com/check_sig?pttype=1&uin=1234567&service=ptqrlogin"
    "&nodirect=0&ptsigx=SIGX0123&s_url=https%3A%2F%2Fgraph.qq.com%2Foauth2.0%2Flogin_jump&f_url="
)
LOCATION = "https://y.qq.com/portal/wx_redirect.html?login_type=1&surl=https://y.qq.com/&code=AUTHCODE42&state=state"
FINAL_COOKIES = {'qqmusic_key': 'Q_H_L_FINAL', 'qm_keyst': 'Q_H_L_FINAL', 'uin': '1234567'}


def ptuicb(code, url=''):
    return FakeResponse(text=f"ptuiCB('{code}','0','{url}','0','message', '')")


def script_login(session):
    session.add(QQLogin.QRLOGIN_URL, ptuicb('0', REDIRECT_URL))
    session.add(QQLogin.CHECK_SIG_URL, FakeResponse(
        status_code=302,
        headers={'Location': 'https://graph.qq.com/oauth2.0/login_jump'},
        set_cookies=['p_skey=PSKEY123; Path=/; Domain=graph.qq.com', 'p_uin=o1234567; Path=/', 'pt4_token=T4; Path=/']
    ))
    session.add(QQLogin.AUTHORIZE_URL, FakeResponse(status_code=302, headers={'Location': LOCATION}))
    session.add(MUSICU_URL, musicu_response(0, FINAL_COOKIES))


@pytest.fixture
def qq(session, client):
    return QQLogin(client, session=session, timeout=5)


def test_get_qrcode_returns_qrsig_and_data_uri(session, qq):
    session.add(QQLogin.QRSHOW_URL, FakeResponse(
        content=image_bytes('PNG'),
        set_cookies=['qrsig=SIGVALUE; Path=/; Domain=ptlogin2.qq.com']
    ))

    result = qq.get_qrcode()

    assert result.result == 100
    assert result.data['qrsig'] == 'SIGVALUE'
    assert result.data['image'].startswith('data:image/png;base64,')
    params = session.calls[0]['params']
    assert params['appid'] == '716027609'
    assert params['pt_3rd_aid'] == '100497308'


def test_get_qrcode_without_qrsig(session, qq):
    session.add(QQLogin.QRSHOW_URL, FakeResponse(content=image_bytes('PNG')))
    with pytest.raises(VendorProtocolError, match="qrsig"):
        qq.get_qrcode()


def test_check_requires_qrsig(session, qq):
    with pytest.raises(ValidationError, match="qrsig is required"):
        qq.check('')
    assert session.calls == []


@pytest.mark.parametrize('code, expected, message', [
    ('66', 101, "waiting for scan"),
    ('67', 102, "authenticating"),
    ('65', 103, "QR code expired"),
])
def test_check_pending_states(session, qq, code, expected, message):
    session.add(QQLogin.QRLOGIN_URL, ptuicb(code))
    result = qq.check(QRSIG)
    assert result.to_dict() == {'result': expected, 'message': message}


def test_check_unknown_code(session, qq):
    session.add(QQLogin.QRLOGIN_URL, ptuicb('10009'))
    result = qq.check(QRSIG)
    assert result.result == 200
    assert result.err_msg == "unknown status code: 10009"
    assert result.raw[0] == '10009'


def test_check_sends_ptqrtoken_and_qrsig_cookie(session, qq):
    session.add(QQLogin.QRLOGIN_URL, ptuicb('66'))
    qq.check(QRSIG)
    call = session.calls[0]
    assert call['params']['ptqrtoken'] == str(get_ptqrtoken(QRSIG))
    assert call['params']['action'].startswith('0-0-')
    assert call['headers']['Cookie'] == f'qrsig={QRSIG}'


def test_check_unparseable_body(session, qq):
    session.add(QQLogin.QRLOGIN_URL, FakeResponse(text='<html>busy</html>'))
    with pytest.raises(VendorProtocolError):
        qq.check(QRSIG)


def test_check_transport_failure(session, qq):
    session.add(QQLogin.QRLOGIN_URL, requests.ConnectionError("connection reset"))
    with pytest.raises(TransportError, match="connection reset"):
        qq.check(QRSIG)


def test_interpret_qr_status_is_pure():
    assert interpret_qr_status(['66', '0', '']).state is QRState.PENDING
    assert interpret_qr_status(['65', '0', '']).state is QRState.EXPIRED
    assert interpret_qr_status(['7', '0', '']).state is QRState.ERROR

    poll = interpret_qr_status(['0', '0', REDIRECT_URL])
    assert poll.state is QRState.AUTHENTICATED
    assert poll.result is None
    assert poll.redirect_url == REDIRECT_URL


def test_check_full_handshake(session, qq):
    script_login(session)

    result = qq.check(QRSIG)

    assert result.to_dict() == {'result': 100, 'data': FINAL_COOKIES}
    assert result.cookies == FINAL_COOKIES

    check_sig = session.calls_to(QQLogin.CHECK_SIG_URL)[0]
    assert check_sig['params']['uin'] == '1234567'
    assert check_sig['params']['ptsigx'] == 'SIGX0123'
    assert check_sig['allow_redirects'] is False

    authorize = session.calls_to(QQLogin.AUTHORIZE_URL)[0]
    assert authorize['method'] == 'POST'
    assert authorize['allow_redirects'] is False
    assert authorize['data']['g_tk'] == str(calculate_g_tk('PSKEY123'))
    assert authorize['data']['client_id'] == '100497308'
    assert authorize['headers']['Cookie'] == 'p_skey=PSKEY123; p_uin=o1234567; pt4_token=T4'

    login = musicu_data(session.calls_to(MUSICU_URL)[0])
    assert login == {'req1': {'module': 'QQConnectLogin.LoginServer', 'method': 'QQLogin',
                              'param': {'code': 'AUTHCODE42'}}}


def test_check_without_sigx(session, qq):
    session.add(QQLogin.QRLOGIN_URL, ptuicb('0', 'https://ssl.ptlogin2.graph.qq.com/check_sig?uin=1&service=x'))
    with pytest.raises(VendorProtocolError, match="ptsigx or uin"):
        qq.check(QRSIG)
    assert session.calls_to(QQLogin.CHECK_SIG_URL) == []


def test_check_without_p_skey(session, qq):
    script_login(session)
    session.routes[QQLogin.CHECK_SIG_URL] = [FakeResponse(status_code=302, set_cookies=['pt4_token=T4'])]
    with pytest.raises(VendorProtocolError, match="p_skey"):
        qq.check(QRSIG)
    assert session.calls_to(QQLogin.AUTHORIZE_URL) == []


def test_check_without_location(session, qq):
    script_login(session)
    session.routes[QQLogin.AUTHORIZE_URL] = [FakeResponse(status_code=200, text='<html></html>')]
    with pytest.raises(VendorProtocolError, match="Location"):
        qq.check(QRSIG)


def test_check_location_without_code(session, qq):
    script_login(session)
    session.routes[QQLogin.AUTHORIZE_URL] = [FakeResponse(status_code=302, headers={'Location': 'https://y.qq.com/?error=1'})]
    with pytest.raises(VendorProtocolError, match="auth code"):
        qq.check(QRSIG)


def test_check_sig_error_status(session, qq):
    script_login(session)
    session.routes[QQLogin.CHECK_SIG_URL] = [FakeResponse(status_code=403)]
    with pytest.raises(TransportError):
        qq.check(QRSIG)


def test_check_finalize_failure(session, qq):
    script_login(session)
    session.routes[MUSICU_URL] = [musicu_response(2000, {'errMsg': 'auth code invalid'})]
    with pytest.raises(VendorBusinessError, match="auth code invalid"):
        qq.check(QRSIG)


def test_check_finalize_failure_fallback(session, qq):
    script_login(session)
    session.routes[MUSICU_URL] = [musicu_response(2000)]
    with pytest.raises(VendorBusinessError, match="QQLogin failed"):
        qq.check(QRSIG)


def test_check_full_handshake_logs_state_transitions(session, qq, caplog):
    caplog.set_level(logging.DEBUG, logger="QQMusicLogin")
    script_login(session)

    qq.check(QRSIG)

    assert f"({QRState.EXCHANGING.value})" in caplog.text
    assert f"({QRState.COMPLETE.value})" in caplog.text


def test_get_qrcode_logs_issued(session, qq, caplog):
    caplog.set_level(logging.DEBUG, logger="QQMusicLogin")
    session.add(QQLogin.QRSHOW_URL, FakeResponse(content=image_bytes('PNG'), set_cookies=['qrsig=SIGVALUE; Path=/']))
    qq.get_qrcode()
    assert f"({QRState.ISSUED.value})" in caplog.text


def test_check_sig_cookies_do_not_leak_across_steps():
    real_session = create_session()
    adapter = mount_scripted(real_session)
    adapter.add(QQLogin.QRLOGIN_URL,
                body=f"ptuiCB('0','0','{REDIRECT_URL}','0','ok', '')".encode('utf-8'),
                set_cookies=['superkey=SK; Path=/; Domain=qq.com', 'uin=o1234567; Path=/; Domain=qq.com'])
    adapter.add(QQLogin.CHECK_SIG_URL, status=302,
                headers=[('Location', 'https://graph.qq.com/oauth2.0/login_jump')],
                set_cookies=['p_skey=PSKEY123; Path=/; Domain=graph.qq.com', 'p_uin=o1234567; Path=/; Domain=qq.com',
                             'pt4_token=T4; Path=/; Domain=qq.com'])
    adapter.add(QQLogin.AUTHORIZE_URL, status=302,
                headers=[('Location', LOCATION)],
                set_cookies=['graph_token=G; Path=/; Domain=qq.com'])
    adapter.add(MUSICU_URL,
                body=json.dumps({'code': 0, 'req1': {'code': 0, 'data': FINAL_COOKIES}}).encode('utf-8'),
                headers=[('Content-Type', 'application/json')])

    qq = QQLogin(MusicuClient(session=real_session, timeout=5), session=real_session, timeout=5)
    result = qq.check(QRSIG)

    assert result.cookies == FINAL_COOKIES
    assert adapter.cookie_headers(QQLogin.QRLOGIN_URL) == [f'qrsig={QRSIG}']
    assert adapter.cookie_headers(QQLogin.CHECK_SIG_URL) == [None]
    assert adapter.cookie_headers(QQLogin.AUTHORIZE_URL) == ['p_skey=PSKEY123; p_uin=o1234567; pt4_token=T4']
    assert adapter.cookie_headers(MUSICU_URL) == [None]
    assert len(real_session.cookies) == 0
