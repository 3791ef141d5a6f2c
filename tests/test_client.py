# -*- coding: utf-8 -*-
"""Tests for the DigitalOcean account client"""

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

import pytest
import requests

from collector import AccountCollector
from provider.digitalocean import (
    AccountClient,
    AccountTimeoutError,
    TokenAuth,
    UpstreamError,
    build_session,
)


def make_response(status_code=200, payload=None, body=None, reason='OK'):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    if body is None:
        body = json.dumps(payload).encode('utf-8')
    response.iter_content.side_effect = lambda *args, **kwargs: iter([body])
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f'{status_code} {reason}', response=response)
    return response


class TestTokenAuth:
    """Test bearer token transport"""

    def test_sets_authorization_header(self):
        request = requests.Request('GET', 'https://api.digitalocean.com/v2/account', auth=TokenAuth('secret')).prepare()
        assert request.headers['Authorization'] == 'Bearer secret'

    def test_empty_token_rejected(self):
        with pytest.raises(ValueError):
            TokenAuth('')

    def test_repr_hides_token(self):
        assert 'secret' not in repr(TokenAuth('secret'))

    def test_build_session(self):
        session = build_session('secret')
        assert isinstance(session.auth, TokenAuth)
        assert session.headers['Accept'] == 'application/json'
        session.close()


class TestAccountClient:
    """Test fetch_account error mapping"""

    def setup_method(self):
        self.session = requests.Session()
        self.client = AccountClient(self.session, api_url='https://api.example.test/', timeout=3.0)

    def teardown_method(self):
        self.session.close()

    def test_fetch_account_success(self, account_payload):
        with patch.object(self.session, 'get', return_value=make_response(payload=account_payload)) as mock_get:
            snapshot = self.client.fetch_account()

        mock_get.assert_called_once_with('https://api.example.test/v2/account', timeout=3.0, stream=True)
        assert snapshot.status == 'active'
        assert snapshot.droplet_limit == 25
        assert snapshot.floating_ip_limit == 3

    def test_fetch_account_timeout_override(self, account_payload):
        with patch.object(self.session, 'get', return_value=make_response(payload=account_payload)) as mock_get:
            self.client.fetch_account(timeout=0.5)

        assert mock_get.call_args.kwargs['timeout'] == 0.5

    def test_one_request_per_call(self, account_payload):
        with patch.object(self.session, 'get', return_value=make_response(payload=account_payload)) as mock_get:
            self.client.fetch_account()
            self.client.fetch_account()

        assert mock_get.call_count == 2

    @pytest.mark.parametrize('error', [requests.ReadTimeout('read'), requests.ConnectTimeout('connect')])
    def test_timeout_maps_to_timeout_error(self, error):
        with patch.object(self.session, 'get', side_effect=error):
            with pytest.raises(AccountTimeoutError) as exc_info:
                self.client.fetch_account()

        assert exc_info.value.cause is error
        assert exc_info.value.error_type == 'timeout'

    def test_connection_error_maps_to_upstream_error(self):
        error = requests.ConnectionError('refused')
        with patch.object(self.session, 'get', side_effect=error):
            with pytest.raises(UpstreamError) as exc_info:
                self.client.fetch_account()

        assert not isinstance(exc_info.value, AccountTimeoutError)
        assert exc_info.value.cause is error
        assert exc_info.value.error_type == 'upstream'

    def test_auth_failure_maps_to_upstream_error(self):
        response = make_response(
            status_code=401,
            payload={'id': 'unauthorized', 'message': 'Unable to authenticate you'},
            reason='Unauthorized'
        )
        with patch.object(self.session, 'get', return_value=response):
            with pytest.raises(UpstreamError) as exc_info:
                self.client.fetch_account()

        assert '401' in str(exc_info.value)
        assert 'Unable to authenticate you' in str(exc_info.value)
        assert isinstance(exc_info.value.cause, requests.HTTPError)

    def test_error_status_without_json_body(self):
        response = make_response(status_code=503, body=b'<html>busy</html>', reason='Service Unavailable')
        with patch.object(self.session, 'get', return_value=response):
            with pytest.raises(UpstreamError) as exc_info:
                self.client.fetch_account()

        assert 'Service Unavailable' in str(exc_info.value)

    def test_invalid_json_maps_to_upstream_error(self):
        response = make_response(body=b'not json')
        with patch.object(self.session, 'get', return_value=response):
            with pytest.raises(UpstreamError) as exc_info:
                self.client.fetch_account()

        assert isinstance(exc_info.value.cause, ValueError)

    def test_malformed_payload_maps_to_upstream_error(self):
        with patch.object(self.session, 'get', return_value=make_response(payload={'unexpected': True})):
            with pytest.raises(UpstreamError):
                self.client.fetch_account()

    def test_from_token(self):
        client = AccountClient.from_token('secret', timeout=1.5)
        assert isinstance(client.session.auth, TokenAuth)
        assert client.timeout == 1.5
        assert client.account_url == 'https://api.digitalocean.com/v2/account'
        client.close()


ACCOUNT_BODY = b'{"account": {"status": "active", "droplet_limit": 25, "email_verified": true, "floating_ip_limit": 3}}'


class SlowAccountHandler(BaseHTTPRequestHandler):
    """延迟响应头的 Account API"""

    delay = 1.5

    def do_GET(self):
        time.sleep(self.delay)
        try:
            self.send_response(200)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(ACCOUNT_BODY)))
            self.end_headers()
            self.wfile.write(ACCOUNT_BODY)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


class DripAccountHandler(SlowAccountHandler):
    """立即返回响应头，响应体每 0.2 秒只发 10 字节"""

    piece_size = 10
    interval = 0.2

    def do_GET(self):
        try:
            self.send_response(200)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(ACCOUNT_BODY)))
            self.end_headers()
            self.wfile.flush()
            for i in range(0, len(ACCOUNT_BODY), self.piece_size):
                self.wfile.write(ACCOUNT_BODY[i:i + self.piece_size])
                self.wfile.flush()
                time.sleep(self.interval)
        except (BrokenPipeError, ConnectionResetError):
            pass


class RealServerTest:
    """在本地线程中启动 Account API 服务器"""

    handler = SlowAccountHandler

    def setup_method(self):
        self.server = ThreadingHTTPServer(('127.0.0.1', 0), self.handler)
        self.server.daemon_threads = True
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        host, port = self.server.server_address
        self.client = AccountClient.from_token('secret', api_url=f'http://{host}:{port}')
        # 本地服务器不走环境变量里的代理
        self.client.session.trust_env = False

    def teardown_method(self):
        self.client.close()
        self.server.shutdown()
        self.server.server_close()


class TestAccountClientRealTimeout(RealServerTest):
    """Test the timeout against a server that delays its headers"""

    def test_slow_upstream_times_out(self):
        start = time.time()
        with pytest.raises(AccountTimeoutError):
            self.client.fetch_account(timeout=0.3)
        elapsed = time.time() - start

        assert elapsed < 0.3 + 1.0

    def test_collect_against_slow_upstream(self):
        collector = AccountCollector(self.client, timeout=0.3)

        start = time.time()
        metrics = collector.collect()
        elapsed = time.time() - start

        assert elapsed < 0.3 + 1.0
        assert [sample.value for metric in metrics for sample in metric.samples] == [0.0, 0.0, 0.0, 0.0]


class TestAccountClientSlowBody(RealServerTest):
    """Test that the timeout covers the whole body, not each read"""

    handler = DripAccountHandler

    def test_slow_body_times_out(self):
        start = time.time()
        with pytest.raises(AccountTimeoutError):
            self.client.fetch_account(timeout=0.5)
        elapsed = time.time() - start

        assert elapsed < 0.5 + 1.0

    def test_collect_against_slow_body(self):
        collector = AccountCollector(self.client, timeout=0.5)

        start = time.time()
        metrics = collector.collect()
        elapsed = time.time() - start

        assert elapsed < 0.5 + 1.0
        assert [sample.value for metric in metrics for sample in metric.samples] == [0.0, 0.0, 0.0, 0.0]

    def test_generous_timeout_reads_full_body(self):
        snapshot = self.client.fetch_account(timeout=5.0)

        assert snapshot.droplet_limit == 25
        assert snapshot.floating_ip_limit == 3
