"""
测试 restflex.transport 模块

测试 TransportResponse 属性与基于 requests.Session 的传输层
"""

import pytest
import requests
import responses
from requests.adapters import HTTPAdapter

from restflex.exceptions import APIClientNetworkError, APIClientTimeoutError
from restflex.transport import RequestsTransport, TransportResponse


class TestTransportResponse:
    """测试传输层响应"""

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code, ok", [(200, True), (204, True), (302, True), (404, False), (500, False)])
    def test_ok(self, status_code, ok):
        assert TransportResponse(status_code).ok is ok

    @pytest.mark.unit
    def test_headers_case_insensitive(self):
        response = TransportResponse(200, headers={"Content-Type": "application/json"})

        assert response.headers["content-type"] == "application/json"

    @pytest.mark.unit
    def test_text_and_status_line(self):
        response = TransportResponse(404, content="Zürich".encode("utf-8"), reason="Not Found")

        assert response.text == "Zürich"
        assert response.status_line == "404 Not Found"

    @pytest.mark.unit
    def test_unknown_encoding_falls_back_to_utf8(self):
        response = TransportResponse(200, content=b"abc", encoding="no-such-codec")

        assert response.text == "abc"


class TestRequestsTransport:
    """测试 RequestsTransport"""

    @pytest.mark.unit
    @responses.activate
    def test_send_returns_transport_response(self):
        """UT-TRANS-001: 发送请求并转换响应"""
        responses.add(
            responses.POST,
            "https://api.example.com/nodes",
            json={"id": 1},
            status=201,
            headers={"X-Request-Id": "abc"},
        )
        transport = RequestsTransport()

        response = transport.send(
            "POST", "https://api.example.com/nodes", {"Content-Type": "application/json"}, '{"name": "web"}'
        )

        assert response.status_code == 201
        assert response.headers["x-request-id"] == "abc"
        assert response.content == b'{"id": 1}'
        assert responses.calls[0].request.body == b'{"name": "web"}'
        assert responses.calls[0].request.headers["Content-Type"] == "application/json"

    @pytest.mark.unit
    @responses.activate
    def test_error_status_is_not_raised(self):
        responses.add(responses.GET, "https://api.example.com/missing", body="nope", status=404)

        response = RequestsTransport().send("GET", "https://api.example.com/missing", {})

        assert response.status_code == 404
        assert response.reason == "Not Found"
        assert not response.ok

    @pytest.mark.unit
    def test_timeout_mapped(self, requests_mock):
        """UT-TRANS-002: 超时转换为 APIClientTimeoutError"""
        requests_mock.get("https://api.example.com/slow", exc=requests.exceptions.ConnectTimeout)

        with pytest.raises(APIClientTimeoutError, match="timed out after 5s"):
            RequestsTransport(timeout=5).send("GET", "https://api.example.com/slow", {})

    @pytest.mark.unit
    def test_connection_error_mapped_and_sanitized(self, requests_mock):
        requests_mock.get("https://api.example.com/down", exc=requests.exceptions.ConnectionError("refused"))

        with pytest.raises(APIClientNetworkError) as exc_info:
            RequestsTransport().send("GET", "https://api.example.com/down?api_key=secret", {})

        assert "secret" not in str(exc_info.value)
        assert "refused" in str(exc_info.value)

    @pytest.mark.unit
    def test_timeout_and_verify_passed_to_session(self, mocker):
        transport = RequestsTransport(timeout=7, verify=False, proxies={"https": "http://proxy:3128"})
        mock_request = mocker.patch.object(transport.session, "request")
        mock_request.return_value = mocker.Mock(
            status_code=200, headers={}, content=b"", reason="OK", url="https://h/", encoding=None
        )

        transport.send("GET", "https://h/", {"Accept": "text/plain"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs["timeout"] == 7
        assert kwargs["verify"] is False
        assert kwargs["proxies"] == {"https": "http://proxy:3128"}

    @pytest.mark.unit
    def test_retry_adapter_mounted(self):
        transport = RequestsTransport(enable_retry=True, retry_config={"total": 2})

        adapter = transport.session.get_adapter("https://api.example.com")

        assert isinstance(adapter, HTTPAdapter)
        assert adapter.max_retries.total == 2

    @pytest.mark.unit
    def test_no_retry_by_default(self):
        adapter = RequestsTransport().session.get_adapter("https://api.example.com")

        assert adapter.max_retries.total == 0

    @pytest.mark.unit
    @responses.activate
    def test_cookies_kept_across_requests(self):
        """UT-TRANS-003: Cookie 跨请求保持"""
        responses.add(responses.GET, "https://api.example.com/login", headers={"Set-Cookie": "session=abc; Path=/"})
        responses.add(responses.GET, "https://api.example.com/me", json={})
        transport = RequestsTransport()

        transport.send("GET", "https://api.example.com/login", {})
        transport.send("GET", "https://api.example.com/me", {})

        assert transport.cookies.get("session") == "abc"
        assert responses.calls[1].request.headers["Cookie"] == "session=abc"

    @pytest.mark.unit
    def test_close(self, mocker):
        transport = RequestsTransport()
        close = mocker.patch.object(transport.session, "close")

        transport.close()

        close.assert_called_once()
