"""
通用测试 Fixture 定义

提供测试所需的记录型传输层、客户端工厂和工具函数
"""

import pytest

from restflex.commands import ensure_django_settings
from restflex.transport import BaseTransport, TransportResponse


def pytest_configure(config):
    # DRF 序列化器在导入 rest_framework.fields 时需要 Django 配置
    ensure_django_settings()


class RecordingTransport(BaseTransport):
    """记录每次发送的请求并返回预设响应的传输层"""

    def __init__(self, responses=None, **kwargs):
        self.requests = []
        self.responses = list(responses or [])
        self.init_kwargs = kwargs
        self.closed = False

    def queue(self, status_code=200, content=b"", headers=None, reason="OK"):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.responses.append(TransportResponse(status_code, headers=headers, content=content, reason=reason))

    def send(self, method, url, headers, body=None):
        self.requests.append({"method": method, "url": url, "headers": dict(headers), "body": body})
        if self.responses:
            return self.responses.pop(0)
        return TransportResponse(200, headers={"Content-Type": "text/plain"}, content=b"", reason="OK")

    def close(self):
        self.closed = True

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture
def transport_cls():
    """记录型传输层类"""
    return RecordingTransport


@pytest.fixture
def recording_transport():
    """记录型传输层实例"""
    return RecordingTransport()


@pytest.fixture
def make_client(recording_transport):
    """客户端工厂：使用记录型传输层构造 BaseClient"""
    from restflex import BaseClient

    def factory(commands=None, client_class=BaseClient, **options):
        options.setdefault("base_url", "http://localhost")
        return client_class(commands=commands or {}, transport=recording_transport, **options)

    return factory
