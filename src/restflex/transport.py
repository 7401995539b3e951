"""
HTTP 传输层模块

请求合成流水线只依赖 BaseTransport 接口：发送 method/url/headers/body，返回状态码、
响应头与响应体。默认实现 RequestsTransport 基于 requests.Session，负责连接池、
可选的 urllib3 重试策略、SSL 校验与跨请求的 Cookie 保持。
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib3.util.retry import Retry

from restflex.constants import DEFAULT_POOL_CONFIG, DEFAULT_RETRY_CONFIG, DEFAULT_TIMEOUT
from restflex.exceptions import APIClientNetworkError, APIClientTimeoutError
from restflex.utils import sanitize_url

logger = logging.getLogger(__name__)


class TransportResponse:
    """
    传输层响应

    参数:
        status_code: HTTP 状态码
        headers: 响应头（大小写不敏感）
        content: 原始响应体字节
        reason: 状态描述，如 "Not Found"
        url: 最终请求 URL（跟随重定向后）
        encoding: 响应体字符编码，None 时按 UTF-8 处理
    """

    def __init__(
        self,
        status_code: int,
        headers: dict[str, str] | None = None,
        content: bytes = b"",
        reason: str = "",
        url: str = "",
        encoding: str | None = None,
    ):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content or b""
        self.reason = reason or ""
        self.url = url
        self.encoding = encoding

    @property
    def ok(self) -> bool:
        """状态码为成功（2xx）或重定向（3xx）"""
        return 200 <= self.status_code < 400

    @property
    def text(self) -> str:
        """按响应编码解码后的响应体"""
        try:
            return self.content.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason}".strip()


class BaseTransport(ABC):
    """传输层基类，子类实现 send 方法完成实际的网络请求"""

    @abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | bytes | None = None,
    ) -> TransportResponse:
        """
        发送请求

        返回:
            TransportResponse，非 2xx/3xx 状态码不视为异常

        异常:
            APIClientNetworkError: 网络层失败（连接失败、DNS 解析失败等）
            APIClientTimeoutError: 请求超时
        """

    def close(self) -> None:
        """释放传输层资源"""


class RequestsTransport(BaseTransport):
    """
    基于 requests.Session 的传输层

    参数:
        timeout: 请求超时时间（秒）
        verify: SSL 证书验证开关
        enable_retry: 是否启用 urllib3 重试策略（默认不启用）
        retry_config: 重试策略配置字典（覆盖默认配置）
        pool_config: 连接池配置字典（覆盖默认配置）
        **kwargs: 其他传递给 session.request 的参数（如 proxies、cert）
    """

    def __init__(
        self,
        timeout: int | float | None = DEFAULT_TIMEOUT,
        verify: bool = True,
        enable_retry: bool = False,
        retry_config: dict[str, Any] | None = None,
        pool_config: dict[str, Any] | None = None,
        **kwargs,
    ):
        self.timeout = timeout
        self.verify = verify
        self.enable_retry = enable_retry
        self.retry_config = {**DEFAULT_RETRY_CONFIG, **(retry_config or {})}
        self.pool_config = {**DEFAULT_POOL_CONFIG, **(pool_config or {})}
        self.request_kwargs = kwargs
        self.session = self._create_session()
        self._session_lock = threading.RLock()

    @property
    def cookies(self) -> requests.cookies.RequestsCookieJar:
        """跨请求保持的 Cookie"""
        return self.session.cookies

    def _create_session(self) -> requests.Session:
        """
        创建并配置 requests.Session 对象

        执行步骤:
            1. 创建新的 Session 对象
            2. 启用重试时，使用重试策略与连接池配置创建适配器
            3. 为 HTTP 和 HTTPS 协议挂载适配器
        """
        session = requests.Session()
        if self.enable_retry and self.retry_config.get("total"):
            adapter = HTTPAdapter(max_retries=Retry(**self.retry_config), **self.pool_config)
        else:
            adapter = HTTPAdapter(**self.pool_config)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def send(self, method, url, headers, body=None):
        if isinstance(body, str):
            body = body.encode("utf-8")

        try:
            with self._session_lock:
                response = self.session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    data=body,
                    timeout=self.timeout,
                    verify=self.verify,
                    **self.request_kwargs,
                )
        except requests.exceptions.Timeout as e:
            raise APIClientTimeoutError(f"Request to {sanitize_url(url)} timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise APIClientNetworkError(f"Request to {sanitize_url(url)} failed: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            reason=response.reason,
            url=response.url,
            encoding=response.encoding,
        )

    def close(self):
        if self.session:
            self.session.close()
            logger.info("Session closed")
