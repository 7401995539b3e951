"""
客户端配置模块

ClientConfig 是客户端的显式配置结构，在构造客户端时传入（或由子类的类属性与
构造参数合并生成），每次请求都从中读取。属性可以在使用前直接修改。
"""

from __future__ import annotations

from typing import Any, Callable

from restflex.constants import (
    AUTH_TYPE_NONE,
    DEFAULT_API_KEY_FIELD,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_METHOD,
    DEFAULT_SIGNATURE_METHOD,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from restflex.exceptions import APIClientValidationError
from restflex.utils import sanitize_dict


class ClientConfig:
    """
    客户端配置

    属性:
        base_url: API 基础 URL，可以包含路径前缀
        user: 用户名/账户名
        api_key: API 密钥（OAuth 方式下作为 consumer key）
        api_key_field: hash_key 认证时存放 api_key 的字段名
        consumer_secret: OAuth consumer secret
        access_token: OAuth access token
        access_secret: OAuth access token secret
        signature_method: OAuth 签名方法
        auth_type: 认证方式名称，或 BaseAuthStrategy 类/实例
        mapping: 映射表，同时用于键重命名与值转换
        map_values: 是否按映射表转换参数值
        wrapper: 全局包装键，命令未定义 wrapper 时使用
        headers: 每个请求都会携带的请求头
        default_method: 命令未定义 method 时使用的 HTTP 方法
        extension: 路径扩展名，如 "json"
        content_type: 通用内容类型
        incoming_content_type: 响应内容类型
        outgoing_content_type: 请求内容类型
        encoder: 自定义编码函数 (options, content_type) -> str
        decoder: 自定义解码函数 (content, content_type) -> Any
        oauth_post_body: OAuth 方式下 POST 参数是否作为表单请求体参与签名
        user_agent: User-Agent 请求头
        timeout: 请求超时时间（秒），构造传输层时读取
        strict_ssl: 是否校验 SSL 证书，构造传输层时读取
        debug: 是否输出请求合成各阶段的跟踪日志
    """

    base_url: str = ""
    user: str | None = None
    api_key: str | None = None
    api_key_field: str = DEFAULT_API_KEY_FIELD
    consumer_secret: str | None = None
    access_token: str | None = None
    access_secret: str | None = None
    signature_method: str = DEFAULT_SIGNATURE_METHOD
    auth_type: Any = AUTH_TYPE_NONE
    mapping: dict[Any, Any] = {}
    map_values: bool = True
    wrapper: str | list[str] | None = None
    headers: dict[str, str] = {}
    default_method: str = DEFAULT_METHOD
    extension: str = ""
    content_type: str = DEFAULT_CONTENT_TYPE
    incoming_content_type: str | None = None
    outgoing_content_type: str | None = None
    encoder: Callable[[Any, str], str] | None = None
    decoder: Callable[[Any, str], Any] | None = None
    oauth_post_body: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int | float | None = DEFAULT_TIMEOUT
    strict_ssl: bool = True
    debug: bool = False

    OPTIONS: tuple[str, ...] = (
        "base_url",
        "user",
        "api_key",
        "api_key_field",
        "consumer_secret",
        "access_token",
        "access_secret",
        "signature_method",
        "auth_type",
        "mapping",
        "map_values",
        "wrapper",
        "headers",
        "default_method",
        "extension",
        "content_type",
        "incoming_content_type",
        "outgoing_content_type",
        "encoder",
        "decoder",
        "oauth_post_body",
        "user_agent",
        "timeout",
        "strict_ssl",
        "debug",
    )

    def __init__(self, **options):
        """
        参数:
            **options: 配置项，未提供的使用类级别默认值

        异常:
            APIClientValidationError: 出现未知配置项时抛出
        """
        unknown = sorted(set(options) - set(self.OPTIONS))
        if unknown:
            raise APIClientValidationError(f"Unknown client options: {', '.join(unknown)}")

        for name in self.OPTIONS:
            value = options[name] if name in options else getattr(type(self), name)
            # 可变默认值按实例复制，避免实例之间共享
            if isinstance(value, dict):
                value = dict(value)
            setattr(self, name, value)

        self.base_url = (self.base_url or "").rstrip("/")

    def as_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.OPTIONS}

    def copy(self, **overrides) -> ClientConfig:
        """返回合并 overrides 后的新配置"""
        return type(self)(**{**self.as_dict(), **overrides})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sanitize_dict(self.as_dict(), recursive=False)})"
