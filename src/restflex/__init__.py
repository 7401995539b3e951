"""
restflex REST API 客户端绑定框架

以声明式命令表描述远程 REST API，自动完成路径构建、参数映射、认证与负载编解码

主要组件:
    - BaseClient: 客户端基类
    - ClientConfig: 客户端配置
    - CommandTable: 命令表
    - 认证策略: basic、hash_key、get_params、header、OAuth 1.0a
    - 编解码: 纯文本、表单、JSON、XML
    - 异常类: APIClientError 及其子类

使用示例:
    >>> from restflex import BaseClient
    >>>
    >>> class NodeAPI(BaseClient):
    ...     base_url = "https://api.example.com/v1"
    ...     content_type = "application/json"
    ...     commands = {"get_node": {"path": "nodes/:id"}}
    >>>
    >>> api = NodeAPI()
    >>> result = api.get_node(id=42)
"""

# 核心客户端
from restflex.client import BaseClient

# 配置与命令表
from restflex.config import ClientConfig
from restflex.commands import CommandTable

# 异常类
from restflex.exceptions import (
    APIClientAuthError,
    APIClientError,
    APIClientHTTPError,
    APIClientNetworkError,
    APIClientTimeoutError,
    APIClientValidationError,
    DecodeError,
    EncodeError,
    MissingMandatoryFieldsError,
    MissingPathArgumentError,
    UnknownCommandError,
)

# 认证策略
from restflex.auth import (
    BaseAuthStrategy,
    BasicAuth,
    GetParamsAuth,
    HashKeyAuth,
    HeaderTokenAuth,
    NoAuth,
    OAuth1BodyAuth,
    OAuth1HeaderAuth,
    OAuth1ParamsAuth,
    get_auth_strategy,
)

# 编解码
from restflex.codec import (
    BaseCodec,
    ContentCodec,
    JSONCodec,
    PlainCodec,
    URLEncodedCodec,
    XMLCodec,
)

# 响应格式化器
from restflex.formatter import (
    BaseResponseFormatter,
    DefaultResponseFormatter,
)

# 传输层
from restflex.transport import (
    BaseTransport,
    RequestsTransport,
    TransportResponse,
)

# 工具函数
from restflex.utils import (
    sanitize_dict,
    sanitize_headers,
    sanitize_url,
)

# 常量配置
from restflex.constants import (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_PLAIN,
    CONTENT_TYPE_URLENCODED,
    CONTENT_TYPE_XML,
    DEFAULT_TIMEOUT,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_GET,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
    HTTP_METHOD_TRACE,
)

__all__ = [
    # 核心类
    "BaseClient",
    "ClientConfig",
    "CommandTable",
    # 异常
    "APIClientError",
    "APIClientAuthError",
    "APIClientHTTPError",
    "APIClientNetworkError",
    "APIClientTimeoutError",
    "APIClientValidationError",
    "DecodeError",
    "EncodeError",
    "MissingMandatoryFieldsError",
    "MissingPathArgumentError",
    "UnknownCommandError",
    # 认证
    "BaseAuthStrategy",
    "NoAuth",
    "BasicAuth",
    "HashKeyAuth",
    "GetParamsAuth",
    "HeaderTokenAuth",
    "OAuth1HeaderAuth",
    "OAuth1ParamsAuth",
    "OAuth1BodyAuth",
    "get_auth_strategy",
    # 编解码
    "BaseCodec",
    "ContentCodec",
    "PlainCodec",
    "URLEncodedCodec",
    "JSONCodec",
    "XMLCodec",
    # 格式化器
    "BaseResponseFormatter",
    "DefaultResponseFormatter",
    # 传输层
    "BaseTransport",
    "RequestsTransport",
    "TransportResponse",
    # 工具函数
    "sanitize_headers",
    "sanitize_url",
    "sanitize_dict",
    # 常量
    "DEFAULT_TIMEOUT",
    "CONTENT_TYPE_PLAIN",
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_XML",
    "CONTENT_TYPE_URLENCODED",
    "HTTP_METHOD_GET",
    "HTTP_METHOD_POST",
    "HTTP_METHOD_PUT",
    "HTTP_METHOD_DELETE",
    "HTTP_METHOD_PATCH",
    "HTTP_METHOD_HEAD",
    "HTTP_METHOD_OPTIONS",
    "HTTP_METHOD_TRACE",
]

__version__ = "0.1.0"
__author__ = "HACK-WU"
