"""
认证策略模块

每种认证方式实现为一个策略类，在请求合成流水线中分两个阶段修改请求信封:
- prepare: 编码之前执行，可以修改调用参数或 URL
- authenticate: 编码之后执行，可以修改 URL、请求头或请求体（OAuth 签名在此阶段完成）

请求信封为字典，包含 method、url、headers、options、body、form_body 等键。

使用示例:
    >>> class MyAPIClient(BaseClient):
    ...     base_url = "https://api.example.com"
    ...     auth_type = "oauth_header"
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit, urlunsplit

from oauthlib.common import UNICODE_ASCII_CHARACTER_SET, generate_token
from oauthlib.oauth1 import (
    SIGNATURE_TYPE_AUTH_HEADER,
    SIGNATURE_TYPE_BODY,
    SIGNATURE_TYPE_QUERY,
    Client as OAuth1Client,
)

from restflex.constants import (
    AUTH_TYPE_BASIC,
    AUTH_TYPE_GET_PARAMS,
    AUTH_TYPE_HASH_KEY,
    AUTH_TYPE_HEADER,
    AUTH_TYPE_NONE,
    AUTH_TYPE_OAUTH_BODY,
    AUTH_TYPE_OAUTH_HEADER,
    AUTH_TYPE_OAUTH_PARAMS,
    CONTENT_TYPE_URLENCODED,
    HTTP_METHOD_POST,
    OAUTH_NONCE_LENGTH,
)
from restflex.exceptions import APIClientAuthError
from restflex.path import append_query

if TYPE_CHECKING:
    from restflex.client import BaseClient

logger = logging.getLogger(__name__)

# 请求信封类型：{command, method, url, headers, options, body, form_body, content_type}
RequestEnvelope = dict[str, Any]


def generate_nonce(length: int = OAUTH_NONCE_LENGTH) -> str:
    """生成 OAuth nonce：指定长度的随机字母数字字符串，每个请求重新生成"""
    return generate_token(length, UNICODE_ASCII_CHARACTER_SET)


def is_form_encodable(options: Any) -> bool:
    """判断参数能否表单编码：字典且所有值都是标量"""
    if not isinstance(options, Mapping):
        return False
    return not any(isinstance(value, (Mapping, list, tuple, set)) for value in options.values())


class BaseAuthStrategy(ABC):
    """认证策略基类"""

    name: str = ""

    def prepare(self, client_instance: BaseClient, request: RequestEnvelope) -> None:
        """编码前修改请求信封，默认不做处理"""

    @abstractmethod
    def authenticate(self, client_instance: BaseClient, request: RequestEnvelope) -> None:
        """编码后修改请求信封"""


class NoAuth(BaseAuthStrategy):
    name = AUTH_TYPE_NONE

    def authenticate(self, client_instance, request):
        return None


class BasicAuth(BaseAuthStrategy):
    """将 user:api_key 写入 URL 的 user-info 部分"""

    name = AUTH_TYPE_BASIC

    def prepare(self, client_instance, request):
        config = client_instance.config
        parts = urlsplit(request["url"])
        host = parts.netloc.rpartition("@")[2]
        userinfo = f"{quote(config.user or '', safe='')}:{quote(config.api_key or '', safe='')}"
        request["url"] = urlunsplit(parts._replace(netloc=f"{userinfo}@{host}"))

    def authenticate(self, client_instance, request):
        return None


class HashKeyAuth(BaseAuthStrategy):
    """将 api_key 放入调用参数的 api_key_field 字段，随请求体（或查询字符串）发送"""

    name = AUTH_TYPE_HASH_KEY

    def prepare(self, client_instance, request):
        config = client_instance.config
        options = request.get("options")
        if options is None:
            options = {}
        if not isinstance(options, dict):
            logger.warning(f"hash_key auth needs mapping options, got {type(options).__name__}")
            return
        options[config.api_key_field] = config.api_key
        request["options"] = options

    def authenticate(self, client_instance, request):
        return None


class GetParamsAuth(BaseAuthStrategy):
    """将 user 与 api_key 作为查询参数发送，参数名可通过映射表改写"""

    name = AUTH_TYPE_GET_PARAMS

    def prepare(self, client_instance, request):
        config = client_instance.config
        mapping = config.mapping or {}
        request["url"] = append_query(
            request["url"],
            [
                (mapping.get("user") or "user", config.user),
                (mapping.get("api_key") or "api_key", config.api_key),
            ],
        )

    def authenticate(self, client_instance, request):
        return None


class HeaderTokenAuth(BaseAuthStrategy):
    """通过 Authorization: Token token=<api_key> 请求头认证"""

    name = AUTH_TYPE_HEADER

    def authenticate(self, client_instance, request):
        request["headers"]["Authorization"] = f"Token token={client_instance.config.api_key}"


class OAuth1Auth(BaseAuthStrategy):
    """
    OAuth 1.0a 认证基类

    每个请求创建新的 oauthlib Client，使用新的 nonce 与时间戳进行签名。
    POST 请求在启用 oauth_post_body（或使用 oauth_body 方式）时，调用参数以
    表单编码作为请求体参与签名，并优先于按内容类型编码的负载。
    表单只能表示扁平的键值对，参数经过包装或含有嵌套值时不使用表单请求体，
    负载按发送内容类型编码，签名不包含请求体参数。
    """

    signature_type: str = SIGNATURE_TYPE_AUTH_HEADER

    def uses_post_body(self, client_instance, request) -> bool:
        return request["method"] == HTTP_METHOD_POST and bool(client_instance.config.oauth_post_body)

    def prepare(self, client_instance, request):
        if not self.uses_post_body(client_instance, request):
            return
        options = request.get("options") or {}
        if not is_form_encodable(options):
            logger.warning("OAuth form body skipped: options are not flat key-value pairs, signing without body")
            return
        request["body"] = client_instance.codec.encode(options, CONTENT_TYPE_URLENCODED)
        request["headers"]["Content-Type"] = CONTENT_TYPE_URLENCODED
        request["form_body"] = True

    def get_signature_type(self, request: RequestEnvelope) -> str:
        return self.signature_type

    def build_client(self, client_instance, signature_type: str) -> OAuth1Client:
        config = client_instance.config
        return OAuth1Client(
            config.api_key,
            client_secret=config.consumer_secret,
            resource_owner_key=config.access_token,
            resource_owner_secret=config.access_secret,
            signature_method=config.signature_method,
            signature_type=signature_type,
            nonce=generate_nonce(),
            timestamp=str(int(time.time())),
        )

    def authenticate(self, client_instance, request):
        """
        计算签名并写回请求信封

        执行步骤:
            1. 确定签名方式（请求头 / 查询参数 / 请求体）
            2. 表单请求体参与签名，其它请求体不参与
            3. 用签名结果更新 URL、请求头与请求体

        异常:
            APIClientAuthError: 凭据缺失或签名失败时抛出
        """
        signature_type = self.get_signature_type(request)
        oauth_client = self.build_client(client_instance, signature_type)

        if request.get("form_body"):
            body = request["body"]
            headers = {"Content-Type": CONTENT_TYPE_URLENCODED}
        else:
            body = None
            headers = {}

        try:
            url, signed_headers, signed_body = oauth_client.sign(
                request["url"], http_method=request["method"], body=body, headers=headers
            )
        except (ValueError, TypeError) as e:
            raise APIClientAuthError(f"OAuth signing failed: {e}") from e

        request["url"] = url
        request["headers"].update(signed_headers)
        if request.get("form_body"):
            request["body"] = signed_body


class OAuth1HeaderAuth(OAuth1Auth):
    name = AUTH_TYPE_OAUTH_HEADER
    signature_type = SIGNATURE_TYPE_AUTH_HEADER


class OAuth1ParamsAuth(OAuth1Auth):
    name = AUTH_TYPE_OAUTH_PARAMS
    signature_type = SIGNATURE_TYPE_QUERY


class OAuth1BodyAuth(OAuth1Auth):
    """OAuth 参数放在表单请求体中；非 POST 请求没有请求体，改为放在查询参数中"""

    name = AUTH_TYPE_OAUTH_BODY
    signature_type = SIGNATURE_TYPE_BODY

    def uses_post_body(self, client_instance, request) -> bool:
        return request["method"] == HTTP_METHOD_POST

    def get_signature_type(self, request: RequestEnvelope) -> str:
        return SIGNATURE_TYPE_BODY if request.get("form_body") else SIGNATURE_TYPE_QUERY


# 认证方式名称 -> 策略类
AUTH_STRATEGIES: dict[str, type[BaseAuthStrategy]] = {
    strategy.name: strategy
    for strategy in (
        NoAuth,
        BasicAuth,
        HashKeyAuth,
        GetParamsAuth,
        HeaderTokenAuth,
        OAuth1HeaderAuth,
        OAuth1ParamsAuth,
        OAuth1BodyAuth,
    )
}


def get_auth_strategy(auth_type: str | BaseAuthStrategy | type[BaseAuthStrategy] | None) -> BaseAuthStrategy:
    """
    解析认证配置，返回认证策略实例

    参数:
        auth_type: 认证方式名称（不区分大小写）、策略类或策略实例

    返回:
        BaseAuthStrategy 实例；不支持的名称记录警告并返回 NoAuth
    """
    if isinstance(auth_type, BaseAuthStrategy):
        return auth_type
    if isinstance(auth_type, type) and issubclass(auth_type, BaseAuthStrategy):
        return auth_type()

    name = (auth_type or AUTH_TYPE_NONE).lower()
    strategy_class = AUTH_STRATEGIES.get(name)
    if strategy_class is None:
        logger.warning(f"auth_type {auth_type} not supported yet")
        return NoAuth()
    return strategy_class()
