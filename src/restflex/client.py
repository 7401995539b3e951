"""REST API 客户端核心模块

以声明式命令表描述远程 API，客户端负责把命令调用合成为 HTTP 请求：
- 命令查找与路径构建
- 内容类型协商与负载编解码（纯文本、表单、JSON、XML）
- 参数映射、默认属性、必填校验与包装
- 多种认证方式（basic、hash_key、get_params、header、OAuth 1.0a）
- 统一的响应信封与钩子机制

使用示例:
    >>> class NodeAPI(BaseClient):
    ...     base_url = "https://api.example.com/v1"
    ...     auth_type = "hash_key"
    ...     content_type = "application/json"
    ...     commands = {
    ...         "list_nodes": {"method": "GET"},
    ...         "create_node": {"method": "POST", "path": "nodes", "mandatory": ["name"], "wrapper": "node"},
    ...     }
    >>> api = NodeAPI(api_key="secret")
    >>> api.create_node(name="web-1")["code"]
    201
"""

from __future__ import annotations

import functools
import logging
import re
import time
import uuid
from collections.abc import Mapping
from pprint import pformat
from typing import Any, TypeAlias

from restflex.auth import RequestEnvelope, get_auth_strategy
from restflex.codec import ContentCodec
from restflex.commands import CommandTable
from restflex.config import ClientConfig
from restflex.constants import (
    DEFAULT_CONTENT_TYPE,
    EXTENSION_CONTENT_TYPES,
    MAPPABLE_CONTENT_TYPE_PATTERN,
    READ_METHODS,
    RESPONSE_CODE_FORMATTING_ERROR,
    RESPONSE_CODE_NON_HTTP_ERROR,
)
from restflex.exceptions import (
    APIClientError,
    APIClientHTTPError,
    APIClientNetworkError,
    APIClientValidationError,
    DecodeError,
)
from restflex.formatter import BaseResponseFormatter, DefaultResponseFormatter
from restflex.mapper import OptionsMapper
from restflex.path import append_query, build_url
from restflex.transport import BaseTransport, RequestsTransport, TransportResponse
from restflex.utils import (
    DEFAULT_SENSITIVE_HEADERS,
    DEFAULT_SENSITIVE_PARAMS,
    sanitize_dict,
    sanitize_headers,
    sanitize_url,
)

# 类型别名定义
ResponseDict: TypeAlias = dict[str, Any]

logger = logging.getLogger(__name__)


class BaseClient:
    """
    REST API 客户端基类

    子类通过类属性声明命令表与默认配置，构造参数覆盖类属性，合并结果保存为
    self.config（ClientConfig）。每个命令都可以通过 call(name, args) 调用，
    命令名不与已有属性冲突时还会生成同名方法。

    类属性:
        commands: 命令表 {命令名: 命令定义}
        transport_class: 传输层类或实例
        response_formatter_class: 响应格式化器类或实例
        codec_class: 编解码分发器类
        sensitive_headers: 日志脱敏的请求头名称集合
        sensitive_params: 日志脱敏的参数名称集合
        enable_sanitization: 是否启用日志脱敏
        以及 ClientConfig.OPTIONS 中的任意配置项（如 base_url、auth_type）
    """

    # ========== 命令配置 ==========
    # 命令表，键为命令名，值为命令定义，构造时校验并冻结
    commands: dict[str, dict[str, Any]] = {}

    # ========== 可插拔组件配置 ==========
    # 传输层类或实例，类在构造时以 timeout 与 strict_ssl 实例化
    transport_class: type[BaseTransport] | BaseTransport = RequestsTransport

    # 响应格式化器类或实例，默认原样返回标准响应信封
    response_formatter_class: type[BaseResponseFormatter] | BaseResponseFormatter = DefaultResponseFormatter

    # 编解码分发器类，可替换为注册了额外编解码器的子类
    codec_class: type[ContentCodec] = ContentCodec

    # ========== 安全性配置 ==========
    # 敏感请求头名称集合，这些头在日志中会被脱敏
    sensitive_headers: set[str] = DEFAULT_SENSITIVE_HEADERS

    # 敏感参数名称集合，URL 查询参数与负载字段在日志中会被脱敏
    sensitive_params: set[str] = DEFAULT_SENSITIVE_PARAMS

    # 是否启用敏感信息脱敏，默认启用
    enable_sanitization: bool = True

    def __init__(
        self,
        commands: Mapping[str, Mapping[str, Any]] | CommandTable | None = None,
        config: ClientConfig | None = None,
        transport: BaseTransport | type[BaseTransport] | None = None,
        response_formatter: BaseResponseFormatter | type[BaseResponseFormatter] | None = None,
        **options,
    ):
        """
        初始化客户端实例

        参数:
            commands: 命令表（覆盖类级别 commands）
            config: 显式配置对象（覆盖类级别配置项）
            transport: 传输层类或实例（覆盖类级别 transport_class）
            response_formatter: 响应格式化器类或实例（覆盖类级别配置）
            **options: ClientConfig 配置项，优先级最高

        异常:
            APIClientValidationError: 配置项未知、base_url 缺失或命令定义不合法时抛出

        执行步骤:
            1. 合并类属性、config 与 options，生成 ClientConfig
            2. 校验并冻结命令表
            3. 解析传输层、格式化器组件
            4. 初始化钩子
            5. 为命令生成同名方法
        """
        # 步骤1: 配置合并，优先级 类属性 < config < options
        self.config = self._build_config(config, options)
        if not self.config.base_url:
            raise APIClientValidationError("base_url must be set either as class attribute or in constructor")

        # 步骤2: 命令表
        source = commands if commands is not None else type(self).commands
        self.command_table = source if isinstance(source, CommandTable) else CommandTable(source)

        # 步骤3: 可插拔组件
        self.codec = self.codec_class()
        self.transport = self._resolve_component(
            transport,
            "transport_class",
            BaseTransport,
            RequestsTransport,
            timeout=self.config.timeout,
            verify=self.config.strict_ssl,
        )
        self.response_formatter_instance = self._resolve_component(
            response_formatter,
            "response_formatter_class",
            BaseResponseFormatter,
            DefaultResponseFormatter,
        )

        # 步骤4: 钩子
        self._hooks: dict[str, list] = {
            "before_request": [],
            "after_request": [],
            "on_request_error": [],
        }

        # 步骤5: 命令方法
        self._bind_command_methods()

        logger.debug(f"{type(self).__name__} initialized with {len(self.command_table)} commands")

    def _build_config(self, config: ClientConfig | None, options: dict[str, Any]) -> ClientConfig:
        """合并类属性、显式配置对象与构造参数"""
        merged = {name: getattr(type(self), name) for name in ClientConfig.OPTIONS if hasattr(type(self), name)}
        if config is not None:
            merged.update(config.as_dict())
        merged.update(options)
        config_class = type(config) if config is not None else ClientConfig
        return config_class(**merged)

    def _bind_command_methods(self) -> None:
        for name in self.command_table:
            if not name.isidentifier() or hasattr(self, name):
                logger.warning(f"Command '{name}' can not be bound as a method, use call('{name}', ...)")
                continue
            setattr(self, name, functools.partial(self.call, name))

    # ========== 钩子机制 ==========

    def register_hook(self, hook_name: str, callback: callable) -> None:
        """
        注册钩子函数

        参数:
            hook_name: 钩子名称，可选值："before_request", "after_request", "on_request_error"
            callback: 钩子回调函数，第一个参数为客户端实例

        异常:
            ValueError: 当钩子名称不合法时抛出
        """
        if hook_name not in self._hooks:
            raise ValueError(f"Invalid hook name: {hook_name}. Must be one of: {list(self._hooks.keys())}")
        self._hooks[hook_name].append(callback)
        logger.debug(f"Registered hook: {hook_name}")

    def before_request(self, request_id: str, request: RequestEnvelope) -> RequestEnvelope:
        """
        请求发送前的钩子方法

        认证签名已经完成，钩子修改 URL 或请求体会使 OAuth 签名失效，
        适合添加追踪请求头、记录日志等操作。

        参数:
            request_id: 请求唯一标识符
            request: 请求信封

        返回:
            修改后的请求信封；钩子返回值不是字典时保留原请求信封
        """
        for hook in self._hooks["before_request"]:
            try:
                result = hook(self, request_id, request)
            except Exception as e:
                logger.exception(f"[{request_id}] before_request hook failed,{e}")
                continue
            if isinstance(result, dict):
                request = result
            else:
                logger.warning(f"[{request_id}] before_request hook returned {type(result).__name__}, request kept")
        return request

    def after_request(self, request_id: str, response: TransportResponse) -> TransportResponse:
        """
        收到响应后的钩子方法（无论状态码是否成功）

        参数:
            request_id: 请求唯一标识符
            response: 传输层响应

        返回:
            修改后的响应对象；钩子返回值不是 TransportResponse 时保留原响应
        """
        for hook in self._hooks["after_request"]:
            try:
                result = hook(self, request_id, response)
            except Exception:
                logger.exception(f"[{request_id}] after_request hook failed")
                continue
            if isinstance(result, TransportResponse):
                response = result
            else:
                logger.warning(f"[{request_id}] after_request hook returned {type(result).__name__}, response kept")
        return response

    def on_request_error(self, request_id: str, error: Exception) -> None:
        """
        请求失败时的钩子方法

        参数:
            request_id: 请求唯一标识符
            error: 异常对象（流水线异常、网络异常或 APIClientHTTPError）
        """
        for hook in self._hooks["on_request_error"]:
            try:
                hook(self, request_id, error)
            except Exception:
                logger.exception(f"[{request_id}] on_request_error hook failed")

    def _resolve_component(self, component, class_attr_name, base_class, fallback_class, **init_kwargs):
        """
        统一的组件解析方法

        参数:
            component: 传入的组件配置（类或实例）
            class_attr_name: 类属性名称
            base_class: 基类类型
            fallback_class: 类属性配置无效时的降级类
            **init_kwargs: 实例化时的额外参数

        返回:
            组件实例

        异常:
            APIClientValidationError: 组件无法实例化或类型不合法时抛出
        """
        source = component if component is not None else getattr(self, class_attr_name, fallback_class)

        if isinstance(source, type) and issubclass(source, base_class):
            try:
                return source(**init_kwargs)
            except Exception as e:
                raise APIClientValidationError(f"{class_attr_name} instantiation failed: {e}") from e

        if isinstance(source, base_class):
            return source

        if component is None and fallback_class:
            logger.warning(f"Invalid {class_attr_name}: {source}. Using {fallback_class.__name__}.")
            return fallback_class(**init_kwargs)

        raise APIClientValidationError(f"{class_attr_name} must be a {base_class.__name__} subclass or instance")

    # ========== 编解码 ==========

    def encode(self, options: Any, content_type: str, use_custom: bool = False) -> str:
        """
        编码请求负载

        参数:
            options: 待编码数据
            content_type: 发送内容类型
            use_custom: 是否使用配置的自定义 encoder。只有请求流水线传入 True，
                自定义 encoder 内部再调用本方法时会使用内置编码

        异常:
            EncodeError: 编码失败时抛出
        """
        encoder = self.config.encoder if use_custom else None
        return self.codec.encode(options, content_type, encoder=encoder)

    def decode(self, content: str | bytes, content_type: str) -> Any:
        """
        解码响应内容，配置了自定义 decoder 时使用自定义 decoder

        异常:
            DecodeError: 解码失败时抛出
        """
        return self.codec.decode(content, content_type, decoder=self.config.decoder)

    # ========== 请求合成 ==========

    def resolve_content_types(self, descriptor: Mapping[str, Any]) -> dict[str, str]:
        """
        确定响应（in）与请求（out）内容类型

        响应: 命令 incoming_content_type → 命令 content_type → 扩展名推断
              → 客户端 incoming_content_type → 客户端 content_type
        请求: 命令 outgoing_content_type → 命令 content_type
              → 客户端 outgoing_content_type → 客户端 content_type

        都未设置时使用 text/plain
        """
        config = self.config
        incoming = (
            descriptor.get("incoming_content_type")
            or descriptor.get("content_type")
            or EXTENSION_CONTENT_TYPES.get(config.extension or "")
            or config.incoming_content_type
            or config.content_type
            or DEFAULT_CONTENT_TYPE
        )
        outgoing = (
            descriptor.get("outgoing_content_type")
            or descriptor.get("content_type")
            or config.outgoing_content_type
            or config.content_type
            or DEFAULT_CONTENT_TYPE
        )
        return {"in": incoming, "out": outgoing}

    def build_request(self, command: str, options: dict[str, Any], request_id: str = "") -> RequestEnvelope:
        """
        把命令调用合成为请求信封

        参数:
            command: 命令名称
            options: 调用参数（会被修改）
            request_id: 请求唯一标识符，用于日志追踪

        返回:
            请求信封 {command, method, url, headers, options, body, form_body, content_type}

        异常:
            UnknownCommandError: 命令不存在
            MissingPathArgumentError: 缺少路径参数
            MissingMandatoryFieldsError: 缺少必填字段
            EncodeError: 负载编码失败
            APIClientAuthError: 认证签名失败

        执行步骤:
            1. 查找命令定义，确定 HTTP 方法
            2. 构建 URL，消费路径参数
            3. 确定内容类型
            4. 按需执行参数映射
            5. 合并请求头
            6. 认证预处理、放置参数、认证签名
        """
        config = self.config

        # 步骤1: 命令查找
        descriptor = self.command_table.lookup(command)
        method = (descriptor.get("method") or config.default_method).upper()

        # 步骤2: URL 与路径参数
        url = build_url(config.base_url, command, descriptor, options, config.extension)

        # 步骤3: 内容类型
        content_type = self.resolve_content_types(descriptor)

        # 步骤4: 参数映射
        if (
            (options and re.search(MAPPABLE_CONTENT_TYPE_PATTERN, content_type["out"]))
            or "default_attributes" in descriptor
            or "mandatory" in descriptor
        ):
            self._trace(request_id, f"mapping: {pformat(config.mapping)}")
            mapper = OptionsMapper(config.mapping, map_values=config.map_values)
            options = mapper.apply(options, descriptor, content_type["in"], method, wrapper=config.wrapper)
            self._trace(request_id, f"mapped options: {pformat(self._sanitize_data(options))}")

        # 步骤5: 请求头，命令级覆盖客户端级，Accept 最后写入
        headers = {"User-Agent": config.user_agent}
        headers.update(config.headers or {})
        headers.update(descriptor.get("headers") or {})
        headers["Accept"] = content_type["in"]

        request: RequestEnvelope = {
            "command": command,
            "method": method,
            "url": url,
            "headers": headers,
            "options": options,
            "body": None,
            "form_body": False,
            "content_type": content_type,
        }

        # 步骤6: 认证
        strategy = get_auth_strategy(config.auth_type)
        strategy.prepare(self, request)
        self._place_options(request_id, request)
        strategy.authenticate(self, request)
        return request

    def _place_options(self, request_id: str, request: RequestEnvelope) -> None:
        """读类型方法把参数追加到查询字符串，其它方法按发送内容类型编码为请求体"""
        options = request["options"]
        if request["method"] in READ_METHODS:
            if options:
                request["url"] = append_query(request["url"], options)
            return

        # OAuth 已把参数编码为表单请求体
        if request["form_body"]:
            return

        outgoing = request["content_type"]["out"]
        request["headers"]["Content-Type"] = outgoing
        if options:
            request["body"] = self.encode(options, outgoing, use_custom=True)
            self._trace(request_id, f"send payload: {request['body']}")

    # ========== 请求执行 ==========

    def _make_request(self, request_id: str, request: RequestEnvelope) -> TransportResponse:
        """
        通过传输层发送请求

        执行步骤:
            1. 调用 before_request 钩子
            2. 记录请求日志（脱敏）
            3. 发送请求，调用 after_request 钩子
            4. 状态码不是 2xx/3xx 时调用 on_request_error 钩子（不抛出异常）

        异常:
            APIClientNetworkError: 网络连接失败
            APIClientTimeoutError: 请求超时
        """
        request = self.before_request(request_id, request)

        method = request["method"]
        url = request["url"]
        safe_url = sanitize_url(url, self.sensitive_params) if self.enable_sanitization else url
        logger.info(f"[{request_id}] Starting {method} request to {safe_url}")

        if logger.isEnabledFor(logging.DEBUG) or self.config.debug:
            safe_headers = (
                sanitize_headers(request["headers"], self.sensitive_headers)
                if self.enable_sanitization
                else request["headers"]
            )
            self._trace(request_id, f"uri: {method} {safe_url}", always=True)
            self._trace(request_id, f"headers: {safe_headers}", always=True)

        response = self.transport.send(method, url, request["headers"], request["body"])
        response = self.after_request(request_id, response)

        logger.info(f"[{request_id}] Received {response.status_code} response")
        self._trace(request_id, f"recv payload: {response.text}")

        if not response.ok:
            error = APIClientHTTPError(f"request failed: {response.status_line}", response=response)
            logger.error(f"[{request_id}] Request failed: {error}")
            self.on_request_error(request_id, error)

        return response

    def _parse_response(
        self, request_id: str, request: RequestEnvelope, response: TransportResponse
    ) -> tuple[Any, Exception | None]:
        """
        解码响应内容

        优先使用响应头中的 Content-Type，缺失时使用请求的响应内容类型。
        空响应体解码为 None。

        返回:
            (解码后的数据, 解码错误)
        """
        if not response.content:
            return None, None

        content_type = response.headers.get("Content-Type") or request["content_type"]["in"]
        try:
            logger.debug(f"[{request_id}] Decoding response as {content_type}")
            return self.decode(response.text, content_type), None
        except DecodeError as e:
            logger.error(f"[{request_id}] Response decoding failed: {e}")
            return None, e

    def call(self, command: str, args: Mapping[str, Any] | None = None, **kwargs) -> ResponseDict:
        """
        调用命令

        参数:
            command: 命令名称
            args: 调用参数字典（可选）
            **kwargs: 调用参数，与 args 合并，同名时以 kwargs 为准

        返回:
            响应信封 {header, code, content, raw, error?}；请求发出之前失败时只有 error

        执行步骤:
            1. 合成请求信封
            2. 发送请求并解码响应，捕获流水线异常
            3. 整理为标准响应信封
            4. 使用格式化器处理响应信封，格式化失败时降级
        """
        request_id = self.generate_request_id(command)
        options = {**(args or {}), **kwargs}

        request: RequestEnvelope | None = None
        parsed_data: Any = None
        parse_error: Exception | None = None

        # 步骤1-2: 合成、发送与解码
        try:
            request = self.build_request(command, options, request_id)
            response_or_exception = self._make_request(request_id, request)
            parsed_data, parse_error = self._parse_response(request_id, request, response_or_exception)
        except APIClientError as e:
            logger.error(f"[{request_id}] Command '{command}' failed: {e}")
            self.on_request_error(request_id, e)
            response_or_exception = e

        # 步骤3: 标准响应信封
        formated_response = self.default_format_response(response_or_exception, parsed_data, parse_error)

        # 步骤4: 格式化器
        try:
            formated_response = self.response_formatter_instance.format(
                **{
                    "formated_response": formated_response,
                    "command": command,
                    "request_id": request_id,
                    "request": request,
                    "response_or_exception": response_or_exception,
                    "base_client_instance": self,
                }
            )
        except Exception as format_error:
            logger.error(f"[{request_id}] Response formatting failed: {format_error}")
            formated_response = {
                "code": RESPONSE_CODE_FORMATTING_ERROR,
                "error": f"Formatting failed: {format_error}",
            }

        self._trace(request_id, f"response:\n{pformat(self._sanitize_data(formated_response))}")
        return formated_response

    def generate_request_id(self, suffix=None) -> str:
        """生成全局唯一的请求 ID"""
        timestamp = int(time.time() * 1000)  # 毫秒级时间戳
        short_uuid = uuid.uuid4().hex[:8]
        if suffix is None:
            return f"REQ-{timestamp}-{short_uuid}"
        return f"REQ-{timestamp}-{short_uuid}-{suffix}"

    def default_format_response(
        self,
        response_or_exception: TransportResponse | APIClientError,
        parsed_data: Any = None,
        parse_error: Exception | None = None,
    ) -> ResponseDict:
        """
        将传输层响应或流水线异常整理为标准响应信封

        参数:
            response_or_exception: 传输层响应，或请求合成/发送阶段的异常
            parsed_data: 已解码的响应内容
            parse_error: 解码错误（如果有）

        返回值:
            dict[str, Any]: 标准响应信封
                - header (dict): 响应头
                - code (int): HTTP 状态码，网络错误时为 -1
                - content (Any): 解码后的响应内容，解码失败时为原始文本
                - raw (bytes): 原始响应体
                - error (str): 仅在失败时出现

        处理规则:
        1. HTTP 响应：解码失败时 content 为原始文本并记录 error
        2. 状态码不是 2xx/3xx 时 error 为 "request failed: <状态行>"，content 仍为解码结果
        3. 网络异常：{code: -1, error}
        4. 请求发出之前的异常：只有 error
        """
        if isinstance(response_or_exception, TransportResponse):
            response = response_or_exception
            formated_response: dict[str, Any] = {
                "header": dict(response.headers),
                "code": response.status_code,
                "content": parsed_data,
                "raw": response.content,
            }
            if parse_error is not None:
                formated_response["content"] = response.text
                formated_response["error"] = str(parse_error)
            if not response.ok:
                formated_response["error"] = f"request failed: {response.status_line}"
            return formated_response

        if isinstance(response_or_exception, APIClientNetworkError):
            return {"code": RESPONSE_CODE_NON_HTTP_ERROR, "error": str(response_or_exception)}

        return {"error": str(response_or_exception)}

    # ========== 日志辅助 ==========

    def _trace(self, request_id: str, message: str, always: bool = False) -> None:
        """debug 模式下以 INFO 级别输出请求合成各阶段的跟踪日志"""
        if self.config.debug:
            logger.info(f"[{request_id}] {message}")
        elif always:
            logger.debug(f"[{request_id}] {message}")

    def _sanitize_data(self, data: Any) -> Any:
        if not self.enable_sanitization:
            return data
        return sanitize_dict(data, self.sensitive_headers | self.sensitive_params)

    # ========== 资源管理 ==========

    def close(self):
        """关闭传输层，释放连接池资源"""
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
