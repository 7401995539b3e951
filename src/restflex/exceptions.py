"""
REST 客户端异常模块

定义请求合成流水线中各阶段的异常类。流水线内部通过抛出异常短路后续阶段，
BaseClient.call() 统一捕获并转换为带 error 字段的响应信封，异常不会逃逸到调用方。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restflex.transport import TransportResponse


class APIClientError(Exception):
    """
    API 客户端异常基类

    所有自定义异常的基类，用于统一捕获和处理客户端相关错误
    """


class UnknownCommandError(APIClientError):
    """
    未知命令异常

    当调用的命令名称不在命令表中时抛出

    参数:
        command: 命令名称
    """

    def __init__(self, command: str):
        super().__init__(f"unknown command: {command}")
        self.command = command


class MissingPathArgumentError(APIClientError):
    """
    路径参数缺失异常

    当路径模板中的必填占位符（或旧式 require_id 的 id）没有对应参数时抛出

    参数:
        name: 缺失的参数名
    """

    def __init__(self, name: str):
        super().__init__(f"required {{{name}}} attribute missing")
        self.name = name


class MissingMandatoryFieldsError(APIClientError):
    """
    必填字段缺失异常

    参数:
        fields: 缺失字段列表（保持命令定义中的顺序）
    """

    def __init__(self, fields: list[str]):
        super().__init__("mandatory attributes for this command missing: " + ", ".join(fields))
        self.fields = list(fields)


class EncodeError(APIClientError):
    """
    请求负载编码异常

    参数:
        message: 错误描述信息（包含内容类型与输入数据的调试输出）
        content_type: 编码时使用的内容类型
    """

    def __init__(self, message: str, content_type: str | None = None):
        super().__init__(message)
        self.content_type = content_type


class DecodeError(APIClientError):
    """
    响应内容解码异常

    参数:
        message: 错误描述信息（包含内容类型与输入数据的调试输出）
        content_type: 解码时使用的内容类型
    """

    def __init__(self, message: str, content_type: str | None = None):
        super().__init__(message)
        self.content_type = content_type


class APIClientHTTPError(APIClientError):
    """
    HTTP 错误响应异常

    当服务器返回非 2xx/3xx 状态码时使用

    参数:
        message: 错误描述信息
        response: 传输层响应对象（可选）

    属性:
        response: 保存原始响应对象，便于获取详细错误信息
        status_code: HTTP 状态码
    """

    def __init__(self, message: str, response: TransportResponse | None = None):
        super().__init__(message)
        self.response = response
        self.status_code = response.status_code if response is not None else None


class APIClientNetworkError(APIClientError):
    """
    网络连接异常

    当网络连接失败、DNS 解析失败等网络层面问题时抛出此异常
    """


class APIClientTimeoutError(APIClientNetworkError):
    """
    请求超时异常

    当请求执行时间超过设定的超时时间时抛出此异常
    """


class APIClientValidationError(APIClientError):
    """
    配置验证异常

    当客户端配置、命令表等输入数据验证失败时抛出此异常（构造阶段抛出）

    参数:
        message: 错误描述信息
        errors: 验证错误详情字典（可选），格式为 {command_name: {field: [messages]}}
    """

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class APIClientAuthError(APIClientError):
    """
    认证异常

    当认证信息不完整或签名失败（如 OAuth 缺少 consumer key）时抛出此异常
    """
