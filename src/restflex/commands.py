"""
命令表模块

命令表是客户端的声明式配置: {命令名: 命令定义}。注册时使用 Django REST framework
序列化器校验每个命令定义，校验通过后冻结为只读映射，流水线只读不写。

命令定义可用的键:
    method                 HTTP 方法，缺省使用客户端 default_method
    path                   路径模板，支持 :name 与 :name? 占位符
    require_id             旧式写法：路径为 /{pre_id_path}/{id}/{post_id_path}
    pre_id_path            require_id 时 id 之前的路径片段
    post_id_path           require_id 时 id 之后的路径片段
    mandatory              必填字段列表，JSON/XML 下支持 a.b.c 形式的嵌套路径
    default_attributes     默认属性，调用参数会覆盖同名属性
    wrapper                包装键，字符串或有序列表（第一个为最外层）
    no_mapping             为 True 时不使用映射表
    headers                命令级请求头，覆盖客户端同名请求头
    content_type           命令级通用内容类型
    incoming_content_type  命令级响应内容类型
    outgoing_content_type  命令级请求内容类型

使用示例:
    >>> table = CommandTable({
    ...     "list_nodes": {"method": "GET"},
    ...     "start_node": {"method": "POST", "require_id": True, "post_id_path": "startup"},
    ... })
    >>> table.lookup("list_nodes")["method"]
    'GET'
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

import django
from django.conf import settings
from rest_framework import serializers

from restflex.constants import HTTP_METHODS
from restflex.exceptions import APIClientValidationError, UnknownCommandError

logger = logging.getLogger(__name__)


def ensure_django_settings() -> None:
    """DRF 序列化器依赖 Django 配置；宿主项目未配置时使用最小配置完成初始化"""
    if not settings.configured:
        settings.configure(USE_I18N=False)
        django.setup()


class WrapperField(serializers.Field):
    """包装键字段：非空字符串或非空字符串列表"""

    default_error_messages = {
        "invalid": "Expected a string or a list of strings.",
    }

    def to_internal_value(self, data):
        if isinstance(data, str) and data:
            return data
        if isinstance(data, (list, tuple)) and data and all(isinstance(item, str) and item for item in data):
            return list(data)
        self.fail("invalid")

    def to_representation(self, value):
        return value


class CommandSerializer(serializers.Serializer):
    """命令定义序列化器"""

    method = serializers.CharField(required=False)
    path = serializers.CharField(required=False)
    require_id = serializers.BooleanField(required=False)
    pre_id_path = serializers.CharField(required=False)
    post_id_path = serializers.CharField(required=False)
    mandatory = serializers.ListField(child=serializers.CharField(), required=False)
    default_attributes = serializers.DictField(required=False)
    wrapper = WrapperField(required=False)
    no_mapping = serializers.BooleanField(required=False)
    headers = serializers.DictField(child=serializers.CharField(), required=False)
    content_type = serializers.CharField(required=False)
    incoming_content_type = serializers.CharField(required=False)
    outgoing_content_type = serializers.CharField(required=False)

    def validate_method(self, value):
        method = value.upper()
        if method not in HTTP_METHODS:
            raise serializers.ValidationError(f"Unsupported HTTP method: {value}")
        return method

    def validate(self, attrs):
        # 拼写错误的键会被静默忽略，这里显式拒绝
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError({key: ["Unknown command option."] for key in unknown})
        return attrs


def _freeze(descriptor: Mapping[str, Any]) -> MappingProxyType:
    frozen: dict[str, Any] = {}
    for key, value in descriptor.items():
        if isinstance(value, Mapping):
            value = MappingProxyType(dict(value))
        elif isinstance(value, list):
            value = tuple(value)
        frozen[key] = value
    return MappingProxyType(frozen)


class CommandTable(Mapping):
    """
    只读命令表

    参数:
        commands: {命令名: 命令定义}

    异常:
        APIClientValidationError: 命令名或命令定义不合法时抛出，errors 为 {命令名: 错误详情}
    """

    serializer_class: type[serializers.Serializer] = CommandSerializer

    def __init__(self, commands: Mapping[str, Mapping[str, Any]] | None = None):
        ensure_django_settings()

        validated: dict[str, MappingProxyType] = {}
        errors: dict[str, Any] = {}
        for name, descriptor in (commands or {}).items():
            if not isinstance(name, str) or not name:
                errors[str(name)] = ["Command name must be a non-empty string."]
                continue

            serializer = self.serializer_class(data=descriptor)
            if not serializer.is_valid():
                errors[name] = serializer.errors
                continue
            validated[name] = _freeze(serializer.validated_data)

        if errors:
            raise APIClientValidationError(f"Invalid command definitions: {', '.join(errors)}", errors=errors)

        self._commands = validated
        logger.debug(f"Registered {len(validated)} commands")

    def __getitem__(self, name: str) -> MappingProxyType:
        return self._commands[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def lookup(self, name: str) -> MappingProxyType:
        """
        查找命令定义

        异常:
            UnknownCommandError: 命令不存在时抛出
        """
        try:
            return self._commands[name]
        except KeyError:
            raise UnknownCommandError(name) from None
