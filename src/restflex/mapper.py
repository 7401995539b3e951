"""
请求参数映射模块

负责在编码前处理调用参数:
1. 校验必填字段（JSON/XML 支持点号分隔的嵌套路径）
2. 合并命令的默认属性
3. 按映射表重命名键、转换值
4. 按包装键嵌套参数
"""

from __future__ import annotations

import logging
import re
from collections.abc import Hashable, Mapping
from typing import Any

from restflex.constants import NESTED_CONTENT_TYPE_PATTERN, READ_METHODS
from restflex.exceptions import MissingMandatoryFieldsError

logger = logging.getLogger(__name__)


def has_path(options: Mapping[str, Any], field: str) -> bool:
    """
    判断点号路径是否存在

    路径上的每一级都必须是字典且包含对应键；叶子值可以是任意值（包括 None、0、""）

    示例:
        >>> has_path({"a": {"b": 0}}, "a.b")
        True
        >>> has_path({"a": 1}, "a.b")
        False
    """
    node: Any = options
    for bit in field.split("."):
        if not isinstance(node, Mapping) or bit not in node:
            return False
        node = node[bit]
    return True


def find_missing_fields(options: Mapping[str, Any], fields: list[str], content_type: str | None) -> list[str]:
    """
    查找缺失的必填字段

    参数:
        options: 调用参数
        fields: 必填字段列表
        content_type: 内容类型；包含 json/xml 时按点号路径查找，否则只查顶层键

    返回:
        缺失字段列表，保持 fields 中的顺序，为空表示校验通过
    """
    if content_type and re.search(NESTED_CONTENT_TYPE_PATTERN, content_type):
        return [field for field in fields if not has_path(options, field)]
    return [field for field in fields if field not in options]


def wrap(options: Any, wrapper: str | list[str] | tuple[str, ...] | None, content_type: str | None = None) -> Any:
    """
    将参数嵌套到包装键下

    参数:
        options: 参数字典
        wrapper: 单个包装键或有序包装键列表（第一个为最外层）
        content_type: 内容类型；XML 时每一层额外包一层单元素列表

    返回:
        包装后的参数

    示例:
        >>> wrap({"a": 1}, ["x", "y"])
        {'x': {'y': {'a': 1}}}
    """
    if isinstance(wrapper, (list, tuple)):
        is_xml = bool(content_type) and "xml" in content_type
        for key in reversed(wrapper):
            options = {key: [options]} if is_xml else {key: options}
    elif wrapper is not None:
        options = {wrapper: options}
    return options


class OptionsMapper:
    """
    参数映射器

    一张映射表同时用于两种查找：键重命名（map_key）与值转换（map_value）。
    两种查找相互独立，调用方的值如果恰好等于某个用于重命名的键，也会被转换，
    需要关闭值转换时设置 map_values=False。

    参数:
        mapping: 映射表 {原键或原值: 新键或新值}
        map_values: 是否启用值转换
    """

    def __init__(self, mapping: Mapping[Any, Any] | None = None, map_values: bool = True):
        self.mapping = dict(mapping or {})
        self.map_values = map_values

    def map_key(self, key: str) -> str:
        """按映射表重命名键，未命中时返回原键"""
        return self.mapping.get(key, key)

    def map_value(self, value: Any) -> Any:
        """按映射表转换值，只对可哈希的标量生效，未命中时返回原值"""
        if not self.map_values or isinstance(value, (dict, list, tuple, set)) or not isinstance(value, Hashable):
            return value
        return self.mapping.get(value, value)

    def apply(
        self,
        options: Mapping[str, Any],
        descriptor: Mapping[str, Any],
        content_type: str | None,
        method: str,
        wrapper: str | list[str] | None = None,
    ) -> dict[str, Any] | Any:
        """
        对调用参数执行完整的映射流程

        参数:
            options: 调用参数（路径参数已被移除）
            descriptor: 命令定义
            content_type: 用于必填校验与包装的内容类型
            method: HTTP 方法，读类型方法不做包装
            wrapper: 客户端全局包装键，命令未定义 wrapper 时使用

        返回:
            映射后的参数

        异常:
            MissingMandatoryFieldsError: 缺少必填字段时抛出

        执行步骤:
            1. 校验必填字段，收集全部缺失项
            2. 以默认属性为基础
            3. 按映射表转换或原样覆盖调用参数
            4. 非读类型方法按包装键嵌套
        """
        # 步骤1: 校验必填字段
        mandatory = list(descriptor.get("mandatory") or [])
        if mandatory:
            logger.debug(f"Mandatory keys: {mandatory}")
            missing = find_missing_fields(options, mandatory, content_type)
            if missing:
                raise MissingMandatoryFieldsError(missing)

        # 步骤2: 默认属性视为已映射的键值
        mapped: dict[str, Any] = dict(descriptor.get("default_attributes") or {})

        # 步骤3: 映射调用参数并覆盖默认属性
        if self.mapping and not descriptor.get("no_mapping"):
            for key, value in options.items():
                mapped[self.map_key(key)] = self.map_value(value)
        else:
            mapped.update(options)

        # 步骤4: 包装
        if method.upper() in READ_METHODS:
            return mapped

        effective_wrapper = descriptor.get("wrapper") or wrapper
        return wrap(mapped, effective_wrapper, content_type)
