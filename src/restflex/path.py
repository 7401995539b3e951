"""
请求路径构建模块

根据命令定义解析请求路径:
- 路径模板: ``nodes/:id/disks/:disk_id?``，``:name`` 为必填占位符，``:name?`` 为可选占位符
- 旧式 require_id: ``/{pre_id_path}/{id}/{post_id_path}``
- 默认: ``/{command_name}``

已使用的参数会从参数字典中移除，剩余参数继续进入参数映射流程。
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, MutableMapping
from typing import Any
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from restflex.exceptions import MissingPathArgumentError

logger = logging.getLogger(__name__)

# 匹配占位符及其前导分隔符；\w+ 贪婪匹配，因此 :id 不会误匹配 :id_type 的前缀
PLACEHOLDER_PATTERN = re.compile(r"(/?):(\w+)(\?)?")


def encode_path_segment(value: Any) -> str:
    """对路径片段进行百分号编码，只保留 RFC 3986 非保留字符"""
    return quote(str(value), safe="")


def render_path_template(template: str, args: MutableMapping[str, Any]) -> str:
    """
    渲染路径模板中的占位符

    参数:
        template: 路径模板，如 "multi-level/:id/:class?"
        args: 调用参数，已使用的参数会被移除

    返回:
        渲染后的路径

    异常:
        MissingPathArgumentError: 必填占位符缺少对应参数时抛出

    示例:
        >>> render_path_template("multi-level/:id/:class?", {"id": "foo"})
        'multi-level/foo'
    """

    def replace(match: re.Match) -> str:
        separator, name, optional = match.groups()
        if name not in args:
            if optional:
                # 可选占位符缺失时连同前导分隔符一起移除
                return ""
            raise MissingPathArgumentError(name)
        return separator + encode_path_segment(args.pop(name))

    return PLACEHOLDER_PATTERN.sub(replace, template)


def build_path(command_name: str, descriptor: Mapping[str, Any], args: MutableMapping[str, Any]) -> str:
    """
    构建命令对应的相对路径（以 / 开头，不含扩展名）

    参数:
        command_name: 命令名称
        descriptor: 命令定义
        args: 调用参数，路径参数会被移除

    返回:
        相对路径

    异常:
        MissingPathArgumentError: 缺少路径参数时抛出
    """
    template = descriptor.get("path")
    if template:
        return "/" + render_path_template(template.lstrip("/"), args)

    if descriptor.get("require_id"):
        if "id" not in args:
            raise MissingPathArgumentError("id")
        segments = [
            descriptor.get("pre_id_path"),
            encode_path_segment(args.pop("id")),
            descriptor.get("post_id_path"),
        ]
        return "".join(f"/{segment}" for segment in segments if segment)

    return f"/{command_name}"


def build_url(
    base_url: str,
    command_name: str,
    descriptor: Mapping[str, Any],
    args: MutableMapping[str, Any],
    extension: str = "",
) -> str:
    """
    构建完整请求 URL

    基础 URL 自身的路径作为前缀保留（去掉末尾的 /），查询字符串原样保留。

    参数:
        base_url: API 基础 URL，可包含路径
        command_name: 命令名称
        descriptor: 命令定义
        args: 调用参数，路径参数会被移除
        extension: 全局扩展名，如 "json"

    返回:
        完整 URL
    """
    parts = urlsplit(base_url)
    path = parts.path.rstrip("/") + build_path(command_name, descriptor, args)
    if extension:
        path += f".{extension}"

    url = urlunsplit(parts._replace(path=path))
    logger.debug(f"Built url for command '{command_name}': {path}")
    return url


def append_query(url: str, params: Mapping[str, Any] | list[tuple[str, Any]]) -> str:
    """
    向 URL 追加查询参数，保留已有查询字符串

    参数:
        url: 原始 URL
        params: 查询参数字典或键值对列表；None 值编码为空字符串，列表值展开为重复参数

    返回:
        追加参数后的 URL
    """
    items = params.items() if isinstance(params, Mapping) else params
    pairs = []
    for key, value in items:
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend((key, "" if item is None else item) for item in values)
    if not pairs:
        return url

    parts = urlsplit(url)
    query = urlencode(pairs, quote_via=quote)
    return urlunsplit(parts._replace(query=f"{parts.query}&{query}" if parts.query else query))
