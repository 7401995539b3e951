"""XML 与字典互相转换模块

用于请求负载编码与响应内容解码:
- 解码保留根元素（结果字典的唯一顶层键为根元素名），属性转换为普通键，
  同名子元素合并为列表，既有子元素/属性又有文本时文本放在 ``content`` 键下
- 编码不输出属性，所有键都生成子元素；列表生成同名兄弟元素
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

# 混合内容元素中文本内容使用的键名
CONTENT_KEY = "content"

# 顶层字典无法确定唯一根元素时使用的默认根元素名
DEFAULT_ROOT_NAME = "opt"


def xml_to_dict(xml_text: str | bytes) -> dict[str, Any]:
    """
    将 XML 文本解析为字典

    参数:
        xml_text: XML 字符串或字节串

    返回:
        以根元素名为唯一顶层键的字典

    异常:
        ET.ParseError: XML 格式不正确时抛出
    """
    root = ET.fromstring(xml_text)
    return {_strip_ns(root.tag): _element_to_value(root)}


def _strip_ns(tag: str) -> str:
    """移除命名空间前缀: ``{http://...}Name`` -> ``Name``"""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_value(element: ET.Element) -> dict[str, Any] | str | None:
    """
    递归转换单个元素

    转换规则:
        - 属性 -> 同名键（跳过 xmlns 声明）
        - 子元素 -> 按标签名分组，出现多次时为列表
        - 仅含文本的叶子元素 -> 字符串
        - 空元素 -> None
    """
    result: dict[str, Any] = {}

    for attr_name, attr_value in element.attrib.items():
        if attr_name.startswith("xmlns") or attr_name.startswith("{"):
            continue
        result[attr_name] = attr_value

    children_by_tag: dict[str, list[Any]] = {}
    for child in element:
        children_by_tag.setdefault(_strip_ns(child.tag), []).append(_element_to_value(child))

    for tag, values in children_by_tag.items():
        result[tag] = values if len(values) > 1 else values[0]

    text = (element.text or "").strip()
    if text:
        if not result:
            return text
        result[CONTENT_KEY] = text

    if not result:
        return None

    return result


def dict_to_xml(data: Any) -> str:
    """
    将字典编码为 XML 字符串（不含 XML 声明）

    只有一个顶层键的字典以该键为根元素；其它字典放在默认根元素 ``opt`` 下。
    根元素值为单元素列表时（多层包装键的 XML 形式）直接取其唯一元素。

    参数:
        data: 待编码的字典

    返回:
        XML 字符串

    异常:
        ValueError: 数据不是字典，或根元素值是多元素列表时抛出
    """
    if not isinstance(data, dict):
        raise ValueError(f"dict_to_xml expects a dict, got {type(data).__name__}")

    if len(data) == 1:
        root_tag, root_value = next(iter(data.items()))
        if isinstance(root_value, list):
            if len(root_value) != 1:
                raise ValueError(f"root element '{root_tag}' cannot hold {len(root_value)} values")
            root_value = root_value[0]
    else:
        root_tag, root_value = DEFAULT_ROOT_NAME, data

    return ET.tostring(_value_to_element(root_tag, root_value), encoding="unicode")


def _value_to_element(tag: str, value: Any) -> ET.Element:
    """递归构建元素：字典生成子元素，列表生成同名兄弟元素，None 生成空元素"""
    element = ET.Element(tag)

    if value is None:
        pass
    elif isinstance(value, dict):
        for key, child_value in value.items():
            if key == CONTENT_KEY and not isinstance(child_value, (dict, list)):
                element.text = _scalar_text(child_value)
                continue
            if isinstance(child_value, (list, tuple)):
                for item in child_value:
                    element.append(_value_to_element(str(key), item))
            else:
                element.append(_value_to_element(str(key), child_value))
    elif isinstance(value, (list, tuple)):
        for item in value:
            element.append(_value_to_element("item", item))
    else:
        element.text = _scalar_text(value)

    return element


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
