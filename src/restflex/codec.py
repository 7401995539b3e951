"""
负载编解码器模块

提供按内容类型选择的编解码器，支持 plain、URL 编码、JSON、XML 四种格式，
并允许通过自定义 encoder/decoder 完全替换内置分发逻辑
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pprint import pformat
from typing import Any, Callable
from urllib.parse import quote, unquote

from restflex.exceptions import DecodeError, EncodeError
from restflex.xml_body import dict_to_xml, xml_to_dict

logger = logging.getLogger(__name__)

# 自定义编解码函数签名: (value, content_type) -> result
CodecHook = Callable[[Any, str], Any]


def _to_text(payload: str | bytes) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8")
    return payload


class BaseCodec(ABC):
    """编解码器基类，按内容类型中包含的关键字匹配"""

    # 内容类型中需要包含的关键字
    keyword: str = ""

    def matches(self, content_type: str) -> bool:
        return bool(self.keyword) and self.keyword in content_type.lower()

    @abstractmethod
    def encode(self, value: Any) -> str:
        """将结构化数据编码为字符串负载"""

    @abstractmethod
    def decode(self, payload: str | bytes) -> Any:
        """将字符串负载解码为结构化数据"""


class PlainCodec(BaseCodec):
    """纯文本：原样传输，只接受标量"""

    keyword = "plain"

    def encode(self, value: Any) -> str:
        if isinstance(value, (dict, list, tuple, set)):
            raise TypeError(f"cannot send {type(value).__name__} as plain text")
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return "" if value is None else str(value)

    def decode(self, payload: str | bytes) -> str:
        return _to_text(payload)


class URLEncodedCodec(BaseCodec):
    """URL 编码：顶层键值对编码为 k=v 并以 & 连接"""

    keyword = "urlencoded"

    def encode(self, value: Any) -> str:
        if not isinstance(value, dict):
            raise TypeError(f"urlencoded payload must be a mapping, got {type(value).__name__}")

        pairs = []
        for key, item in value.items():
            if isinstance(item, (dict, list, tuple, set)):
                raise TypeError(f"urlencoded value for '{key}' must be a scalar")
            item = "" if item is None else item
            pairs.append(f"{quote(str(key), safe='')}={quote(str(item), safe='')}")
        return "&".join(pairs)

    def decode(self, payload: str | bytes) -> dict[str, str | None]:
        data: dict[str, str | None] = {}
        for pair in _to_text(payload).split("&"):
            if not pair:
                continue
            key, sep, value = pair.partition("=")
            data[unquote(key)] = unquote(value) if sep else None
        return data


class JSONCodec(BaseCodec):
    keyword = "json"

    def encode(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False)

    def decode(self, payload: str | bytes) -> Any:
        return json.loads(payload)


class XMLCodec(BaseCodec):
    keyword = "xml"

    def encode(self, value: Any) -> str:
        return dict_to_xml(value)

    def decode(self, payload: str | bytes) -> dict[str, Any]:
        return xml_to_dict(payload)


class ContentCodec:
    """
    编解码分发器

    按注册顺序查找第一个匹配内容类型的编解码器；没有匹配项时按纯文本处理。
    自定义 encoder/decoder 以参数形式显式传入，传入时完全替换内置分发。

    参数:
        codecs: 编解码器类或实例列表（可选，默认使用 codec_classes）
    """

    codec_classes: tuple[type[BaseCodec], ...] = (PlainCodec, URLEncodedCodec, JSONCodec, XMLCodec)

    def __init__(self, codecs: list[BaseCodec | type[BaseCodec]] | None = None):
        sources = codecs if codecs is not None else self.codec_classes
        self.codecs = [codec() if isinstance(codec, type) else codec for codec in sources]
        self._fallback = PlainCodec()

    def find_codec(self, content_type: str | None) -> BaseCodec:
        """返回匹配内容类型的编解码器，找不到时返回纯文本编解码器"""
        for codec in self.codecs:
            if content_type and codec.matches(content_type):
                return codec
        return self._fallback

    def encode(self, value: Any, content_type: str, encoder: CodecHook | None = None) -> str:
        """
        编码请求负载

        参数:
            value: 待编码数据
            content_type: 发送内容类型
            encoder: 自定义编码函数（可选），提供时替换内置编码

        返回:
            编码后的字符串

        异常:
            EncodeError: 编码失败或结果不是字符串时抛出
        """
        try:
            if encoder is not None:
                logger.debug("Running custom encoder")
                payload = encoder(value, content_type)
            else:
                payload = self.find_codec(content_type).encode(value)
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            if not isinstance(payload, str):
                raise TypeError(f"encoder returned {type(payload).__name__} instead of a string")
        except Exception as e:
            raise EncodeError(
                f"couldn't encode payload using {content_type}: {e}\n{pformat(value)}",
                content_type=content_type,
            ) from e
        return payload

    def decode(self, payload: str | bytes, content_type: str, decoder: CodecHook | None = None) -> Any:
        """
        解码响应内容

        参数:
            payload: 响应内容
            content_type: 响应内容类型
            decoder: 自定义解码函数（可选），提供时替换内置解码

        返回:
            解码后的数据

        异常:
            DecodeError: 解码失败时抛出
        """
        try:
            if not isinstance(payload, (str, bytes)):
                raise TypeError(f"payload must be text, got {type(payload).__name__}")
            if decoder is not None:
                logger.debug("Running custom decoder")
                return decoder(payload, content_type)
            return self.find_codec(content_type).decode(payload)
        except Exception as e:
            raise DecodeError(
                f"couldn't decode payload using {content_type}: {e}\n{pformat(payload)}",
                content_type=content_type,
            ) from e
