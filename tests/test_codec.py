"""
测试 restflex.codec 模块

测试按内容类型分发的编解码器、自定义编解码函数与错误包装
"""

import pytest

from restflex.codec import ContentCodec, JSONCodec, PlainCodec, URLEncodedCodec, XMLCodec
from restflex.exceptions import DecodeError, EncodeError


@pytest.fixture
def codec():
    return ContentCodec()


class TestFindCodec:
    """测试编解码器选择"""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "content_type, codec_class",
        [
            ("text/plain", PlainCodec),
            ("application/x-www-form-urlencoded", URLEncodedCodec),
            ("application/json; charset=utf-8", JSONCodec),
            ("application/vnd.api+json", JSONCodec),
            ("text/xml", XMLCodec),
            ("application/atom+xml", XMLCodec),
            ("APPLICATION/JSON", JSONCodec),
        ],
    )
    def test_dispatch_by_substring(self, codec, content_type, codec_class):
        """UT-CODEC-001: 按内容类型子串匹配"""
        assert isinstance(codec.find_codec(content_type), codec_class)

    @pytest.mark.unit
    def test_unknown_content_type_falls_back_to_plain(self, codec):
        assert isinstance(codec.find_codec("text/html"), PlainCodec)
        assert codec.decode("<b>hi</b>", "text/html") == "<b>hi</b>"


class TestPlainCodec:
    @pytest.mark.unit
    def test_scalars_pass_through(self, codec):
        assert codec.encode("hello", "text/plain") == "hello"
        assert codec.encode(12, "text/plain") == "12"

    @pytest.mark.unit
    def test_mapping_rejected(self, codec):
        """UT-CODEC-002: 字典不能作为纯文本发送"""
        with pytest.raises(EncodeError) as exc_info:
            codec.encode({"a": 1}, "text/plain")

        message = str(exc_info.value)
        assert message.startswith("couldn't encode payload using text/plain: ")
        assert "{'a': 1}" in message
        assert exc_info.value.content_type == "text/plain"


class TestURLEncodedCodec:
    CONTENT_TYPE = "application/x-www-form-urlencoded"

    @pytest.mark.unit
    def test_encode(self, codec):
        """UT-CODEC-003: 键值都进行百分号编码"""
        payload = codec.encode({"name": "a b", "q": "x&y=z", "empty": None}, self.CONTENT_TYPE)

        assert payload == "name=a%20b&q=x%26y%3Dz&empty="

    @pytest.mark.unit
    def test_decode(self, codec):
        result = codec.decode("name=a%20b&flag&q=x%26y", self.CONTENT_TYPE)

        assert result == {"name": "a b", "flag": None, "q": "x&y"}

    @pytest.mark.unit
    def test_nested_value_rejected(self, codec):
        with pytest.raises(EncodeError):
            codec.encode({"node": {"name": "web"}}, self.CONTENT_TYPE)


class TestJSONCodec:
    @pytest.mark.unit
    def test_round_trip(self, codec):
        """UT-CODEC-004: JSON 编码后再解码得到原数据"""
        data = {"node": {"name": "web", "tags": ["a", "b"], "size": 3, "active": True, "parent": None}}

        assert codec.decode(codec.encode(data, "application/json"), "application/json") == data

    @pytest.mark.unit
    def test_non_ascii_kept(self, codec):
        assert codec.encode({"name": "Zürich"}, "application/json") == '{"name": "Zürich"}'

    @pytest.mark.unit
    def test_invalid_json_raises_decode_error(self, codec):
        with pytest.raises(DecodeError) as exc_info:
            codec.decode("{not json", "application/json")

        assert str(exc_info.value).startswith("couldn't decode payload using application/json: ")

    @pytest.mark.unit
    def test_unserializable_value_raises_encode_error(self, codec):
        with pytest.raises(EncodeError):
            codec.encode({"when": object()}, "application/json")


class TestXMLCodec:
    @pytest.mark.unit
    def test_encode_and_decode(self, codec):
        payload = codec.encode({"node": {"name": "web"}}, "text/xml")

        assert payload == "<node><name>web</name></node>"
        assert codec.decode(payload, "text/xml") == {"node": {"name": "web"}}

    @pytest.mark.unit
    def test_bytes_payload(self, codec):
        assert codec.decode(b"<a>1</a>", "text/xml") == {"a": "1"}


class TestCustomHooks:
    """测试自定义编解码函数"""

    @pytest.mark.unit
    def test_custom_encoder_replaces_builtin(self, codec):
        """UT-CODEC-005: 自定义 encoder 完全替换内置分发"""
        calls = []

        def encoder(value, content_type):
            calls.append((value, content_type))
            return "custom"

        assert codec.encode({"a": 1}, "application/json", encoder=encoder) == "custom"
        assert calls == [({"a": 1}, "application/json")]

    @pytest.mark.unit
    def test_custom_encoder_must_return_text(self, codec):
        with pytest.raises(EncodeError, match="instead of a string"):
            codec.encode({"a": 1}, "application/json", encoder=lambda value, ct: 42)

    @pytest.mark.unit
    def test_custom_encoder_bytes_are_decoded(self, codec):
        assert codec.encode({}, "text/plain", encoder=lambda value, ct: b"raw") == "raw"

    @pytest.mark.unit
    def test_custom_decoder_failure_wrapped(self, codec):
        def decoder(content, content_type):
            raise RuntimeError("boom")

        with pytest.raises(DecodeError, match="boom"):
            codec.decode("x", "text/plain", decoder=decoder)

    @pytest.mark.unit
    def test_extra_codec_registration(self):
        class CSVCodec(PlainCodec):
            keyword = "csv"

            def decode(self, payload):
                return [row.split(",") for row in payload.splitlines()]

        codec = ContentCodec([CSVCodec, JSONCodec])

        assert codec.decode("a,b\nc,d", "text/csv") == [["a", "b"], ["c", "d"]]
