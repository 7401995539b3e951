"""
BaseClient 基础功能测试

测试客户端构造、配置合并、组件解析与命令方法生成
"""

import pytest

from restflex import BaseClient, ClientConfig, CommandTable
from restflex.exceptions import APIClientValidationError
from restflex.formatter import BaseResponseFormatter, DefaultResponseFormatter
from restflex.transport import RequestsTransport


class NodeAPI(BaseClient):
    """测试用的 API 客户端"""

    base_url = "https://api.example.com/v1"
    auth_type = "hash_key"
    content_type = "application/json"
    timeout = 12
    commands = {
        "list_nodes": {"method": "GET", "path": "nodes"},
        "get_node": {"path": "nodes/:id"},
    }


class TestClientConstruction:
    """测试客户端构造"""

    @pytest.mark.unit
    def test_missing_base_url(self):
        """UT-CLIENT-001: 未设置 base_url 时抛出异常"""
        with pytest.raises(APIClientValidationError, match="base_url must be set"):
            BaseClient()

    @pytest.mark.unit
    def test_class_attributes_are_defaults(self, transport_cls):
        client = NodeAPI(transport=transport_cls())

        assert client.config.base_url == "https://api.example.com/v1"
        assert client.config.auth_type == "hash_key"
        assert client.config.content_type == "application/json"
        assert client.config.timeout == 12
        assert isinstance(client.command_table, CommandTable)
        assert set(client.command_table) == {"list_nodes", "get_node"}

    @pytest.mark.unit
    def test_precedence_class_then_config_then_kwargs(self, transport_cls):
        """UT-CLIENT-002: 配置优先级 类属性 < config < 构造参数"""
        config = ClientConfig(base_url="https://staging.example.com", api_key="from-config", user="bob")

        client = NodeAPI(config=config, api_key="from-kwargs", transport=transport_cls())

        assert client.config.base_url == "https://staging.example.com"
        assert client.config.user == "bob"
        assert client.config.api_key == "from-kwargs"
        assert config.api_key == "from-config"

    @pytest.mark.unit
    def test_unknown_option_rejected(self):
        with pytest.raises(APIClientValidationError, match="Unknown client options"):
            NodeAPI(endpoint="/users")

    @pytest.mark.unit
    def test_invalid_command_table(self):
        with pytest.raises(APIClientValidationError) as exc_info:
            BaseClient(base_url="http://localhost", commands={"bad": {"method": "FETCH"}})

        assert "bad" in exc_info.value.errors

    @pytest.mark.unit
    def test_prebuilt_command_table_accepted(self, transport_cls):
        table = CommandTable({"ping": {}})

        client = BaseClient(base_url="http://localhost", commands=table, transport=transport_cls())

        assert client.command_table is table


class TestComponentResolution:
    """测试可插拔组件解析"""

    @pytest.mark.unit
    def test_default_transport_uses_timeout_and_strict_ssl(self):
        client = NodeAPI(strict_ssl=False)

        assert isinstance(client.transport, RequestsTransport)
        assert client.transport.timeout == 12
        assert client.transport.verify is False
        client.close()

    @pytest.mark.unit
    def test_transport_class_instantiated_with_config(self, transport_cls):
        class RecordingNodeAPI(NodeAPI):
            transport_class = transport_cls

        client = RecordingNodeAPI()

        assert isinstance(client.transport, transport_cls)
        assert client.transport.init_kwargs == {"timeout": 12, "verify": True}

    @pytest.mark.unit
    def test_transport_instance_used_as_is(self, transport_cls):
        transport = transport_cls()

        assert NodeAPI(transport=transport).transport is transport

    @pytest.mark.unit
    def test_invalid_transport_rejected(self):
        with pytest.raises(APIClientValidationError, match="transport_class must be a BaseTransport"):
            NodeAPI(transport="requests")

    @pytest.mark.unit
    def test_formatter_resolution(self, transport_cls):
        class EnvelopeFormatter(BaseResponseFormatter):
            def format(self, formated_response, **kwargs):
                return formated_response

        client = NodeAPI(transport=transport_cls(), response_formatter=EnvelopeFormatter)

        assert isinstance(client.response_formatter_instance, EnvelopeFormatter)
        assert isinstance(NodeAPI(transport=transport_cls()).response_formatter_instance, DefaultResponseFormatter)

    @pytest.mark.unit
    def test_context_manager_closes_transport(self, transport_cls):
        transport = transport_cls()

        with NodeAPI(transport=transport) as client:
            assert client.transport is transport

        assert transport.closed is True


class TestCommandMethods:
    """测试命令方法生成"""

    @pytest.mark.unit
    def test_methods_generated(self, transport_cls):
        """UT-CLIENT-003: 为每个命令生成同名方法"""
        transport = transport_cls()
        client = NodeAPI(api_key="k", transport=transport)

        client.get_node(id=42)
        client.list_nodes({"page": 2})

        assert transport.requests[0]["url"] == "https://api.example.com/v1/nodes/42?key=k"
        assert transport.requests[1]["url"] == "https://api.example.com/v1/nodes?page=2&key=k"

    @pytest.mark.unit
    def test_shadowing_commands_not_bound(self, transport_cls, caplog):
        transport = transport_cls()
        client = BaseClient(
            base_url="http://localhost",
            commands={"call": {}, "config": {}, "list-nodes": {}},
            transport=transport,
        )

        assert isinstance(client.config, ClientConfig)
        assert "can not be bound as a method" in caplog.text

        client.call("config")
        client.call("list-nodes")

        assert [request["url"] for request in transport.requests] == [
            "http://localhost/config",
            "http://localhost/list-nodes",
        ]

    @pytest.mark.unit
    def test_methods_are_per_instance(self, transport_cls):
        first = BaseClient(base_url="http://a", commands={"ping": {}}, transport=transport_cls())
        second = BaseClient(base_url="http://b", commands={}, transport=transport_cls())

        assert hasattr(first, "ping")
        assert not hasattr(second, "ping")
        assert not hasattr(BaseClient, "ping")

    @pytest.mark.unit
    def test_request_id_format(self, transport_cls):
        client = NodeAPI(transport=transport_cls())

        request_id = client.generate_request_id("get_node")

        assert request_id.startswith("REQ-")
        assert request_id.endswith("-get_node")
        assert len(request_id.split("-")[2]) == 8
