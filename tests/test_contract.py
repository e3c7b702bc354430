"""测试健康契约解析"""

from health_probe.models.health_report import ProbeStatus
from health_probe.probes.contract import parse_json_contract


class TestParseJsonContract:
    """测试parse_json_contract"""

    def test_full_contract(self):
        """测试完整契约"""
        result = parse_json_contract(
            '{"status": "warn", "description": "queue backlog", "data": {"depth": 42, "note": null}}')

        assert result.status == ProbeStatus.DEGRADED
        assert result.description == 'queue backlog'
        assert result.data == {'depth': 42}

    def test_status_only(self):
        """测试只有状态"""
        result = parse_json_contract('{"status": "ok"}')

        assert result.status == ProbeStatus.HEALTHY
        assert result.description is None
        assert result.data is None

    def test_unknown_status_is_unhealthy(self):
        """测试未知状态视为UNHEALTHY"""
        assert parse_json_contract('{"status": "meh"}').status == ProbeStatus.UNHEALTHY

    def test_non_string_description(self):
        """测试非字符串描述转为字符串"""
        assert parse_json_contract('{"status": "ok", "description": 5}').description == '5'

    def test_not_a_contract(self):
        """测试非契约文本返回None"""
        assert parse_json_contract(None) is None
        assert parse_json_contract('') is None
        assert parse_json_contract('plain text') is None
        assert parse_json_contract('[1, 2]') is None
        assert parse_json_contract('{"state": "ok"}') is None
