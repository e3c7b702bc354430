"""测试健康检查端点边界"""

import json
import os
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import yaml

from health_probe.models.health_report import ProbeResult, ProbeStatus
from health_probe.services.health_service import (
    HealthEndpointOptions, HealthService, determine_status_code, extract_tags, render_report
)
from health_probe.services.probe_registry import ProbeRegistry
from health_probe.services.probe_runner import ProbeRunner
from health_probe.utils.exceptions import ConfigError


def make_result(status: ProbeStatus, **kwargs):
    async def check():
        return ProbeResult(status, **kwargs)
    return check


class TestExtractTags:
    """测试查询参数标签提取"""

    def test_tag_and_tags(self):
        """测试tag和tags参数合并"""
        query = {'tag': ['live', ' db '], 'tags': 'cache,LIVE,,ready'}
        assert extract_tags(query) == ('live', 'db', 'cache', 'ready')

    def test_empty(self):
        """测试空查询"""
        assert extract_tags(None) == ()
        assert extract_tags({}) == ()
        assert extract_tags({'tag': ['', ' , ']}) == ()
        assert extract_tags({'other': 'x'}) == ()


class TestDetermineStatusCode:
    """测试状态码映射"""

    def test_mapping(self):
        """测试默认映射"""
        assert determine_status_code(ProbeStatus.HEALTHY) == 200
        assert determine_status_code(ProbeStatus.DEGRADED) == 200
        assert determine_status_code(ProbeStatus.UNHEALTHY) == 503

    def test_treat_degraded_as_unhealthy(self):
        """测试降级视为不健康"""
        assert determine_status_code(ProbeStatus.HEALTHY, True) == 200
        assert determine_status_code(ProbeStatus.DEGRADED, True) == 503


class TestHealthEndpointOptions:
    """测试端点选项"""

    def test_defaults(self):
        """测试默认值"""
        options = HealthEndpointOptions()

        assert options.pattern == '/health'
        assert options.default_tags == ()
        assert options.treat_degraded_as_unhealthy is False
        assert options.max_concurrency == (os.cpu_count() or 1)
        assert options.probe_timeout == 15.0
        assert options.response_format == 'json'

    def test_from_config(self):
        """测试从全局配置创建"""
        options = HealthEndpointOptions.from_config({
            'default_tags': ['live', 'Live'],
            'treat_degraded_as_unhealthy': True,
            'max_concurrency': 3,
            'probe_timeout': 2,
            'response_format': 'text',
        })

        assert options.default_tags == ('live',)
        assert options.treat_degraded_as_unhealthy is True
        assert options.max_concurrency == 3
        assert options.probe_timeout == 2
        assert options.response_format == 'text'

    def test_invalid_format(self):
        """测试无效的响应格式"""
        with pytest.raises(ConfigError):
            HealthEndpointOptions(response_format='xml')


class TestRenderReport:
    """测试响应体渲染"""

    @pytest.mark.asyncio
    async def test_json_yaml_and_text(self):
        """测试三种格式"""
        registry = ProbeRegistry()
        registry.add_callback('disk', make_result(
            ProbeStatus.DEGRADED, description='low',
            data={'free': Decimal('1.5'), 'at': datetime(2025, 1, 1), 'age': timedelta(seconds=90)}))
        report = await ProbeRunner().run(registry.snapshot())

        body, content_type = render_report(report, 'json')
        document = json.loads(body)
        assert content_type.startswith('application/json')
        assert document['status'] == 'degraded'
        assert document['probes'][0]['data']['free'] == '1.5'

        body, content_type = render_report(report, 'yaml')
        document = yaml.safe_load(body)
        assert content_type.startswith('application/yaml')
        assert document['summary']['degraded'] == 1
        assert document['probes'][0]['data']['age'] == '00:01:30'

        body, content_type = render_report(report, 'text', include_data=False)
        assert content_type.startswith('text/plain')
        assert body.startswith('Status: degraded\n')
        assert 'free=' not in body

    @pytest.mark.asyncio
    async def test_exclude_data(self):
        """测试不输出数据"""
        registry = ProbeRegistry()
        registry.add_callback('a', make_result(ProbeStatus.HEALTHY, data={'x': 1}))
        report = await ProbeRunner().run(registry.snapshot())

        body, _ = render_report(report, 'json', include_data=False)
        assert 'data' not in json.loads(body)['probes'][0]


class TestHealthService:
    """测试HealthService"""

    def build_registry(self) -> ProbeRegistry:
        registry = ProbeRegistry()
        registry.add_callback('live-check', make_result(ProbeStatus.HEALTHY), tags=['live'])
        registry.add_callback('db', make_result(ProbeStatus.DEGRADED, description='slow'), tags=['ready'])
        return registry

    @pytest.mark.asyncio
    async def test_check_all(self):
        """测试执行全部探针"""
        service = HealthService(self.build_registry())

        report, status_code = await service.check()

        assert report.status == ProbeStatus.DEGRADED
        assert status_code == 200

    @pytest.mark.asyncio
    async def test_degraded_as_unhealthy(self):
        """测试降级映射为503"""
        options = HealthEndpointOptions(treat_degraded_as_unhealthy=True)
        service = HealthService(self.build_registry(), options)

        _, status_code = await service.check()

        assert status_code == 503

    @pytest.mark.asyncio
    async def test_request_tags_override_default_tags(self):
        """测试请求标签优先于默认标签"""
        options = HealthEndpointOptions(default_tags=('ready',))
        service = HealthService(self.build_registry(), options)

        default_report, _ = await service.check()
        requested_report, _ = await service.check(['live'])

        assert [e.name for e in default_report.probes] == ['db']
        assert [e.name for e in requested_report.probes] == ['live-check']
        assert requested_report.applied_tags == ('live',)

    @pytest.mark.asyncio
    async def test_handle_query(self):
        """测试处理端点请求"""
        registry = self.build_registry()
        registry.add_callback('broken', make_result(ProbeStatus.UNHEALTHY), tags=['ready'])
        service = HealthService(registry, HealthEndpointOptions(response_format='text'))

        status_code, body, content_type = await service.handle({'tags': 'ready'})

        assert status_code == 503
        assert content_type.startswith('text/plain')
        assert 'Tags: ready' in body
        assert 'name=broken status=unhealthy' in body
        assert 'live-check' not in body
