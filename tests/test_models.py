"""测试数据模型"""

from datetime import datetime, timedelta, timezone

from health_probe.models.health_report import (
    ProbeStatus, ProbeResult, HealthProbeEntry, HealthSummary, HealthReport, normalize_tags
)


class TestProbeStatus:
    """测试ProbeStatus枚举"""

    def test_severity_order(self):
        """测试严重程度顺序"""
        assert ProbeStatus.HEALTHY < ProbeStatus.DEGRADED < ProbeStatus.UNHEALTHY

    def test_label(self):
        """测试小写标签"""
        assert ProbeStatus.HEALTHY.label == 'healthy'
        assert ProbeStatus.DEGRADED.label == 'degraded'
        assert ProbeStatus.UNHEALTHY.label == 'unhealthy'


class TestNormalizeTags:
    """测试标签规范化"""

    def test_trim_and_drop_empty(self):
        """测试去除空白和空标签"""
        assert normalize_tags([' live ', '', '   ', None, 'ready']) == ('live', 'ready')

    def test_case_insensitive_dedup_keeps_first(self):
        """测试不区分大小写去重并保留首次写法"""
        assert normalize_tags(['Live', 'live', 'LIVE', 'db']) == ('Live', 'db')

    def test_single_string(self):
        """测试单个字符串"""
        assert normalize_tags('live') == ('live',)

    def test_none(self):
        """测试空值"""
        assert normalize_tags(None) == ()


class TestProbeResult:
    """测试ProbeResult"""

    def test_factories(self):
        """测试工厂方法"""
        assert ProbeResult.healthy().status == ProbeStatus.HEALTHY
        assert ProbeResult.degraded('slow').description == 'slow'
        result = ProbeResult.unhealthy('down', {'code': 1})
        assert result.status == ProbeStatus.UNHEALTHY
        assert result.data == {'code': 1}

    def test_from_exception(self):
        """测试异常转换"""
        result = ProbeResult.from_exception(RuntimeError('boom'))
        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description == 'Exception: boom'
        assert result.data is None

    def test_from_exception_without_message(self):
        """测试异常消息为空时使用异常类型名"""
        result = ProbeResult.from_exception(TimeoutError())
        assert result.description == 'Exception: TimeoutError'


class TestHealthReport:
    """测试HealthReport"""

    def test_to_dict(self):
        """测试转换为字典"""
        entry = HealthProbeEntry(
            name='db',
            tags=('ready',),
            status=ProbeStatus.DEGRADED,
            status_text='degraded',
            description='slow',
            data={'latency_ms': 120},
            duration=timedelta(milliseconds=12.5),
        )
        generated_at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        report = HealthReport(
            status=ProbeStatus.DEGRADED,
            status_text='degraded',
            generated_at=generated_at,
            probes=(entry,),
            summary=HealthSummary(total=1, degraded=1),
            applied_tags=('ready',),
        )

        result = report.to_dict()

        assert result['status'] == 'degraded'
        assert result['generated_at'] == '2025-01-02T03:04:05+00:00'
        assert result['summary'] == {'total': 1, 'healthy': 0, 'degraded': 1, 'unhealthy': 0}
        assert result['applied_tags'] == ['ready']
        probe = result['probes'][0]
        assert probe['name'] == 'db'
        assert probe['duration_ms'] == 12.5
        assert probe['data'] == {'latency_ms': 120}
        assert 'error' not in probe

    def test_default_generated_at_is_utc(self):
        """测试默认生成时间为UTC"""
        report = HealthReport(status=ProbeStatus.HEALTHY, status_text='healthy')
        assert report.generated_at.tzinfo is timezone.utc
        assert report.summary.total == 0
