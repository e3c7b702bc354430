"""测试磁盘空间探针"""

from collections import namedtuple
from unittest.mock import patch

import pytest

from health_probe.models.health_report import ProbeStatus
from health_probe.probes.disk_space_probe import DiskSpaceProbe, format_bytes
from health_probe.utils.exceptions import ProbeError

DiskUsage = namedtuple('DiskUsage', ['total', 'used', 'free', 'percent'])

GB = 1024 ** 3


def usage(total_gb: float, free_gb: float) -> DiskUsage:
    total = int(total_gb * GB)
    free = int(free_gb * GB)
    return DiskUsage(total, total - free, free, round((total - free) / total * 100, 1))


class TestDiskSpaceProbe:
    """测试DiskSpaceProbe"""

    @pytest.mark.parametrize('critical, warn', [(0, 10), (10, 10), (20, 10), (5, 101)])
    def test_invalid_thresholds(self, critical, warn):
        """测试无效阈值"""
        with pytest.raises(ProbeError):
            DiskSpaceProbe('disk', critical_percent=critical, warn_percent=warn)

    def test_default_path_is_cwd(self, tmp_path, monkeypatch):
        """测试默认路径为当前目录"""
        monkeypatch.chdir(tmp_path)
        probe = DiskSpaceProbe('disk')
        assert probe.path == str(tmp_path)

    @pytest.mark.asyncio
    @pytest.mark.parametrize('free_gb, expected', [
        (50, ProbeStatus.HEALTHY),
        (10, ProbeStatus.HEALTHY),
        (8, ProbeStatus.DEGRADED),
        (4, ProbeStatus.UNHEALTHY),
    ])
    async def test_classification(self, tmp_path, free_gb, expected):
        """测试按可用百分比分类"""
        probe = DiskSpaceProbe('disk', path=str(tmp_path), critical_percent=5, warn_percent=10)

        with patch('health_probe.probes.disk_space_probe.psutil.disk_usage',
                   return_value=usage(100, free_gb)):
            result = await probe.check_health()

        assert result.status == expected
        assert result.data['free_percent'] == pytest.approx(free_gb, abs=0.01)
        assert result.data['total_bytes'] == 100 * GB
        assert result.data['path'] == str(tmp_path)
        assert result.description.startswith('Free ')

    @pytest.mark.asyncio
    async def test_description(self, tmp_path):
        """测试描述格式"""
        probe = DiskSpaceProbe('disk', path=str(tmp_path))

        with patch('health_probe.probes.disk_space_probe.psutil.disk_usage',
                   return_value=usage(20, 5)):
            result = await probe.check_health()

        assert result.description == 'Free 5 GB of 20 GB (25.00% free)'

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path):
        """测试路径不存在"""
        missing = str(tmp_path / 'missing')
        result = await DiskSpaceProbe('disk', path=missing).check_health()

        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description == f"Path '{missing}' not found."

    @pytest.mark.asyncio
    async def test_os_error(self, tmp_path):
        """测试卷不可用"""
        probe = DiskSpaceProbe('disk', path=str(tmp_path))

        with patch('health_probe.probes.disk_space_probe.psutil.disk_usage',
                   side_effect=OSError('device not ready')):
            result = await probe.check_health()

        assert result.status == ProbeStatus.UNHEALTHY
        assert 'not ready' in result.description

    @pytest.mark.asyncio
    async def test_zero_total(self, tmp_path):
        """测试总容量为0"""
        probe = DiskSpaceProbe('disk', path=str(tmp_path))

        with patch('health_probe.probes.disk_space_probe.psutil.disk_usage',
                   return_value=DiskUsage(0, 0, 0, 0.0)):
            result = await probe.check_health()

        assert result.status == ProbeStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_real_disk(self, tmp_path):
        """测试真实磁盘"""
        result = await DiskSpaceProbe('disk', path=str(tmp_path)).check_health()
        assert result.data['total_bytes'] > 0

    def test_from_config(self):
        """测试从配置创建"""
        probe = DiskSpaceProbe.from_config('disk', {
            'type': 'disk', 'path': '/', 'critical_percent': 2, 'warn_percent': 20, 'tags': ['live']
        })
        assert probe.path == '/'
        assert probe.critical_percent == 2
        assert probe.warn_percent == 20
        assert probe.tags == ('live',)


class TestFormatBytes:
    """测试字节格式化"""

    def test_units(self):
        """测试单位换算"""
        assert format_bytes(512) == '512 B'
        assert format_bytes(1536) == '1.5 KB'
        assert format_bytes(GB) == '1 GB'
