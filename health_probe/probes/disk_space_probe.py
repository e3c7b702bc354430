"""磁盘空间探针"""

import os
from typing import Iterable, Optional

import psutil

from .base import BaseProbe
from .factory import register_probe
from ..models.health_report import ProbeResult, ProbeStatus
from ..utils.exceptions import ProbeError


def format_bytes(size: float) -> str:
    """把字节数格式化为人类可读的字符串"""
    units = ['B', 'KB', 'MB', 'GB', 'TB', 'PB']
    order = 0
    while size >= 1024 and order < len(units) - 1:
        order += 1
        size /= 1024
    return f"{size:.2f}".rstrip('0').rstrip('.') + f" {units[order]}"


@register_probe('disk')
class DiskSpaceProbe(BaseProbe):
    """磁盘空间探针

    状态映射：
      - 可用百分比 >= warn_percent: HEALTHY
      - critical_percent <= 可用百分比 < warn_percent: DEGRADED
      - 可用百分比 < critical_percent: UNHEALTHY
    路径不存在或卷不可用时返回 UNHEALTHY，不抛出异常。
    """

    probe_type = 'disk'

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None,
                 path: Optional[str] = None,
                 critical_percent: float = 5,
                 warn_percent: float = 10):
        """
        初始化磁盘空间探针

        Args:
            name: 探针名称
            tags: 探针标签
            path: 要检查的目录，默认当前工作目录
            critical_percent: 低于此可用百分比为 UNHEALTHY
            warn_percent: 低于此可用百分比为 DEGRADED

        Raises:
            ProbeError: 阈值不满足 0 < critical < warn <= 100
        """
        super().__init__(name, tags)
        if not (0 < critical_percent < warn_percent <= 100):
            raise ProbeError(
                "阈值配置无效，必须满足: 0 < critical < warn <= 100",
                probe_name=name,
                probe_type=self.probe_type,
                details={'critical_percent': critical_percent, 'warn_percent': warn_percent}
            )
        self.path = path if path and path.strip() else os.getcwd()
        self.critical_percent = critical_percent
        self.warn_percent = warn_percent

    def _classify(self, free_percent: float) -> ProbeStatus:
        if free_percent < self.critical_percent:
            return ProbeStatus.UNHEALTHY
        if free_percent < self.warn_percent:
            return ProbeStatus.DEGRADED
        return ProbeStatus.HEALTHY

    async def check_health(self) -> ProbeResult:
        if not os.path.exists(self.path):
            self.logger.debug(f"磁盘探针 {self.name} 路径不存在: {self.path}")
            return ProbeResult.unhealthy(f"Path '{self.path}' not found.")

        try:
            usage = psutil.disk_usage(self.path)
        except OSError as e:
            self.logger.warning(f"磁盘探针 {self.name} 读取 {self.path} 失败: {e}")
            return ProbeResult.unhealthy(f"Volume for '{self.path}' is not ready: {e}")

        total = usage.total
        free = usage.free
        if total <= 0:
            return ProbeResult.unhealthy(f"Volume for '{self.path}' reports total size 0.")

        free_percent = free / total * 100.0
        status = self._classify(free_percent)
        self.logger.debug(f"磁盘探针 {self.name} 可用百分比={free_percent:.1f}")

        data = {
            'path': self.path,
            'total_bytes': total,
            'free_bytes': free,
            'free_percent': round(free_percent, 2),
            'critical_percent': self.critical_percent,
            'warn_percent': self.warn_percent,
        }
        description = f"Free {format_bytes(free)} of {format_bytes(total)} ({free_percent:.2f}% free)"
        return ProbeResult(status, description, data)

    @classmethod
    def from_config(cls, name: str, config: dict) -> 'DiskSpaceProbe':
        return cls(
            name,
            config.get('tags'),
            path=config.get('path'),
            critical_percent=config.get('critical_percent', 5),
            warn_percent=config.get('warn_percent', 10),
        )
