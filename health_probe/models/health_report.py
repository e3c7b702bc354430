"""健康探针相关的数据模型"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Tuple


class ProbeStatus(IntEnum):
    """探针状态，数值顺序即严重程度顺序"""
    HEALTHY = 0
    DEGRADED = 1
    UNHEALTHY = 2

    @property
    def label(self) -> str:
        """小写状态文本"""
        return self.name.lower()


def normalize_tags(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """
    规范化标签集合

    去掉首尾空白和空标签，按不区分大小写去重（保留首次出现的写法）。

    Args:
        tags: 原始标签

    Returns:
        Tuple[str, ...]: 规范化后的标签
    """
    if not tags:
        return ()
    if isinstance(tags, str):
        tags = [tags]

    seen = set()
    result = []
    for tag in tags:
        if tag is None:
            continue
        text = str(tag).strip()
        if not text or text.casefold() in seen:
            continue
        seen.add(text.casefold())
        result.append(text)
    return tuple(result)


def describe_exception(error: BaseException) -> str:
    """异常消息，消息为空时使用异常类型名"""
    return str(error) or type(error).__name__


@dataclass(frozen=True)
class ProbeResult:
    """单次探针检查结果"""
    status: ProbeStatus
    description: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def healthy(cls, description: Optional[str] = None,
                data: Optional[Dict[str, Any]] = None) -> 'ProbeResult':
        return cls(ProbeStatus.HEALTHY, description, data)

    @classmethod
    def degraded(cls, description: Optional[str] = None,
                 data: Optional[Dict[str, Any]] = None) -> 'ProbeResult':
        return cls(ProbeStatus.DEGRADED, description, data)

    @classmethod
    def unhealthy(cls, description: Optional[str] = None,
                  data: Optional[Dict[str, Any]] = None) -> 'ProbeResult':
        return cls(ProbeStatus.UNHEALTHY, description, data)

    @classmethod
    def from_exception(cls, error: BaseException) -> 'ProbeResult':
        """把异常转换为 UNHEALTHY 结果"""
        return cls(ProbeStatus.UNHEALTHY, f"Exception: {describe_exception(error)}")


@dataclass(frozen=True)
class HealthProbeEntry:
    """单个探针的结果及执行元数据"""
    name: str
    tags: Tuple[str, ...]
    status: ProbeStatus
    status_text: str
    description: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    duration: timedelta = timedelta(0)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'tags': list(self.tags),
            'status': self.status_text,
            'duration_ms': round(self.duration.total_seconds() * 1000, 2),
        }
        if self.description is not None:
            result['description'] = self.description
        if self.data:
            result['data'] = self.data
        if self.error is not None:
            result['error'] = self.error
        return result


@dataclass(frozen=True)
class HealthSummary:
    """汇总计数"""
    total: int = 0
    healthy: int = 0
    degraded: int = 0
    unhealthy: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'healthy': self.healthy,
            'degraded': self.degraded,
            'unhealthy': self.unhealthy,
        }


@dataclass(frozen=True)
class HealthReport:
    """一次运行的最终报告"""
    status: ProbeStatus
    status_text: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    probes: Tuple[HealthProbeEntry, ...] = ()
    summary: HealthSummary = field(default_factory=HealthSummary)
    applied_tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，供 JSON/YAML 输出使用"""
        return {
            'status': self.status_text,
            'generated_at': self.generated_at.isoformat(),
            'summary': self.summary.to_dict(),
            'applied_tags': list(self.applied_tags),
            'probes': [entry.to_dict() for entry in self.probes],
        }
