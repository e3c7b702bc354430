"""数据模型模块"""

from .health_report import (
    ProbeStatus, ProbeResult, HealthProbeEntry, HealthSummary, HealthReport, normalize_tags
)

__all__ = ['ProbeStatus', 'ProbeResult', 'HealthProbeEntry', 'HealthSummary',
           'HealthReport', 'normalize_tags']
