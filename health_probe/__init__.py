"""健康探针编排引擎

每次请求执行一组相互独立的健康探针，限制单个探针耗时和整体并发，
把各种探针输出规范化为统一结果，并汇总为一个总体状态。
"""

__version__ = "1.0.0"

from .models import ProbeStatus, ProbeResult, HealthProbeEntry, HealthSummary, HealthReport
from .probes import (
    BaseProbe, CallbackProbe, DiskSpaceProbe, HttpProbe, ProcessProbe,
    ScriptProbe, ScriptLanguage, ProbeContext
)
from .services import ProbeRunner, ProbeRegistry, HealthService, HealthEndpointOptions
from .utils.report_formatter import format_report

__all__ = [
    '__version__',
    'ProbeStatus', 'ProbeResult', 'HealthProbeEntry', 'HealthSummary', 'HealthReport',
    'BaseProbe', 'CallbackProbe', 'DiskSpaceProbe', 'HttpProbe', 'ProcessProbe',
    'ScriptProbe', 'ScriptLanguage', 'ProbeContext',
    'ProbeRunner', 'ProbeRegistry', 'HealthService', 'HealthEndpointOptions',
    'format_report'
]
