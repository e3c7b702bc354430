"""服务模块"""

from .probe_runner import ProbeRunner, build_report, determine_overall_status, select_probes
from .probe_registry import ProbeRegistry
from .health_service import (
    HealthService, HealthEndpointOptions, extract_tags, determine_status_code, render_report
)
from .config_manager import ConfigManager

__all__ = [
    'ProbeRunner', 'build_report', 'determine_overall_status', 'select_probes',
    'ProbeRegistry', 'HealthService', 'HealthEndpointOptions', 'extract_tags',
    'determine_status_code', 'render_report', 'ConfigManager'
]
