"""工具模块"""

from .exceptions import HealthProbeError, ErrorCode, ConfigError, ProbeError
from .log_manager import LogManager, LogLevel, get_logger, configure_logging, log_manager

__all__ = [
    'HealthProbeError', 'ErrorCode', 'ConfigError', 'ProbeError',
    'LogManager', 'LogLevel', 'get_logger', 'configure_logging', 'log_manager'
]
