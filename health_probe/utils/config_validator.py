"""配置验证工具"""

from typing import Dict, Any, Iterable, Optional

from .exceptions import ConfigError

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_RESPONSE_FORMATS = ['json', 'yaml', 'text']


class ConfigValidator:
    """配置验证器"""

    @staticmethod
    def validate_probe_config(probe_name: str, config: Dict[str, Any],
                              supported_types: Optional[Iterable[str]] = None) -> None:
        """
        验证探针配置

        Args:
            probe_name: 探针名称
            config: 探针配置
            supported_types: 支持的探针类型，为空时不检查类型

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError(f"探针 '{probe_name}' 的配置必须是字典类型")

        if 'type' not in config:
            raise ConfigError(f"探针 '{probe_name}' 缺少必需的配置项: type")

        if supported_types is not None:
            supported_types = sorted(supported_types)
            probe_type = config.get('type')
            if probe_type not in supported_types:
                raise ConfigError(
                    f"探针 '{probe_name}' 的类型 '{probe_type}' 不受支持。支持的类型: {supported_types}")

        tags = config.get('tags')
        if tags is not None:
            if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
                raise ConfigError(f"探针 '{probe_name}' 的 tags 必须是字符串列表")

        timeout = config.get('timeout')
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError(f"探针 '{probe_name}' 的 timeout 必须是正数")

    @staticmethod
    def validate_global_config(global_config: Dict[str, Any]) -> None:
        """
        验证全局配置

        Args:
            global_config: 全局配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(global_config, dict):
            raise ConfigError("全局配置必须是字典类型")

        log_level = global_config.get('log_level')
        if log_level is not None and log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"log_level 必须是以下值之一: {VALID_LOG_LEVELS}")

        probe_timeout = global_config.get('probe_timeout')
        if probe_timeout is not None:
            if isinstance(probe_timeout, bool) or not isinstance(probe_timeout, (int, float)) or probe_timeout < 0:
                raise ConfigError("probe_timeout 必须是非负数")

        max_concurrency = global_config.get('max_concurrency')
        if max_concurrency is not None:
            if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int):
                raise ConfigError("max_concurrency 必须是整数")

        treat_degraded = global_config.get('treat_degraded_as_unhealthy')
        if treat_degraded is not None and not isinstance(treat_degraded, bool):
            raise ConfigError("treat_degraded_as_unhealthy 必须是布尔值")

        default_tags = global_config.get('default_tags')
        if default_tags is not None:
            if not isinstance(default_tags, list) or not all(isinstance(tag, str) for tag in default_tags):
                raise ConfigError("default_tags 必须是字符串列表")

        response_format = global_config.get('response_format')
        if response_format is not None and response_format not in VALID_RESPONSE_FORMATS:
            raise ConfigError(f"response_format 必须是以下值之一: {VALID_RESPONSE_FORMATS}")
