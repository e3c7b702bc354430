"""配置管理器"""

import os
import yaml
from typing import Dict, Any, List, Optional

from ..probes import probe_factory
from ..probes.base import BaseProbe
from ..utils.exceptions import ConfigError, ErrorCode, ProbeError
from ..utils.config_validator import ConfigValidator
from ..utils.log_manager import get_logger


class ConfigManager:
    """配置管理器，负责YAML配置文件的加载、解析和验证"""

    def __init__(self, config_path: str):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.logger = get_logger('config_manager')

    def load_config(self) -> Dict[str, Any]:
        """
        加载YAML配置文件

        Returns:
            Dict[str, Any]: 配置字典

        Raises:
            ConfigError: 配置加载或验证失败
        """
        self.logger.info(f"开始加载配置文件: {self.config_path}")

        try:
            if not os.path.exists(self.config_path):
                raise ConfigError(
                    f"配置文件不存在: {self.config_path}",
                    error_code=ErrorCode.CONFIG_FILE_NOT_FOUND,
                    config_path=self.config_path
                )

            with open(self.config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)

            if config is None:
                raise ConfigError("配置文件为空", config_path=self.config_path)

            self.logger.debug("开始验证配置文件内容")
            self._validate_config(config)

            self.logger.info(f"配置验证成功，包含 {len(config.get('probes', {}))} 个探针")
            self.config = config
            return self.config

        except ConfigError as e:
            self.logger.error(str(e))
            raise
        except yaml.YAMLError as e:
            self.logger.error(f"YAML格式错误: {e}")
            raise ConfigError(
                f"YAML格式错误: {e}",
                error_code=ErrorCode.CONFIG_PARSE_ERROR,
                config_path=self.config_path,
                cause=e
            ) from e
        except PermissionError as e:
            self.logger.error(f"没有权限读取配置文件: {self.config_path}")
            raise ConfigError(f"没有权限读取配置文件: {self.config_path}",
                              config_path=self.config_path, cause=e) from e
        except OSError as e:
            self.logger.error(f"加载配置文件失败: {e}", exc_info=True)
            raise ConfigError(f"加载配置文件失败: {e}",
                              config_path=self.config_path, cause=e) from e

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        验证配置文件内容

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型")

        if 'global' in config:
            ConfigValidator.validate_global_config(config['global'])

        if 'probes' in config:
            if not isinstance(config['probes'], dict):
                raise ConfigError("probes配置必须是字典类型")

            supported_types = probe_factory.get_supported_types()
            for probe_name, probe_config in config['probes'].items():
                ConfigValidator.validate_probe_config(probe_name, probe_config, supported_types)

    def get_global_config(self) -> Dict[str, Any]:
        """获取全局配置"""
        return self.config.get('global') or {}

    def get_probes_config(self) -> Dict[str, Any]:
        """获取探针配置"""
        return self.config.get('probes') or {}

    def get_probe_config(self, probe_name: str) -> Optional[Dict[str, Any]]:
        """
        获取指定探针的配置

        Args:
            probe_name: 探针名称

        Returns:
            Optional[Dict[str, Any]]: 探针配置，如果不存在返回None
        """
        return self.get_probes_config().get(probe_name)

    def build_probes(self) -> List[BaseProbe]:
        """
        按配置创建所有探针

        Returns:
            List[BaseProbe]: 探针列表

        Raises:
            ProbeError: 任一探针创建失败
        """
        probes = []
        for probe_name, probe_config in self.get_probes_config().items():
            try:
                probe = probe_factory.create_probe(probe_name, probe_config)
            except ProbeError as e:
                self.logger.error(f"创建探针 {probe_name} 失败: {e}")
                raise
            self.logger.info(f"配置探针 {probe_name}: 类型={probe_config.get('type')}, 标签={list(probe.tags)}")
            probes.append(probe)
        return probes
