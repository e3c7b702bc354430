"""健康探针工厂"""

from typing import Dict, Type, Any, List

from .base import BaseProbe
from ..utils.exceptions import ProbeError, ErrorCode


class ProbeFactory:
    """探针工厂类，按配置中的 type 创建不同类型的探针"""

    def __init__(self):
        """初始化工厂"""
        self._probe_classes: Dict[str, Type[BaseProbe]] = {}

    def register_probe(self, probe_type: str, probe_class: Type[BaseProbe]):
        """
        注册探针类

        Args:
            probe_type: 探针类型名称
            probe_class: 探针类，需要提供 from_config 类方法

        Raises:
            ProbeError: 注册失败
        """
        if not issubclass(probe_class, BaseProbe):
            raise ProbeError(f"探针类 {probe_class.__name__} 必须继承自 BaseProbe")

        if not callable(getattr(probe_class, 'from_config', None)):
            raise ProbeError(f"探针类 {probe_class.__name__} 缺少 from_config 类方法")

        if probe_type in self._probe_classes:
            raise ProbeError(f"探针类型 '{probe_type}' 已经注册")

        self._probe_classes[probe_type] = probe_class

    def unregister_probe(self, probe_type: str):
        """取消注册探针类"""
        self._probe_classes.pop(probe_type, None)

    def create_probe(self, probe_name: str, probe_config: Dict[str, Any]) -> BaseProbe:
        """
        创建探针实例

        Args:
            probe_name: 探针名称
            probe_config: 探针配置

        Returns:
            BaseProbe: 探针实例

        Raises:
            ProbeError: 类型缺失、不支持或构造失败
        """
        probe_type = probe_config.get('type')
        if not probe_type:
            raise ProbeError(f"探针 '{probe_name}' 缺少 'type' 配置", probe_name=probe_name)

        probe_class = self._probe_classes.get(probe_type)
        if probe_class is None:
            raise ProbeError(
                f"不支持的探针类型: '{probe_type}'",
                error_code=ErrorCode.UNSUPPORTED_PROBE_TYPE,
                probe_name=probe_name,
                probe_type=probe_type
            )

        try:
            return probe_class.from_config(probe_name, probe_config)
        except ProbeError:
            raise
        except Exception as e:
            raise ProbeError(
                f"创建探针 '{probe_name}' 失败: {e}",
                probe_name=probe_name,
                probe_type=probe_type,
                cause=e
            ) from e

    def get_supported_types(self) -> List[str]:
        """获取支持的探针类型列表"""
        return list(self._probe_classes.keys())

    def is_type_supported(self, probe_type: str) -> bool:
        """检查是否支持指定的探针类型"""
        return probe_type in self._probe_classes


# 全局工厂实例
probe_factory = ProbeFactory()


def register_probe(probe_type: str):
    """
    装饰器：注册探针类

    Args:
        probe_type: 探针类型名称
    """
    def decorator(probe_class: Type[BaseProbe]):
        probe_factory.register_probe(probe_type, probe_class)
        return probe_class

    return decorator
