"""探针注册表"""

import threading
from typing import Awaitable, Callable, Iterable, List, Mapping, Optional, Tuple

from ..models.health_report import ProbeResult
from ..probes.base import BaseProbe
from ..probes.callback_probe import CallbackProbe
from ..probes.script_probe import ScriptLanguage, script_probe_factory
from ..utils.log_manager import get_logger


class ProbeRegistry:
    """探针注册表

    按名称（不区分大小写）保存探针，同名注册会替换旧探针。
    snapshot() 返回的元组不受后续注册影响。
    """

    def __init__(self):
        self._probes: List[BaseProbe] = []
        self._lock = threading.Lock()
        self.logger = get_logger('probe_registry')

    def register(self, probe: BaseProbe) -> BaseProbe:
        """
        注册探针

        Args:
            probe: 探针实例

        Returns:
            BaseProbe: 已注册的探针
        """
        if probe is None:
            raise TypeError("probe 不能为空")

        key = probe.name.casefold()
        with self._lock:
            for index, existing in enumerate(self._probes):
                if existing.name.casefold() == key:
                    self.logger.info(f"替换已存在的探针 {existing.name}")
                    self._probes[index] = probe
                    break
            else:
                self._probes.append(probe)

        self.logger.debug(f"已注册探针 {probe!r}")
        return probe

    def add_callback(self, name: str, callback: Callable[[], Awaitable[ProbeResult]],
                     tags: Optional[Iterable[str]] = None) -> CallbackProbe:
        """注册进程内回调探针"""
        return self.register(CallbackProbe(name, tags, callback))

    def add_script(self, name: str, code: str,
                   tags: Optional[Iterable[str]] = None,
                   language: ScriptLanguage = ScriptLanguage.PYTHON,
                   arguments: Optional[Mapping] = None,
                   state_provider: Optional[Callable[[], Mapping]] = None) -> BaseProbe:
        """
        编译并注册脚本探针

        Raises:
            ProbeError: 脚本语言不支持或编译失败
        """
        probe = script_probe_factory.create(
            name, tags, language, code,
            arguments=arguments, state_provider=state_provider)
        return self.register(probe)

    def unregister(self, name: str) -> bool:
        """按名称移除探针，返回是否存在"""
        key = name.casefold()
        with self._lock:
            for index, existing in enumerate(self._probes):
                if existing.name.casefold() == key:
                    del self._probes[index]
                    self.logger.info(f"已移除探针 {existing.name}")
                    return True
        return False

    def snapshot(self) -> Tuple[BaseProbe, ...]:
        with self._lock:
            return tuple(self._probes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._probes)
