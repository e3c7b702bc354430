"""健康探针基类"""

import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

from ..models.health_report import ProbeResult, normalize_tags
from ..utils.exceptions import ProbeError
from ..utils.log_manager import get_logger


def cancellation_requested() -> bool:
    """当前任务是否被请求取消（调用方取消或超时）

    被其他对象取消的子操作也会抛出 CancelledError，此时任务本身的
    cancelling() 计数为 0，应视为普通异常。
    """
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class BaseProbe(ABC):
    """健康探针抽象基类

    子类实现 check_health()。可恢复的失败应转换为 ProbeResult 返回，
    只有当前任务确实被请求取消时，asyncio.CancelledError 才可以向上传播。
    """

    probe_type = 'base'

    def __init__(self, name: str, tags: Optional[Iterable[str]] = None):
        """
        初始化健康探针

        Args:
            name: 探针名称，不能为空
            tags: 用于筛选的标签

        Raises:
            ProbeError: 名称为空
        """
        if name is None or not str(name).strip():
            raise ProbeError("探针名称不能为空", probe_type=self.probe_type)

        self._name = str(name)
        self._tags = normalize_tags(tags)
        self.logger = get_logger(f'probe.{self.probe_type}.{self._name}')

    @property
    def name(self) -> str:
        return self._name

    @property
    def tags(self) -> Tuple[str, ...]:
        return self._tags

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        """是否带有任一给定标签（不区分大小写）"""
        wanted = {tag.casefold() for tag in tags}
        return any(tag.casefold() in wanted for tag in self._tags)

    @abstractmethod
    async def check_health(self) -> ProbeResult:
        """
        执行健康检查

        Returns:
            ProbeResult: 检查结果
        """

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(name={self._name!r}, tags={list(self._tags)!r})'
