"""进程内回调探针"""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional

from .base import BaseProbe, cancellation_requested
from ..models.health_report import ProbeResult


class CallbackProbe(BaseProbe):
    """直接包装一个进程内异步函数的探针"""

    probe_type = 'callback'

    def __init__(self, name: str, tags: Optional[Iterable[str]],
                 callback: Callable[[], Awaitable[ProbeResult]]):
        """
        初始化回调探针

        Args:
            name: 探针名称
            tags: 探针标签
            callback: 无参异步函数，返回 ProbeResult
        """
        super().__init__(name, tags)
        if callback is None:
            raise TypeError("callback 不能为空")
        self._callback = callback

    async def check_health(self) -> ProbeResult:
        try:
            return await self._callback()
        except asyncio.CancelledError as e:
            if cancellation_requested():
                raise
            self.logger.error(f"回调探针 {self.name} 的子操作被取消", exc_info=True)
            return ProbeResult.from_exception(e)
        except Exception as e:
            self.logger.error(f"回调探针 {self.name} 执行异常: {e}", exc_info=True)
            return ProbeResult.from_exception(e)
