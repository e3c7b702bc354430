"""HTTP 契约探针"""

import asyncio
from typing import Iterable, Optional

import aiohttp

from .base import BaseProbe
from .contract import parse_json_contract
from .factory import register_probe
from ..models.health_report import ProbeResult
from ..utils.exceptions import ProbeError


@register_probe('http')
class HttpProbe(BaseProbe):
    """HTTP 契约探针

    对目标地址发起 GET 请求并按健康契约解释响应体：
      - 响应体是契约 JSON：直接使用其中的状态
      - 非契约响应：2xx 为 DEGRADED，其余为 UNHEALTHY（描述中带状态码）
      - 自身超时：DEGRADED
    调用方取消会继续向上传播。
    """

    probe_type = 'http'

    def __init__(self, name: str, tags: Optional[Iterable[str]], url: str,
                 timeout: float = 5.0,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        初始化 HTTP 探针

        Args:
            name: 探针名称
            tags: 探针标签
            url: 目标地址，必须是 http:// 或 https://
            timeout: 请求超时时间（秒）
            session: 可复用的 aiohttp 会话，为空时每次检查临时创建

        Raises:
            ProbeError: 地址或超时配置无效
        """
        super().__init__(name, tags)
        if not isinstance(url, str) or not url.startswith(('http://', 'https://')):
            raise ProbeError(f"无效的URL: {url!r}", probe_name=name, probe_type=self.probe_type)
        if timeout is None or timeout <= 0:
            raise ProbeError("timeout 必须是正数", probe_name=name, probe_type=self.probe_type)

        self.url = url
        self.timeout = float(timeout)
        self._session = session

    async def check_health(self) -> ProbeResult:
        scope = None
        try:
            self.logger.debug(f"HTTP探针 {self.name} 发送 GET {self.url} (timeout={self.timeout}s)")
            async with asyncio.timeout(self.timeout) as scope:
                status_code, body = await self._fetch()
        except TimeoutError as e:
            if scope is not None and scope.expired():
                self.logger.debug(f"HTTP探针 {self.name} 在 {self.timeout}s 后超时")
                return ProbeResult.degraded(f"Timeout after {self.timeout}s")
            self.logger.error(f"HTTP探针 {self.name} 请求失败: {e}")
            return ProbeResult.from_exception(e)
        except aiohttp.ClientError as e:
            self.logger.error(f"HTTP探针 {self.name} 客户端错误: {e}")
            return ProbeResult.from_exception(e)
        except Exception as e:
            self.logger.error(f"HTTP探针 {self.name} 检查异常: {e}", exc_info=True)
            return ProbeResult.from_exception(e)

        self.logger.debug(f"HTTP探针 {self.name} 收到状态码 {status_code}, 长度={len(body)}")

        contract = parse_json_contract(body)
        if contract is not None:
            self.logger.debug(f"HTTP探针 {self.name} 解析契约状态={contract.status.label}")
            return contract

        if 200 <= status_code < 300:
            return ProbeResult.degraded("No contract JSON")
        return ProbeResult.unhealthy(f"HTTP {status_code}")

    async def _fetch(self):
        """发送请求，返回 (状态码, 响应体)"""
        if self._session is not None:
            return await self._get(self._session)

        async with aiohttp.ClientSession() as session:
            return await self._get(session)

    async def _get(self, session: aiohttp.ClientSession):
        async with session.get(self.url) as response:
            body = await response.text(errors='replace')
            return response.status, body

    @classmethod
    def from_config(cls, name: str, config: dict) -> 'HttpProbe':
        return cls(
            name,
            config.get('tags'),
            url=config.get('url'),
            timeout=config.get('timeout', 5.0),
        )
