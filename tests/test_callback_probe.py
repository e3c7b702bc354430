"""测试回调探针和探针基类"""

import asyncio

import pytest

from health_probe.models.health_report import ProbeResult, ProbeStatus
from health_probe.probes.callback_probe import CallbackProbe
from health_probe.utils.exceptions import ProbeError


class TestBaseProbe:
    """测试探针基类行为"""

    def test_empty_name_rejected(self):
        """测试空名称"""
        with pytest.raises(ProbeError):
            CallbackProbe('  ', None, lambda: None)

    def test_tags_normalized(self):
        """测试标签规范化"""
        probe = CallbackProbe('cache', [' Live', 'live', '', 'ready'], lambda: None)
        assert probe.tags == ('Live', 'ready')

    def test_has_any_tag_case_insensitive(self):
        """测试标签匹配不区分大小写"""
        probe = CallbackProbe('cache', ['Live'], lambda: None)
        assert probe.has_any_tag(['LIVE'])
        assert not probe.has_any_tag(['ready'])
        assert not probe.has_any_tag([])

    def test_logger_name(self):
        """测试日志记录器名称"""
        probe = CallbackProbe('cache', None, lambda: None)
        assert probe.logger.name == 'health_probe.probe.callback.cache'


class TestCallbackProbe:
    """测试CallbackProbe"""

    def test_callback_required(self):
        """测试回调不能为空"""
        with pytest.raises(TypeError):
            CallbackProbe('cache', None, None)

    @pytest.mark.asyncio
    async def test_returns_callback_result(self):
        """测试返回回调结果"""
        async def check():
            return ProbeResult.degraded('warming up')

        result = await CallbackProbe('cache', None, check).check_health()
        assert result == ProbeResult.degraded('warming up')

    @pytest.mark.asyncio
    async def test_exception_becomes_unhealthy(self):
        """测试异常转换为UNHEALTHY"""
        async def check():
            raise ConnectionError('refused')

        result = await CallbackProbe('cache', None, check).check_health()
        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description == 'Exception: refused'

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """测试取消继续传播"""
        async def check():
            await asyncio.sleep(10)
            return ProbeResult.healthy()

        task = asyncio.create_task(CallbackProbe('cache', None, check).check_health())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_inner_cancellation_becomes_unhealthy(self):
        """测试回调内部被其他对象取消的等待转换为UNHEALTHY"""
        async def check():
            future = asyncio.get_running_loop().create_future()
            future.cancel()
            await future

        result = await CallbackProbe('cache', None, check).check_health()
        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description == 'Exception: CancelledError'
