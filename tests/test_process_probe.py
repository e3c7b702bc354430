"""测试外部进程探针"""

import asyncio
import sys
import time

import pytest

from health_probe.models.health_report import ProbeStatus
from health_probe.probes.process_probe import ProcessProbe, map_exit_code
from health_probe.utils.exceptions import ProbeError


def python_probe(code: str, timeout: float = 10.0) -> ProcessProbe:
    return ProcessProbe('proc', ['ops'], file_name=sys.executable, args=['-c', code], timeout=timeout)


class TestMapExitCode:
    """测试退出码映射"""

    def test_known_codes(self):
        """测试约定的退出码"""
        assert map_exit_code(0, '').description == 'OK'
        assert map_exit_code(0, '').status == ProbeStatus.HEALTHY
        assert map_exit_code(1, '').status == ProbeStatus.DEGRADED
        assert map_exit_code(1, '').description == 'Degraded'
        assert map_exit_code(2, None).status == ProbeStatus.UNHEALTHY
        assert map_exit_code(2, None).description == 'Unhealthy'

    def test_stderr_used_as_description(self):
        """测试stderr作为描述"""
        assert map_exit_code(1, '  disk nearly full \n').description == 'disk nearly full'

    def test_other_codes(self):
        """测试其他退出码"""
        assert map_exit_code(3, 'boom').description == 'Exit 3: boom'
        assert map_exit_code(137, '').description == 'Exit 137'
        assert map_exit_code(-9, '').status == ProbeStatus.UNHEALTHY


class TestProcessProbe:
    """测试ProcessProbe"""

    def test_validation(self):
        """测试构造校验"""
        with pytest.raises(ProbeError):
            ProcessProbe('proc', None, file_name='')
        with pytest.raises(ProbeError):
            ProcessProbe('proc', None, file_name='true', timeout=0)

    def test_string_args_are_split(self):
        """测试字符串参数按shell规则拆分"""
        probe = ProcessProbe('proc', None, file_name='echo', args='-n "hello world"')
        assert probe.args == ['-n', 'hello world']

    @pytest.mark.asyncio
    @pytest.mark.parametrize('code, expected', [
        (0, ProbeStatus.HEALTHY),
        (1, ProbeStatus.DEGRADED),
        (2, ProbeStatus.UNHEALTHY),
        (3, ProbeStatus.UNHEALTHY),
    ])
    async def test_exit_codes(self, code, expected):
        """测试退出码映射"""
        result = await python_probe(f'import sys; sys.exit({code})').check_health()
        assert result.status == expected

    @pytest.mark.asyncio
    async def test_exit_code_with_stderr(self):
        """测试非约定退出码带stderr"""
        code = 'import sys; sys.stderr.write("broken pipe"); sys.exit(3)'
        result = await python_probe(code).check_health()

        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description == 'Exit 3: broken pipe'

    @pytest.mark.asyncio
    async def test_json_contract_from_stdout(self):
        """测试stdout契约优先于退出码"""
        code = ('import json, sys; '
                'print(json.dumps({"status": "warn", "description": "lagging", "data": {"lag": 7}})); '
                'sys.exit(2)')
        result = await python_probe(code).check_health()

        assert result.status == ProbeStatus.DEGRADED
        assert result.description == 'lagging'
        assert result.data == {'lag': 7}

    @pytest.mark.asyncio
    async def test_own_timeout_kills_process(self):
        """测试自身超时后终止进程并返回DEGRADED"""
        code = 'import sys, time; print("starting", flush=True); time.sleep(30)'
        started = time.monotonic()
        result = await python_probe(code, timeout=0.5).check_health()
        elapsed = time.monotonic() - started

        assert result.status == ProbeStatus.DEGRADED
        assert result.description == 'Timed out after 500ms'
        assert result.data['stdout'].startswith('starting')
        assert elapsed < 10

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        """测试可执行文件不存在"""
        probe = ProcessProbe('proc', None, file_name='/nonexistent/definitely-missing')
        result = await probe.check_health()

        assert result.status == ProbeStatus.UNHEALTHY
        assert result.description.startswith('Exception: ')

    @pytest.mark.asyncio
    async def test_caller_cancellation_kills_process(self):
        """测试调用方取消时终止进程并继续传播取消"""
        probe = python_probe('import time; time.sleep(30)', timeout=60)
        task = asyncio.create_task(probe.check_health())
        await asyncio.sleep(0.5)
        started = time.monotonic()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert time.monotonic() - started < 5

    def test_from_config(self):
        """测试从配置创建"""
        probe = ProcessProbe.from_config('proc', {
            'type': 'process', 'command': 'uptime', 'args': '-p', 'timeout': 3, 'tags': ['live']
        })
        assert probe.file_name == 'uptime'
        assert probe.args == ['-p']
        assert probe.timeout == 3.0
