"""外部进程探针"""

import asyncio
import shlex
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import psutil

from .base import BaseProbe, cancellation_requested
from .contract import parse_json_contract
from .factory import register_probe
from ..models.health_report import ProbeResult
from ..utils.exceptions import ProbeError

STDOUT_SNIPPET_LENGTH = 500

# 进程树被杀死后等待输出流关闭的最长时间（秒）
DRAIN_TIMEOUT = 5.0


@register_probe('process')
class ProcessProbe(BaseProbe):
    """外部进程探针

    启动子进程并捕获 stdout/stderr：
      - stdout 是契约 JSON：直接使用其中的状态
      - 否则按退出码映射：0 HEALTHY，1 DEGRADED，2 及其他 UNHEALTHY
      - 自身超时：杀死整个进程树后返回 DEGRADED
    调用方取消时同样会杀死进程树，然后继续传播取消。
    """

    probe_type = 'process'

    def __init__(self, name: str, tags: Optional[Iterable[str]], file_name: str,
                 args: Union[str, Sequence[str], None] = '',
                 timeout: float = 10.0):
        """
        初始化进程探针

        Args:
            name: 探针名称
            tags: 探针标签
            file_name: 可执行文件
            args: 参数，字符串会按 shell 规则拆分
            timeout: 进程最长运行时间（秒）

        Raises:
            ProbeError: 可执行文件或超时配置无效
        """
        super().__init__(name, tags)
        if not file_name or not str(file_name).strip():
            raise ProbeError("file_name 不能为空", probe_name=name, probe_type=self.probe_type)
        if timeout is None or timeout <= 0:
            raise ProbeError("timeout 必须是正数", probe_name=name, probe_type=self.probe_type)

        self.file_name = str(file_name)
        if args is None:
            self.args: List[str] = []
        elif isinstance(args, str):
            self.args = shlex.split(args)
        else:
            self.args = [str(arg) for arg in args]
        self.timeout = float(timeout)

    async def check_health(self) -> ProbeResult:
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            process = await asyncio.create_subprocess_exec(
                self.file_name, *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.logger.error(f"进程探针 {self.name} 启动 {self.file_name} 失败: {e}")
            return ProbeResult.from_exception(e)

        self.logger.debug(
            f"进程探针 {self.name} 已启动 {self.file_name} {' '.join(self.args)} "
            f"(PID={process.pid}, timeout={self.timeout}s)")

        try:
            stdout, stderr, timed_out = await self._run_process(process)
        except asyncio.CancelledError as e:
            self.logger.debug(f"进程探针 {self.name} 被取消，终止 PID {process.pid}")
            self._kill_process_tree(process)
            if cancellation_requested():
                raise
            return ProbeResult.from_exception(e)
        except Exception as e:
            elapsed_ms = int((loop.time() - started) * 1000)
            self.logger.error(f"进程探针 {self.name} 在 {elapsed_ms}ms 后失败: {e}", exc_info=True)
            self._kill_process_tree(process)
            return ProbeResult.from_exception(e)

        elapsed_ms = int((loop.time() - started) * 1000)
        if timed_out:
            self.logger.warning(f"进程探针 {self.name} 在 {self.timeout}s 后超时 (耗时={elapsed_ms}ms)")
            data = None
            if stdout.strip():
                data = {'stdout': stdout[:STDOUT_SNIPPET_LENGTH]}
            return ProbeResult.degraded(f"Timed out after {int(self.timeout * 1000)}ms", data)

        contract = parse_json_contract(stdout)
        if contract is not None:
            self.logger.debug(
                f"进程探针 {self.name} 解析契约 (exit={process.returncode}, 耗时={elapsed_ms}ms)")
            return contract

        result = map_exit_code(process.returncode, stderr)
        self.logger.debug(
            f"进程探针 {self.name} 完成 (exit={process.returncode}, "
            f"status={result.status.label}, 耗时={elapsed_ms}ms)")
        return result

    async def _run_process(self, process: asyncio.subprocess.Process) -> Tuple[str, str, bool]:
        """
        等待进程结束并读取输出

        Returns:
            Tuple[str, str, bool]: (stdout, stderr, 是否超时)
        """
        communicate = asyncio.ensure_future(process.communicate())
        scope = None
        try:
            async with asyncio.timeout(self.timeout) as scope:
                stdout, stderr = await asyncio.shield(communicate)
            return _decode(stdout), _decode(stderr), False
        except TimeoutError:
            if scope is None or not scope.expired():
                raise
        except asyncio.CancelledError:
            communicate.cancel()
            raise

        self._kill_process_tree(process)
        try:
            stdout, stderr = await asyncio.wait_for(communicate, DRAIN_TIMEOUT)
        except TimeoutError:
            self.logger.warning(f"进程探针 {self.name} 终止后输出流未关闭")
            return '', '', True
        return _decode(stdout), _decode(stderr), True

    def _kill_process_tree(self, process: asyncio.subprocess.Process) -> None:
        """终止进程及其所有子进程"""
        if process.returncode is not None:
            return

        try:
            parent = psutil.Process(process.pid)
            targets = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            return

        for target in targets:
            try:
                target.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.Error as e:
                self.logger.warning(f"进程探针 {self.name} 终止 PID {target.pid} 失败: {e}")

    @classmethod
    def from_config(cls, name: str, config: dict) -> 'ProcessProbe':
        return cls(
            name,
            config.get('tags'),
            file_name=config.get('file_name') or config.get('command'),
            args=config.get('args', ''),
            timeout=config.get('timeout', 10.0),
        )


def _decode(raw: Optional[bytes]) -> str:
    if not raw:
        return ''
    return raw.decode('utf-8', errors='replace')


def map_exit_code(code: int, stderr: Optional[str]) -> ProbeResult:
    """
    按退出码约定映射结果

    Args:
        code: 进程退出码
        stderr: 标准错误输出

    Returns:
        ProbeResult: 映射后的结果
    """
    trimmed = stderr.strip() if stderr and stderr.strip() else None
    if code == 0:
        return ProbeResult.healthy(trimmed or 'OK')
    if code == 1:
        return ProbeResult.degraded(trimmed or 'Degraded')
    if code == 2:
        return ProbeResult.unhealthy(trimmed or 'Unhealthy')
    return ProbeResult.unhealthy(f"Exit {code}: {trimmed or ''}".rstrip(': '))
