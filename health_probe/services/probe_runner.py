"""探针运行器

负责一次健康检查请求中所有探针的并发执行与结果汇总。
"""

import asyncio
import contextlib
import time
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models.health_report import (
    HealthProbeEntry, HealthReport, HealthSummary, ProbeResult, ProbeStatus,
    describe_exception, normalize_tags
)
from ..probes.base import BaseProbe, cancellation_requested
from ..utils.log_manager import get_logger


def select_probes(probes: Iterable[BaseProbe], tags: Sequence[str]) -> List[BaseProbe]:
    """按标签筛选探针，标签为空时全部保留"""
    probes = [probe for probe in probes if probe is not None]
    if not tags:
        return probes
    return [probe for probe in probes if probe.has_any_tag(tags)]


def determine_overall_status(entries: Iterable[HealthProbeEntry]) -> ProbeStatus:
    """
    计算总体状态

    遇到第一个 UNHEALTHY 立即返回；否则只要存在 DEGRADED 即为 DEGRADED。
    """
    degraded = False
    for entry in entries:
        if entry.status == ProbeStatus.UNHEALTHY:
            return ProbeStatus.UNHEALTHY
        if entry.status == ProbeStatus.DEGRADED:
            degraded = True
    return ProbeStatus.DEGRADED if degraded else ProbeStatus.HEALTHY


def build_report(entries: Iterable[HealthProbeEntry],
                 applied_tags: Tuple[str, ...] = ()) -> HealthReport:
    """
    汇总探针条目生成报告

    Args:
        entries: 探针条目
        applied_tags: 本次生效的标签

    Returns:
        HealthReport: 条目按名称（不区分大小写）升序排列的报告
    """
    ordered = tuple(sorted(entries, key=lambda entry: entry.name.casefold()))
    summary = HealthSummary(
        total=len(ordered),
        healthy=sum(1 for entry in ordered if entry.status == ProbeStatus.HEALTHY),
        degraded=sum(1 for entry in ordered if entry.status == ProbeStatus.DEGRADED),
        unhealthy=sum(1 for entry in ordered if entry.status == ProbeStatus.UNHEALTHY),
    )
    status = determine_overall_status(ordered)
    return HealthReport(
        status=status,
        status_text=status.label,
        probes=ordered,
        summary=summary,
        applied_tags=tuple(applied_tags),
    )


class ProbeRunner:
    """探针运行器

    每个探针一个任务，通过信号量限制并发，通过 asyncio.timeout 限制单个探针耗时。
    调用方取消 run() 时取消所有进行中的探针并继续传播取消，不返回部分报告。
    探针内部被其他对象取消的子操作按普通异常记录。
    """

    def __init__(self):
        self.logger = get_logger('probe_runner')

    async def run(self, probes: Iterable[BaseProbe],
                  tag_filter: Optional[Iterable[str]] = None,
                  per_probe_timeout: float = 0,
                  max_concurrency: int = 0) -> HealthReport:
        """
        执行一次健康检查

        Args:
            probes: 探针集合
            tag_filter: 标签过滤，为空时执行全部探针
            per_probe_timeout: 单个探针超时时间（秒），0 表示不限制
            max_concurrency: 最大并发数，小于等于 0 表示不限制

        Returns:
            HealthReport: 健康报告

        Raises:
            asyncio.CancelledError: 调用方取消
        """
        applied_tags = normalize_tags(tag_filter)
        selected = select_probes(probes, applied_tags)

        if not selected:
            self.logger.debug(f"没有匹配的探针 (tags={list(applied_tags)})")
            return build_report((), applied_tags)

        semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency and max_concurrency > 0 else None
        timeout = per_probe_timeout if per_probe_timeout and per_probe_timeout > 0 else 0

        self.logger.debug(
            f"开始执行 {len(selected)} 个探针 (tags={list(applied_tags)}, "
            f"timeout={timeout}s, max_concurrency={max_concurrency})")

        tasks = [asyncio.create_task(self._run_probe(probe, semaphore, timeout)) for probe in selected]
        try:
            entries = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            self.logger.debug("健康检查被取消，正在取消所有探针")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        report = build_report(entries, applied_tags)
        self.logger.info(
            f"健康检查完成: status={report.status_text}, total={report.summary.total}, "
            f"healthy={report.summary.healthy}, degraded={report.summary.degraded}, "
            f"unhealthy={report.summary.unhealthy}")
        return report

    async def _run_probe(self, probe: BaseProbe,
                         semaphore: Optional[asyncio.Semaphore],
                         timeout: float) -> HealthProbeEntry:
        """在并发限制内执行单个探针并生成条目"""
        async with semaphore if semaphore is not None else contextlib.nullcontext():
            started = time.perf_counter()
            error = None
            scope = None
            try:
                if timeout > 0:
                    async with asyncio.timeout(timeout) as scope:
                        result = await probe.check_health()
                else:
                    result = await probe.check_health()

                if result is None:
                    result = ProbeResult.unhealthy("Probe returned null result")
            except TimeoutError as e:
                if scope is not None and scope.expired():
                    self.logger.warning(f"探针 {probe.name} 在 {timeout}s 后超时")
                    result = ProbeResult.degraded(f"Timed out after {timeout:.1f}s")
                else:
                    self.logger.error(f"探针 {probe.name} 执行异常: {e}", exc_info=True)
                    error = describe_exception(e)
                    result = ProbeResult.from_exception(e)
            except asyncio.CancelledError as e:
                if cancellation_requested():
                    raise
                self.logger.error(f"探针 {probe.name} 的子操作被取消", exc_info=True)
                error = describe_exception(e)
                result = ProbeResult.from_exception(e)
            except Exception as e:
                self.logger.error(f"探针 {probe.name} 执行异常: {e}", exc_info=True)
                error = describe_exception(e)
                result = ProbeResult.from_exception(e)

            duration = timedelta(seconds=time.perf_counter() - started)

        self.logger.debug(
            f"探针 {probe.name} 完成: status={result.status.label}, "
            f"耗时={duration.total_seconds() * 1000:.1f}ms")

        return HealthProbeEntry(
            name=probe.name,
            tags=probe.tags,
            status=result.status,
            status_text=result.status.label,
            description=result.description,
            data=result.data,
            duration=duration,
            error=error,
        )
