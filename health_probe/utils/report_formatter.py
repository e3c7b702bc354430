"""健康报告文本格式化

输出适合终端和日志的简洁文本：

    Status: degraded
    GeneratedAt: 2025-11-17T10:30:45.1234560+00:00
    Summary: total=2 healthy=1 degraded=1 unhealthy=0
    Tags: live,ready
    Probes:
      - name=disk status=degraded duration=3ms desc="Free 1.00 GB of 20.00 GB (5.00% free)"
          free_percent=5.0
"""

from datetime import date, datetime, timedelta
from typing import Any, List

from ..models.health_report import HealthReport

DATA_INDENT = '      '


def format_report(report: HealthReport, include_data: bool = True) -> str:
    """
    把报告格式化为多行文本

    Args:
        report: 健康报告
        include_data: 是否输出每个探针的 data 键值行

    Returns:
        str: 以换行结尾的文本
    """
    if report is None:
        raise TypeError("report 不能为空")

    summary = report.summary
    lines: List[str] = [
        f"Status: {report.status_text}",
        f"GeneratedAt: {format_timestamp(report.generated_at)}",
        f"Summary: total={summary.total} healthy={summary.healthy} "
        f"degraded={summary.degraded} unhealthy={summary.unhealthy}",
    ]
    if report.applied_tags:
        lines.append(f"Tags: {','.join(report.applied_tags)}")

    lines.append("Probes:")
    for entry in report.probes:
        line = f"  - name={entry.name} status={entry.status_text} duration={format_duration(entry.duration)}"
        if entry.description and entry.description.strip():
            line += f' desc="{_escape(entry.description)}"'
        if entry.error and entry.error.strip():
            line += f' error="{_escape(entry.error)}"'
        lines.append(line)

        if include_data and entry.data:
            for key, value in entry.data.items():
                lines.append(f"{DATA_INDENT}{key}={render_value(value)}")

    return '\n'.join(lines) + '\n'


def format_duration(duration: timedelta) -> str:
    """
    格式化耗时

    小于 1ms 为 ``<1ms``，小于 1s 为整数毫秒，小于 60s 为最多三位小数的秒，
    否则为 ``[d.]hh:mm:ss[.fffffff]``。
    """
    if duration < timedelta(milliseconds=1):
        return '<1ms'
    if duration < timedelta(seconds=1):
        return f'{duration // timedelta(milliseconds=1)}ms'
    seconds = duration.total_seconds()
    if seconds < 60:
        return f'{seconds:.3f}'.rstrip('0').rstrip('.') + 's'
    return format_timespan(duration)


def format_timespan(value: timedelta) -> str:
    """按 ``[-][d.]hh:mm:ss[.fffffff]`` 格式化时间间隔"""
    sign = '-' if value < timedelta(0) else ''
    value = abs(value)
    hours, remainder = divmod(value.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    text = f'{hours:02d}:{minutes:02d}:{seconds:02d}'
    if value.days:
        text = f'{value.days}.{text}'
    if value.microseconds:
        text += f'.{value.microseconds * 10:07d}'
    return sign + text


def format_timestamp(value: datetime) -> str:
    """ISO-8601 往返格式：7 位小数，带时区时追加 ±HH:MM"""
    text = value.strftime('%Y-%m-%dT%H:%M:%S') + f'.{value.microsecond * 10:07d}'
    offset = value.utcoffset()
    if offset is None:
        return text

    total_minutes = int(offset.total_seconds() // 60)
    sign = '+' if total_minutes >= 0 else '-'
    hours, minutes = divmod(abs(total_minutes), 60)
    return f'{text}{sign}{hours:02d}:{minutes:02d}'


def render_value(value: Any) -> str:
    """渲染 data 中的单个值"""
    if value is None:
        return '<null>'
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, timedelta):
        return format_timespan(value)
    return str(value)


def _escape(text: str) -> str:
    return text.replace('"', '\\"').replace('\n', '\\n').replace('\r', '\\r')
