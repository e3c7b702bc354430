"""健康检查端点边界

不包含 HTTP 服务器本身，只提供端点需要的部分：
选项、查询参数中的标签提取、状态码映射和响应体渲染。
"""

import json
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from .probe_registry import ProbeRegistry
from .probe_runner import ProbeRunner
from ..models.health_report import HealthReport, ProbeStatus, normalize_tags
from ..utils.exceptions import ConfigError
from ..utils.log_manager import get_logger
from ..utils.report_formatter import format_report, format_timespan

HTTP_OK = 200
HTTP_SERVICE_UNAVAILABLE = 503

RESPONSE_FORMATS = ('json', 'yaml', 'text')

CONTENT_TYPES = {
    'json': 'application/json; charset=utf-8',
    'yaml': 'application/yaml; charset=utf-8',
    'text': 'text/plain; charset=utf-8',
}


@dataclass
class HealthEndpointOptions:
    """健康检查端点选项"""
    pattern: str = '/health'
    default_tags: Tuple[str, ...] = ()
    treat_degraded_as_unhealthy: bool = False
    max_concurrency: int = field(default_factory=lambda: os.cpu_count() or 1)
    probe_timeout: float = 15.0
    response_format: str = 'json'

    def __post_init__(self):
        self.default_tags = normalize_tags(self.default_tags)
        if self.response_format not in RESPONSE_FORMATS:
            raise ConfigError(f"response_format 必须是以下值之一: {list(RESPONSE_FORMATS)}")

    @classmethod
    def from_config(cls, global_config: Optional[Dict[str, Any]]) -> 'HealthEndpointOptions':
        """从全局配置创建选项，缺省项使用默认值"""
        global_config = global_config or {}
        options = cls()
        return cls(
            pattern=global_config.get('pattern', options.pattern),
            default_tags=global_config.get('default_tags', ()),
            treat_degraded_as_unhealthy=global_config.get(
                'treat_degraded_as_unhealthy', options.treat_degraded_as_unhealthy),
            max_concurrency=global_config.get('max_concurrency', options.max_concurrency),
            probe_timeout=global_config.get('probe_timeout', options.probe_timeout),
            response_format=global_config.get('response_format', options.response_format),
        )


def extract_tags(query: Optional[Mapping[str, Any]]) -> Tuple[str, ...]:
    """
    从查询参数提取标签

    读取 ``tag`` 和 ``tags`` 两个参数，值可以是字符串或字符串列表，
    每个值按逗号拆分，去掉空白后不区分大小写去重。

    Args:
        query: 查询参数映射，例如 ``{'tag': ['live'], 'tags': 'db,cache'}``

    Returns:
        Tuple[str, ...]: 标签
    """
    if not query:
        return ()

    collected = []
    for key in ('tag', 'tags'):
        values = query.get(key)
        if values is None:
            continue
        if isinstance(values, str):
            values = [values]
        for value in values:
            if value:
                collected.extend(str(value).split(','))
    return normalize_tags(collected)


def determine_status_code(status: ProbeStatus, treat_degraded_as_unhealthy: bool = False) -> int:
    """HEALTHY 为 200；DEGRADED 默认为 200，可配置为 503；UNHEALTHY 为 503"""
    if status == ProbeStatus.HEALTHY:
        return HTTP_OK
    if status == ProbeStatus.DEGRADED and not treat_degraded_as_unhealthy:
        return HTTP_OK
    return HTTP_SERVICE_UNAVAILABLE


def render_report(report: HealthReport, response_format: str = 'json',
                  include_data: bool = True) -> Tuple[str, str]:
    """
    渲染报告响应体

    Returns:
        Tuple[str, str]: (响应体, Content-Type)
    """
    if response_format == 'text':
        body = format_report(report, include_data=include_data)
    else:
        document = report.to_dict()
        if not include_data:
            for probe in document['probes']:
                probe.pop('data', None)
        if response_format == 'yaml':
            body = yaml.safe_dump(_to_plain(document), allow_unicode=True, sort_keys=False, default_flow_style=False)
        elif response_format == 'json':
            body = json.dumps(document, ensure_ascii=False, indent=2, default=str)
        else:
            raise ValueError(f"不支持的响应格式: {response_format}")
    return body, CONTENT_TYPES[response_format]


def _to_plain(value: Any) -> Any:
    """把 data 中的特殊类型转换为 YAML 可以直接输出的基础类型"""
    if isinstance(value, dict):
        return {str(key): _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, timedelta):
        return format_timespan(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class HealthService:
    """健康检查服务，对注册表快照执行一次检查并映射状态码"""

    def __init__(self, registry: ProbeRegistry,
                 options: Optional[HealthEndpointOptions] = None,
                 runner: Optional[ProbeRunner] = None):
        self.registry = registry
        self.options = options or HealthEndpointOptions()
        self.runner = runner or ProbeRunner()
        self.logger = get_logger('health_service')

    async def check(self, tags: Optional[Iterable[str]] = None) -> Tuple[HealthReport, int]:
        """
        执行一次健康检查

        Args:
            tags: 请求中的标签，为空时使用默认标签

        Returns:
            Tuple[HealthReport, int]: (报告, HTTP 状态码)
        """
        requested = normalize_tags(tags)
        effective = requested or self.options.default_tags

        report = await self.runner.run(
            self.registry.snapshot(),
            tag_filter=effective,
            per_probe_timeout=self.options.probe_timeout,
            max_concurrency=self.options.max_concurrency,
        )
        status_code = determine_status_code(report.status, self.options.treat_degraded_as_unhealthy)
        self.logger.debug(f"{self.options.pattern} 返回 {status_code} (status={report.status_text})")
        return report, status_code

    async def handle(self, query: Optional[Mapping[str, Any]] = None,
                     include_data: bool = True) -> Tuple[int, str, str]:
        """
        处理一次端点请求

        Returns:
            Tuple[int, str, str]: (HTTP 状态码, 响应体, Content-Type)
        """
        report, status_code = await self.check(extract_tags(query))
        body, content_type = render_report(report, self.options.response_format, include_data)
        return status_code, body, content_type
