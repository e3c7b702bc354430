"""状态标签解析

把脚本或外部系统返回的宽松状态字符串（"ok"、"warn"、"fail" 等）
映射为 ProbeStatus。无法识别的标签一律视为 UNHEALTHY。
"""

from typing import Any, Optional

from ..models.health_report import ProbeStatus

STATUS_OK = 'ok'
STATUS_HEALTHY = 'healthy'
STATUS_WARN = 'warn'
STATUS_WARNING = 'warning'
STATUS_DEGRADED = 'degraded'
STATUS_FAIL = 'fail'
STATUS_FAILED = 'failed'
STATUS_UNHEALTHY = 'unhealthy'

STATUS_SYNONYMS = {
    STATUS_OK: ProbeStatus.HEALTHY,
    STATUS_HEALTHY: ProbeStatus.HEALTHY,
    STATUS_WARN: ProbeStatus.DEGRADED,
    STATUS_WARNING: ProbeStatus.DEGRADED,
    STATUS_DEGRADED: ProbeStatus.DEGRADED,
    STATUS_FAIL: ProbeStatus.UNHEALTHY,
    STATUS_FAILED: ProbeStatus.UNHEALTHY,
    STATUS_UNHEALTHY: ProbeStatus.UNHEALTHY,
}


def try_parse_status(token: Any) -> Optional[ProbeStatus]:
    """
    尝试解析状态标签

    先按规范名称（不区分大小写）精确匹配，再查同义词表。

    Args:
        token: 状态标签，非字符串会先转换为字符串

    Returns:
        Optional[ProbeStatus]: 识别成功返回状态，否则返回 None
    """
    if token is None:
        return None
    if isinstance(token, ProbeStatus):
        return token

    text = str(token).strip()
    if not text:
        return None

    canonical = ProbeStatus.__members__.get(text.upper())
    if canonical is not None:
        return canonical

    return STATUS_SYNONYMS.get(text.lower())


def resolve_status(token: Any) -> ProbeStatus:
    """
    解析状态标签，永不失败

    Args:
        token: 状态标签

    Returns:
        ProbeStatus: 识别出的状态；空值或未知标签返回 UNHEALTHY
    """
    status = try_parse_status(token)
    return ProbeStatus.UNHEALTHY if status is None else status
