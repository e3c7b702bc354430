"""健康探针 JSON 契约解析

外部系统（HTTP 接口、外部进程）按约定输出如下 JSON 时可以被直接理解：

    {"status": "healthy", "description": "...", "data": {...}}
"""

import json
from typing import Optional

from ..models.health_report import ProbeResult
from ..utils.status_labels import resolve_status
from ..utils.value_normalizer import normalize_data


def parse_json_contract(text: Optional[str]) -> Optional[ProbeResult]:
    """
    尝试把文本解析为健康契约

    Args:
        text: HTTP 响应体或进程标准输出

    Returns:
        Optional[ProbeResult]: 解析成功返回结果，否则返回 None
    """
    if not text or not text.strip():
        return None

    try:
        document = json.loads(text)
    except ValueError:
        return None

    if not isinstance(document, dict) or 'status' not in document:
        return None

    status = resolve_status(document.get('status'))
    description = document.get('description')
    if description is not None and not isinstance(description, str):
        description = str(description)

    return ProbeResult(status, description, normalize_data(document.get('data')))
