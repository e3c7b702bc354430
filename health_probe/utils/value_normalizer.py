"""动态值规范化

脚本探针返回的值形状在运行前未知，可能包含包装对象、自引用结构或
任意深度的嵌套。normalize_value 把它们转换成只由基本类型、
有序字符串键字典和列表组成的树，保证可以安全地序列化为 JSON。

循环引用不做检测，而是依靠固定的深度上限截断：超过上限的值
直接折叠为字符串表示。
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

MAX_NORMALIZE_DEPTH = 8

SCALAR_TYPES = (bool, int, float, Decimal, datetime, date, time, timedelta)


class ScriptObject:
    """脚本运行时的透明包装对象

    许多嵌入式脚本运行时会把原生值装箱，对外暴露底层对象（base_object）
    以及一组附加属性（properties）。
    """

    __slots__ = ('base_object', 'properties')

    def __init__(self, base_object: Any = None, properties: Optional[Mapping] = None):
        self.base_object = base_object
        self.properties = dict(properties or {})

    def get_property(self, *names: str) -> Any:
        """按顺序查找第一个存在且非空的属性"""
        for name in names:
            value = self.properties.get(name)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:
        return f'ScriptObject({self.base_object!r}, properties={self.properties!r})'

    def __str__(self) -> str:
        if self.base_object is None or self.base_object is self:
            return repr(self)
        return str(self.base_object)


def normalize_value(value: Any, depth: int = 0) -> Any:
    """
    把任意动态值转换为 JSON 安全的结构

    Args:
        value: 待规范化的值
        depth: 当前递归深度

    Returns:
        规范化后的值
    """
    if value is None:
        return None
    if depth > MAX_NORMALIZE_DEPTH:
        return str(value)
    if isinstance(value, ScriptObject):
        return _normalize_script_object(value, depth)
    if isinstance(value, SCALAR_TYPES) or isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    if isinstance(value, Mapping):
        return normalize_mapping(value, depth)
    if isinstance(value, Iterable):
        return _normalize_iterable(value, depth)
    return value


def _normalize_script_object(wrapper: ScriptObject, depth: int) -> Any:
    base = wrapper.base_object
    if base is None or base is wrapper:
        return str(wrapper)
    return normalize_value(base, depth + 1)


def normalize_mapping(mapping: Mapping, depth: int = 0) -> Dict[str, Any]:
    """
    重建为字符串键的有序字典，跳过空键

    Args:
        mapping: 原始映射
        depth: 当前递归深度

    Returns:
        Dict[str, Any]: 规范化后的字典
    """
    result: Dict[str, Any] = {}
    for key, item in mapping.items():
        if key is None:
            continue
        text_key = str(key)
        if not text_key.strip():
            continue
        result[text_key] = normalize_value(item, depth + 1)
    return result


def _normalize_iterable(items: Iterable, depth: int) -> List[Any]:
    return [normalize_value(item, depth + 1) for item in items]


def normalize_data(data: Any) -> Optional[Dict[str, Any]]:
    """
    规范化探针附带的数据字典

    值规范化后为 None 的条目会被丢弃；结果为空时返回 None。

    Args:
        data: 探针返回的 data 字段

    Returns:
        Optional[Dict[str, Any]]: 规范化后的数据，或 None
    """
    if isinstance(data, ScriptObject):
        data = data.base_object
    if not isinstance(data, Mapping) or not data:
        return None

    normalized = {
        key: item
        for key, item in normalize_mapping(data).items()
        if item is not None
    }
    return normalized or None
