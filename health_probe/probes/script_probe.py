"""脚本探针

脚本探针的检查逻辑来自运行时提供的源代码，由编译器转换为可调用对象。
ScriptProbe 负责调用它、把返回的动态值解码为 ProbeResult，
并保证除调用方取消或超时以外的任何异常都不会逃逸到运行器。

返回值按以下顺序解码，第一个成功的解码器生效：
  1. 已经是 ProbeResult：原样返回
  2. 带 status 字段（字典键、包装对象属性或普通对象属性）
  3. 整个值是可识别的状态字符串：同时作为描述
  4. 列表/元组：从最后一个元素开始向前依次尝试
都失败时返回 UNHEALTHY "<语言> probe produced no recognizable result."

脚本源代码来自受信任的配置，编译后在进程内执行，不做沙箱隔离。
"""

import asyncio
import inspect
import textwrap
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Optional

from .base import BaseProbe, cancellation_requested
from .factory import register_probe
from ..models.health_report import ProbeResult, ProbeStatus
from ..utils.exceptions import ProbeError, ErrorCode
from ..utils.log_manager import get_logger
from ..utils.status_labels import resolve_status, try_parse_status
from ..utils.value_normalizer import ScriptObject, normalize_data

_MISSING = object()


class ScriptLanguage(Enum):
    """脚本语言"""
    PYTHON = 'python'
    NATIVE = 'native'


@dataclass(frozen=True)
class ProbeContext:
    """每次调用时交给脚本的显式上下文"""
    name: str
    arguments: Mapping = field(default_factory=dict)
    state: Mapping = field(default_factory=dict)
    logger: Any = None


def _lookup(value: Any, key: str) -> Any:
    """按 key / Key 查找字段，依次尝试包装对象属性、映射键和对象属性"""
    candidates = (key, key.capitalize())
    if isinstance(value, ScriptObject):
        found = value.get_property(*candidates)
        if found is not None:
            return found
        value = value.base_object

    if isinstance(value, Mapping):
        for candidate in candidates:
            found = value.get(candidate)
            if found is not None:
                return found
        return _MISSING

    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return _MISSING

    for candidate in candidates:
        found = getattr(value, candidate, None)
        if found is not None:
            return found
    return _MISSING


def _from_probe_result(value: Any) -> Optional[ProbeResult]:
    if isinstance(value, ScriptObject):
        value = value.base_object
    return value if isinstance(value, ProbeResult) else None


def _from_status_field(value: Any) -> Optional[ProbeResult]:
    status_value = _lookup(value, 'status')
    if status_value is _MISSING:
        return None

    if isinstance(status_value, ScriptObject):
        status_value = status_value.base_object
    status = status_value if isinstance(status_value, ProbeStatus) else resolve_status(status_value)

    description = _lookup(value, 'description')
    description = None if description is _MISSING else str(description)

    data = _lookup(value, 'data')
    data = None if data is _MISSING else normalize_data(data)
    return ProbeResult(status, description, data)


def _from_status_string(value: Any) -> Optional[ProbeResult]:
    if isinstance(value, ScriptObject):
        value = value.base_object
    if not isinstance(value, str):
        return None
    status = try_parse_status(value)
    return None if status is None else ProbeResult(status, value)


def _from_output_sequence(value: Any) -> Optional[ProbeResult]:
    if not isinstance(value, (list, tuple)):
        return None
    for item in reversed(value):
        for extractor in _ITEM_EXTRACTORS:
            result = extractor(item)
            if result is not None:
                return result
    return None


_ITEM_EXTRACTORS = (_from_probe_result, _from_status_field, _from_status_string)
_EXTRACTORS = _ITEM_EXTRACTORS + (_from_output_sequence,)


def convert_script_output(value: Any) -> Optional[ProbeResult]:
    """
    把脚本返回值解码为 ProbeResult

    Args:
        value: 脚本返回的任意值

    Returns:
        Optional[ProbeResult]: 无法识别时返回 None
    """
    for extractor in _EXTRACTORS:
        result = extractor(value)
        if result is not None:
            return result
    return None


@register_probe('script')
class ScriptProbe(BaseProbe):
    """由外部编译出的可调用对象实现的探针"""

    probe_type = 'script'

    def __init__(self, name: str, tags: Optional[Iterable[str]],
                 body: Callable[[ProbeContext], Any],
                 arguments: Optional[Mapping] = None,
                 state_provider: Optional[Callable[[], Mapping]] = None,
                 language: ScriptLanguage = ScriptLanguage.PYTHON):
        """
        初始化脚本探针

        Args:
            name: 探针名称
            tags: 探针标签
            body: 检查逻辑，接收 ProbeContext；协程函数会被 await，
                  普通函数在线程中执行
            arguments: 注册时绑定的参数
            state_provider: 返回共享状态快照的函数，每次调用都会重新获取
            language: 脚本语言，仅用于日志和描述
        """
        super().__init__(name, tags)
        if body is None or not callable(body):
            raise ProbeError("脚本探针需要可调用的 body", probe_name=name, probe_type=self.probe_type)
        self._body = body
        self._arguments = MappingProxyType(dict(arguments or {}))
        self._state_provider = state_provider
        self.language = language

    @property
    def language_label(self) -> str:
        return 'Python' if self.language is ScriptLanguage.PYTHON else self.language.value

    def _build_context(self) -> ProbeContext:
        state = MappingProxyType(dict(self._state_provider())) if self._state_provider else MappingProxyType({})
        return ProbeContext(name=self.name, arguments=self._arguments, state=state, logger=self.logger)

    async def _invoke(self, context: ProbeContext) -> Any:
        if inspect.iscoroutinefunction(self._body):
            value = await self._body(context)
        else:
            value = await asyncio.to_thread(self._body, context)
        if inspect.isawaitable(value):
            value = await value
        return value

    async def check_health(self) -> ProbeResult:
        try:
            self.logger.debug(f"{self.language_label} 脚本探针 {self.name} 开始执行")
            value = await self._invoke(self._build_context())
        except asyncio.CancelledError as e:
            if cancellation_requested():
                raise
            self.logger.error(f"{self.language_label} 脚本探针 {self.name} 的子操作被取消", exc_info=True)
            return ProbeResult.from_exception(e)
        except Exception as e:
            self.logger.error(f"{self.language_label} 脚本探针 {self.name} 执行失败: {e}", exc_info=True)
            return ProbeResult.from_exception(e)

        result = convert_script_output(value)
        if result is None:
            self.logger.warning(f"{self.language_label} 脚本探针 {self.name} 返回了无法识别的结果: {value!r}")
            return ProbeResult.unhealthy(f"{self.language_label} probe produced no recognizable result.")

        self.logger.debug(f"{self.language_label} 脚本探针 {self.name} 完成 status={result.status.label}")
        return result

    @classmethod
    def from_config(cls, name: str, config: dict) -> 'ScriptProbe':
        return script_probe_factory.create(
            name,
            config.get('tags'),
            config.get('language', ScriptLanguage.PYTHON.value),
            config.get('code'),
            arguments=config.get('arguments'),
        )


class ScriptProbeFactory:
    """把脚本源代码编译为 ScriptProbe"""

    FUNCTION_NAME = '__health_probe__'

    def __init__(self):
        self.logger = get_logger('probe.script_factory')

    def create(self, name: str, tags: Optional[Iterable[str]],
               language: Any, code: str,
               arguments: Optional[Mapping] = None,
               state_provider: Optional[Callable[[], Mapping]] = None) -> ScriptProbe:
        """
        编译脚本并创建探针

        Args:
            name: 探针名称
            tags: 探针标签
            language: ScriptLanguage 或其字符串值
            code: 脚本源代码
            arguments: 绑定给脚本的参数
            state_provider: 共享状态快照函数

        Returns:
            ScriptProbe: 脚本探针

        Raises:
            ProbeError: 语言不支持、代码为空或编译失败
        """
        language = self._resolve_language(name, language)
        if not isinstance(code, str) or not code.strip():
            raise ProbeError("脚本探针代码不能为空", probe_name=name, probe_type='script')

        if language is ScriptLanguage.NATIVE:
            raise ProbeError(
                "原生探针请使用 CallbackProbe",
                error_code=ErrorCode.UNSUPPORTED_SCRIPT_LANGUAGE,
                probe_name=name,
                probe_type='script'
            )

        body = self.compile_python(name, code, arguments)
        return ScriptProbe(name, tags, body, arguments=arguments,
                           state_provider=state_provider, language=language)

    def _resolve_language(self, name: str, language: Any) -> ScriptLanguage:
        if isinstance(language, ScriptLanguage):
            return language
        try:
            return ScriptLanguage(str(language).strip().lower())
        except ValueError:
            raise ProbeError(
                f"不支持的脚本语言: {language!r}",
                error_code=ErrorCode.UNSUPPORTED_SCRIPT_LANGUAGE,
                probe_name=name,
                probe_type='script'
            ) from None

    def compile_python(self, name: str, code: str,
                       arguments: Optional[Mapping] = None) -> Callable[[ProbeContext], Any]:
        """
        把 Python 源代码编译为 async 函数体

        源代码作为 ``async def __health_probe__(context)`` 的函数体，
        arguments 同时作为模块级名称暴露给脚本。

        Raises:
            ProbeError: 编译失败
        """
        source = (
            f"async def {self.FUNCTION_NAME}(context):\n"
            + textwrap.indent(textwrap.dedent(code).strip('\n'), '    ')
            + '\n'
        )
        namespace: Dict[str, Any] = {
            '__name__': f'health_probe_script_{name}',
            'ProbeResult': ProbeResult,
            'ProbeStatus': ProbeStatus,
            'asyncio': asyncio,
        }
        namespace.update(dict(arguments or {}))

        try:
            compiled = compile(source, f'<health-probe:{name}>', 'exec')
            exec(compiled, namespace)
        except SyntaxError as e:
            self.logger.error(f"Python 健康探针 {name} 编译失败: {e}")
            raise ProbeError(
                f"Python 健康探针编译失败: {e}",
                error_code=ErrorCode.PROBE_COMPILATION_ERROR,
                probe_name=name,
                probe_type='script',
                cause=e
            ) from e

        return namespace[self.FUNCTION_NAME]


script_probe_factory = ScriptProbeFactory()
