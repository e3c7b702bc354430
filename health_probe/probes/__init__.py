"""健康探针模块

导入内置探针模块以完成类型注册。
"""

from .base import BaseProbe
from .factory import ProbeFactory, probe_factory, register_probe
from .callback_probe import CallbackProbe
from .disk_space_probe import DiskSpaceProbe
from .http_probe import HttpProbe
from .process_probe import ProcessProbe
from .script_probe import (
    ScriptProbe, ScriptProbeFactory, ScriptLanguage, ProbeContext,
    convert_script_output, script_probe_factory
)

__all__ = [
    'BaseProbe', 'ProbeFactory', 'probe_factory', 'register_probe',
    'CallbackProbe', 'DiskSpaceProbe', 'HttpProbe', 'ProcessProbe',
    'ScriptProbe', 'ScriptProbeFactory', 'ScriptLanguage', 'ProbeContext',
    'convert_script_output', 'script_probe_factory'
]
