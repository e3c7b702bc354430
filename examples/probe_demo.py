#!/usr/bin/env python3
"""
健康探针演示

展示在代码中组装探针：
1. 注册回调探针和 Python 脚本探针
2. 按标签执行一次健康检查
3. 输出文本报告和状态码
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from health_probe import DiskSpaceProbe, HealthEndpointOptions, HealthService, ProbeRegistry, ProbeResult
from health_probe.utils.log_manager import configure_logging
from health_probe.utils.report_formatter import format_report


async def cache_probe():
    await asyncio.sleep(0.01)
    return ProbeResult.healthy("cache reachable", {'hit_ratio': 0.93})


async def slow_probe():
    await asyncio.sleep(5)
    return ProbeResult.healthy("never reached")


async def demo():
    print("🚀 健康探针演示")
    print("=" * 50)

    registry = ProbeRegistry()
    registry.add_callback('cache', cache_probe, tags=['live', 'ready'])
    registry.add_callback('slow-dependency', slow_probe, tags=['ready'])
    registry.register(DiskSpaceProbe('disk', tags=['live'], path='/'))
    registry.add_script(
        'queue',
        """
        depth = context.state.get('depth', 0)
        if depth > limit:
            return 'degraded'
        return {'status': 'ok', 'description': f'depth={depth}'}
        """,
        tags=['ready'],
        arguments={'limit': 10},
        state_provider=lambda: {'depth': 3},
    )

    options = HealthEndpointOptions(probe_timeout=1.0, max_concurrency=2)
    service = HealthService(registry, options)

    for tags in ([], ['live'], ['ready']):
        report, status_code = await service.check(tags)
        print(f"\n--- tags={tags or '全部'} -> HTTP {status_code}")
        print(format_report(report), end='')


if __name__ == "__main__":
    configure_logging({'log_level': 'WARNING'})
    asyncio.run(demo())
