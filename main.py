#!/usr/bin/env python3
"""
健康探针命令行入口

加载YAML配置，创建探针，执行一次健康检查并输出报告。
退出码：映射后的状态码为 200 时为 0，否则为 1；用户中断为 130。
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from health_probe import __version__
from health_probe.services.config_manager import ConfigManager
from health_probe.services.health_service import (
    HTTP_OK, HealthEndpointOptions, HealthService, render_report
)
from health_probe.services.probe_registry import ProbeRegistry
from health_probe.utils.exceptions import ConfigError, HealthProbeError
from health_probe.utils.log_manager import log_manager, get_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class HealthProbeApp:
    """健康探针应用程序，负责组装配置、注册表和检查服务"""

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        """初始化应用程序

        Args:
            config_path: 配置文件路径
            log_level: 覆盖配置文件中的日志级别
        """
        self.config_path = config_path
        self.log_level = log_level
        self.logger: Optional[logging.Logger] = None
        self.config_manager: Optional[ConfigManager] = None
        self.registry = ProbeRegistry()
        self.service: Optional[HealthService] = None

    def initialize(self):
        """加载配置并注册所有探针"""
        self.config_manager = ConfigManager(self.config_path)
        self.config_manager.load_config()
        global_config = self.config_manager.get_global_config()

        self._configure_logging(global_config)
        self.logger = get_logger('main')

        for probe in self.config_manager.build_probes():
            self.registry.register(probe)

        options = HealthEndpointOptions.from_config(global_config)
        self.service = HealthService(self.registry, options)
        self.logger.info(f"已注册 {len(self.registry)} 个探针")

    def _configure_logging(self, global_config: Dict[str, Any]):
        """配置日志系统

        Args:
            global_config: 全局配置
        """
        log_config = {
            'log_level': self.log_level or global_config.get('log_level', 'WARNING'),
            'enable_console': True,
            'enable_file': 'log_file' in global_config
        }

        if 'log_file' in global_config:
            log_config['log_file'] = global_config['log_file']
            log_config['max_file_size'] = global_config.get('max_log_size', 10 * 1024 * 1024)
            log_config['backup_count'] = global_config.get('log_backup_count', 5)

        log_manager.configure(log_config)

    async def check_once(self, tags: Optional[List[str]] = None):
        """执行一次健康检查，返回 (报告, 状态码)"""
        return await self.service.check(tags)


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='health-probe',
        description='健康探针 - 执行一组健康探针并汇总为一个总体状态',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s config.yaml                      # 执行全部探针并输出报告
  %(prog)s config.yaml --tag live           # 只执行带 live 标签的探针
  %(prog)s config.yaml --format json        # 以JSON格式输出报告
  %(prog)s --validate config.yaml           # 验证配置文件格式

支持的探针类型:
  - disk     磁盘剩余空间
  - http     HTTP 健康契约
  - process  外部进程（退出码或契约JSON）
  - script   Python 脚本

配置文件格式请参考 examples/config.yaml
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        help='YAML配置文件路径'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--validate',
        action='store_true',
        help='验证配置文件格式并退出'
    )

    parser.add_argument(
        '--tag', '-t',
        dest='tags',
        action='append',
        default=[],
        help='只执行带有该标签的探针，可重复指定，也可用逗号分隔'
    )

    parser.add_argument(
        '--format', '-f',
        dest='output_format',
        choices=['text', 'json', 'yaml'],
        default='text',
        help='报告输出格式（默认: text）'
    )

    parser.add_argument(
        '--no-data',
        action='store_true',
        help='不输出探针附带的数据'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='设置日志级别（覆盖配置文件设置）'
    )

    return parser


def split_tags(values: List[str]) -> List[str]:
    """把 --tag 参数按逗号拆分"""
    tags = []
    for value in values or []:
        tags.extend(part.strip() for part in value.split(',') if part.strip())
    return tags


def validate_config_file(config_path: str) -> bool:
    """验证配置文件

    Args:
        config_path: 配置文件路径

    Returns:
        验证是否成功
    """
    try:
        print(f"正在验证配置文件: {config_path}")

        config_manager = ConfigManager(config_path)
        config_manager.load_config()
        probes = config_manager.build_probes()

        print("✅ 配置文件验证成功!")
        print(f"   - 探针数量: {len(probes)}")
        for probe in probes:
            tags = ','.join(probe.tags) or '-'
            print(f"     * {probe.name} ({probe.probe_type}, tags={tags})")
        return True

    except HealthProbeError as e:
        print(f"❌ 配置文件验证失败: {e}")
        return False


async def main(argv: Optional[List[str]] = None) -> int:
    """主函数，返回退出码"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.config_file:
        parser.print_help()
        return EXIT_FAILURE

    config_path = args.config_file
    if not os.path.exists(config_path):
        print(f"配置文件不存在: {config_path}", file=sys.stderr)
        return EXIT_FAILURE

    if args.validate:
        return EXIT_OK if validate_config_file(config_path) else EXIT_FAILURE

    try:
        app = HealthProbeApp(config_path, log_level=args.log_level)
        app.initialize()

        report, status_code = await app.check_once(split_tags(args.tags))
        body, _ = render_report(report, args.output_format, include_data=not args.no_data)
        sys.stdout.write(body if body.endswith('\n') else body + '\n')
        return EXIT_OK if status_code == HTTP_OK else EXIT_FAILURE

    except ConfigError as e:
        print(f"配置错误: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except HealthProbeError as e:
        print(f"健康探针错误: {e.format_error()}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        log_manager.cleanup()


def run():
    """命令行入口"""
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        print("\n用户中断程序", file=sys.stderr)
        exit_code = EXIT_INTERRUPTED
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
