"""
CLI 模块

distfetch [选项] [manifest 文件] <get|verify|digest|inject> <目标文件>...
"""

import asyncio
from typing import List, Optional, Tuple

import click
from loguru import logger

from distfetch import __version__
from distfetch.config import DistFetchConfig, resolve_config
from distfetch.exceptions import DistFetchError, NotImplementedCommandError, UsageError
from distfetch.logger import setup_logger
from distfetch.manifest import ManifestStore
from distfetch.workflow import GetWorkflow, VerifyWorkflow

COMMANDS = ("get", "verify", "digest", "inject")
DEFAULT_COMMAND = "get"


def parse_arguments(
    args: List[str], default_manifest: str
) -> Tuple[str, str, List[str]]:
    """
    解析位置参数

    第一个参数若是 manifest 文件则作为 manifest 路径；下一个参数若不是已知子命令，
    则按 get 处理并保留为文件名。

    Returns:
        (子命令, manifest 路径, 目标文件列表)
    """
    args = list(args)
    manifest_path = default_manifest
    if args and ManifestStore.is_manifest_file(args[0]):
        manifest_path = args.pop(0)

    command = DEFAULT_COMMAND
    if args and args[0] in COMMANDS:
        command = args.pop(0)

    if command in ("digest", "inject"):
        raise NotImplementedCommandError(f"{command}: not implemented")
    if not args:
        raise UsageError(f"{command}: 未指定目标文件")
    return command, manifest_path, args


async def run_async(
    config: DistFetchConfig, command: str, manifest_path: str, files: List[str]
) -> int:
    """异步运行子命令，返回退出码"""
    manifest = ManifestStore.load(manifest_path)
    logger.debug(f"[Manifest] 使用 {manifest_path}")

    if command == "verify":
        workflow = VerifyWorkflow(config, manifest)
    else:
        workflow = GetWorkflow(config, manifest)
    return await workflow.run(files)


def _stderr_sink(message):
    click.echo(message, err=True, nl=False)


@click.command(context_settings={"help_option_names": []})
@click.argument("args", nargs=-1)
@click.option(
    "-c", "--config", "config_path", type=click.Path(), help="配置文件 (toml/json/yaml)"
)
@click.option("-q", "--quiet", is_flag=True, help="不输出逐项校验结果")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option("--help", "show_help", is_flag=True, help="显示帮助并退出")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    args: tuple,
    config_path: Optional[str],
    quiet: bool,
    debug: bool,
    show_help: bool,
):
    """distfetch - 按 Manifest 下载并校验分发文件

    \b
    distfetch [manifest] get <文件>...     下载并校验，失败的文件改名为 .verify-failed
    distfetch [manifest] verify <文件>...  仅校验
    """
    if show_help or not args:
        click.echo(ctx.get_help())
        ctx.exit(1)

    setup_logger(level="DEBUG" if debug else None, sink=_stderr_sink)

    try:
        config = resolve_config(config_path)
        if quiet:
            config.quiet = True
        command, manifest_path, files = parse_arguments(list(args), config.manifest)
        exit_code = asyncio.run(run_async(config, command, manifest_path, files))
    except DistFetchError as e:
        logger.debug(f"错误详情: {e.to_dict()}")
        click.echo(f"distfetch: {e.message}", err=True)
        ctx.exit(e.exit_code)

    ctx.exit(exit_code)


if __name__ == "__main__":
    main()
