"""
CLI 模块

命令行接口实现。
"""

import asyncio
from typing import Any, Dict, Optional

import click
from loguru import logger

from minebrew import __version__
from minebrew.models import Command, MinebrewConfig, load_config_file, validate_target
from minebrew.orchestrator import MinebrewOrchestrator
from minebrew.exceptions import ConfigValidationError, MinebrewError
from minebrew.logger import setup_logger


def _parse_target(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return validate_target(value)
    except ConfigValidationError as e:
        raise click.BadParameter(e.message) from e


target_option = click.option(
    "-t",
    "--target",
    callback=_parse_target,
    help="模组需要兼容的 Minecraft 版本",
)
directory_option = click.option(
    "-d",
    "--directory",
    type=click.Path(file_okay=False),
    help=".minecraft 目录路径（macOS 为 minecraft）",
)
loader_option = click.option("-l", "--loader", help="只安装指定加载器的版本，如 fabric")


async def run_async(config: MinebrewConfig):
    """异步运行"""
    orchestrator = MinebrewOrchestrator(config)
    return await orchestrator.run()


def execute(ctx: click.Context, command: Command, cli_options: Dict[str, Any]):
    """合并配置并运行，所有错误在这里转换为退出码"""
    try:
        file_options = load_config_file(ctx.obj.get("config_path"))
        config = MinebrewConfig.build(command, cli_options, file_options)
        logger.debug(
            f"子命令: {command.value}, 目标版本: {config.target}, 目录: {config.directory}"
        )
        asyncio.run(run_async(config))
    except MinebrewError as e:
        logger.debug(f"错误详情: {e.to_dict()}")
        raise click.ClickException(e.message)
    except KeyboardInterrupt:
        raise click.Abort()
    except Exception as e:
        # 堆栈只在 --debug 下输出
        logger.opt(exception=e).debug("未预期的错误")
        raise click.ClickException(f"运行时错误: {e}")


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="配置文件路径")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], debug: bool):
    """Minebrew - 快速省心的 Minecraft 模组包管理器"""
    setup_logger(level="DEBUG" if debug else None)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.argument("queries", nargs=-1, required=True)
@target_option
@directory_option
@loader_option
@click.pass_context
def install(ctx, queries, target, directory, loader):
    """搜索并安装模组（多个名称用空格分隔）"""
    execute(
        ctx,
        Command.INSTALL,
        {
            "queries": list(queries),
            "target": target,
            "directory": directory,
            "loader": loader,
        },
    )


@main.command()
@target_option
@directory_option
@loader_option
@click.pass_context
def update(ctx, target, directory, loader):
    """更新所有已安装的模组"""
    execute(
        ctx,
        Command.UPDATE,
        {"target": target, "directory": directory, "loader": loader},
    )


@main.command()
@directory_option
@click.pass_context
def scan(ctx, directory):
    """扫描 mods 目录并记录能识别的模组"""
    execute(ctx, Command.SCAN, {"directory": directory})


if __name__ == "__main__":
    main()
