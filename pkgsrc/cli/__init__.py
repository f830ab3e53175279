"""pkgsrc 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
from typing import Any, Callable

import click

from pkgsrc import __version__
from pkgsrc.core.exceptions import PkgSrcError
from pkgsrc.utils.logger import setup_logging_from_env


def _svc(ctx: click.Context) -> Any:
    """获取当前命令共享的 PackageService（首次访问时按全局配置构造）"""
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        from pkgsrc.services.package_service import PackageService
        obj["service"] = PackageService()
    return obj["service"]


def handle_errors(fn: Callable[..., Any]) -> Callable[..., Any]:
    """业务异常转为 click 友好错误（退出码 1）"""
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except PkgSrcError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e
    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default="pkgsrc.yml", help="配置文件路径")
@click.pass_context
def main(ctx: click.Context, config_path: str) -> None:
    """pkgsrc - 包源码定位与增量构建"""
    setup_logging_from_env()
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        from pkgsrc.core.config import init_config
        try:
            init_config(config_path)
        except PkgSrcError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e


# 注册各领域子命令
from pkgsrc.cli.cmd_package import register as _reg_package  # noqa: E402
from pkgsrc.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_package(main)
_reg_cache(main)
