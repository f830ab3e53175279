"""包命令：locate, units, fetch, build"""

from __future__ import annotations

from pathlib import Path

import click

from pkgsrc.cli import _svc, handle_errors
from pkgsrc.core.models import InputKind, PackageId, UnitKind


def register(main: click.Group) -> None:
    """注册包相关命令"""
    main.add_command(locate)
    main.add_command(units)
    main.add_command(fetch)
    main.add_command(build)


def _parse_id(text: str) -> PackageId:
    return PackageId.parse(text)


def _parse_discover(pairs: tuple[str, ...]) -> list[tuple[InputKind, str]]:
    """解析 kind:path 参数对"""
    result: list[tuple[InputKind, str]] = []
    for p in pairs:
        kind, sep, path = p.partition(":")
        if not sep or not path:
            raise click.BadParameter(f"格式应为 kind:path: {p}", param_hint="--discover")
        try:
            result.append((InputKind(kind), str(Path(path).absolute())))
        except ValueError:
            raise click.BadParameter(
                f"输入类型仅支持 file/binary: {kind}", param_hint="--discover",
            ) from None
    return result


_workspace_opts = [
    click.option("--workspace", "-w", default=None, type=click.Path(path_type=Path), help="源工作空间"),
    click.option("--dest", "-d", default=None, type=click.Path(path_type=Path), help="目标工作空间"),
    click.option("--search-override", is_flag=True, help="工作空间即包源码目录（搜索路径覆盖模式）"),
]


def _with_workspace_opts(fn):
    for opt in reversed(_workspace_opts):
        fn = opt(fn)
    return fn


@click.command()
@click.argument("package")
@_with_workspace_opts
@click.pass_context
@handle_errors
def locate(
    ctx: click.Context, package: str,
    workspace: Path | None, dest: Path | None, search_override: bool,
) -> None:
    """定位包源码目录"""
    src = _svc(ctx).locate(
        _parse_id(package), workspace=workspace, destination=dest,
        search_override=search_override,
    )
    click.echo(str(src))
    click.echo(f"  start_dir: {src.start_dir}")
    click.echo(f"  build_workspace: {src.build_workspace()}")
    script = src.package_script()
    if script is not None:
        click.echo(f"  package_script: {script}")


@click.command()
@click.argument("package")
@_with_workspace_opts
@click.pass_context
@handle_errors
def units(
    ctx: click.Context, package: str,
    workspace: Path | None, dest: Path | None, search_override: bool,
) -> None:
    """列出包内可构建单元"""
    svc = _svc(ctx)
    src = svc.discover(svc.locate(
        _parse_id(package), workspace=workspace, destination=dest,
        search_override=search_override,
    ))
    for kind in UnitKind:
        for u in src.units(kind):
            click.echo(f"  [{kind.value:5s}] {u.name}")


@click.command()
@click.argument("package")
@click.argument("dest", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def fetch(ctx: click.Context, package: str, dest: Path) -> None:
    """拉取包到指定目录（已存在对应版本时直接复用）"""
    path = _svc(ctx).fetch(_parse_id(package), dest)
    if path is None:
        raise click.ClickException(f"拉取失败: {package}")
    click.echo(f"就绪: {package} -> {path}")


@click.command()
@click.argument("package")
@_with_workspace_opts
@click.option("--cfg", multiple=True, help="附加配置标记（可多次指定）")
@click.option("--discover", "discover_inputs", multiple=True, help="额外发现输入，格式 file:PATH 或 binary:PATH")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="并行编译单元数（默认取配置 max_workers）")
@click.pass_context
@handle_errors
def build(
    ctx: click.Context, package: str,
    workspace: Path | None, dest: Path | None, search_override: bool,
    cfg: tuple[str, ...], discover_inputs: tuple[str, ...], jobs: int | None,
) -> None:
    """构建包内全部单元（输入未变化的单元直接复用缓存）"""
    inputs = _parse_discover(discover_inputs)
    svc = _svc(ctx)
    if jobs is not None:
        svc.orchestrator.context.max_workers = jobs
    src = svc.discover(svc.locate(
        _parse_id(package), workspace=workspace, destination=dest,
        search_override=search_override,
    ))
    svc.build(src, cfgs=cfg, inputs_to_discover=inputs)
    failed = 0
    for name, output in svc.outputs(src).items():
        mark = "OK" if output else "FAIL"
        failed += 0 if output else 1
        click.echo(f"  [{mark:4s}] {name} -> {output or '-'}")
    click.echo(f"缓存命中: {svc.cache.hits}  执行: {svc.cache.misses}")
    if failed:
        raise click.ClickException(f"{failed} 个单元编译失败")
