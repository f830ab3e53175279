"""构建缓存命令"""

from __future__ import annotations

import click

from pkgsrc.cli import _svc


def register(main: click.Group) -> None:
    """注册缓存管理命令"""
    main.add_command(cache_group)


@click.group(name="cache")
def cache_group() -> None:
    """构建缓存管理"""


@cache_group.command(name="list")
@click.pass_context
def cache_list(ctx: click.Context) -> None:
    """列出缓存键"""
    tags = _svc(ctx).cache.tags()
    if not tags:
        click.echo("缓存为空。")
        return
    for t in tags:
        click.echo(f"  {t}")


@cache_group.command(name="show")
@click.argument("tag")
@click.pass_context
def cache_show(ctx: click.Context, tag: str) -> None:
    """查看缓存键的输入摘要与输出"""
    entry = _svc(ctx).cache.entry(tag)
    if entry is None:
        raise click.ClickException(f"缓存键不存在: {tag}")
    click.echo(f"output: {entry.output or '-'}")
    for key, digest in sorted(entry.declared.items()):
        click.echo(f"  declared   {key}  {digest[:12]}")
    for key, digest in sorted(entry.discovered.items()):
        click.echo(f"  discovered {key}  {digest[:12]}")


@cache_group.command(name="clear")
@click.argument("tag", required=False)
@click.pass_context
def cache_clear(ctx: click.Context, tag: str | None) -> None:
    """清除缓存（不指定则全部）"""
    count = _svc(ctx).cache.invalidate(tag)
    click.echo(f"已清除 {count} 条缓存")
