"""构建编排

对 lib / main / test / bench 四类单元依次：
  1. 以单元绝对路径为缓存键打开缓存作用域，声明单元文件为输入（内容 + 修改时间）
  2. 延迟执行步骤内登记调用方提供的发现输入，调用单单元编译器
  3. 编译结果（产物路径或 None）作为该作用域的记录输出

缓存负责跳过输入未变化的单元，并保证同一缓存键不会并发执行。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pkgsrc.core.digest import coerce_kind, digest_file_with_date, digest_for, unit_tag
from pkgsrc.core.models import (
    BuildUnit,
    DependencyMap,
    InputKind,
    PackageSource,
    UnitKind,
)
from pkgsrc.core.protocols import UnitCompiler
from pkgsrc.services.build.cache import Exec, Prep, WorkCache

logger = logging.getLogger(__name__)

DiscoverableInput = tuple["InputKind | str", "str | Path"]


@dataclass
class BuildContext:
    """构建上下文：缓存、编译器与全局编译选项"""

    cache: WorkCache
    compiler: UnitCompiler
    opt_level: int = 0
    max_workers: int = 1


class BuildOrchestrator:
    """按单元驱动编译"""

    def __init__(self, context: BuildContext) -> None:
        self.context = context

    def build(
        self,
        source: PackageSource,
        cfgs: Iterable[str] = (),
        inputs_to_discover: Iterable[DiscoverableInput] = (),
    ) -> DependencyMap:
        """构建包内全部单元，返回依赖表（单元名 -> 发现的依赖）"""
        deps = DependencyMap()
        cfgs = tuple(cfgs)
        inputs = [(coerce_kind(k), str(p)) for k, p in inputs_to_discover]
        jobs = [(kind, unit) for kind in UnitKind for unit in source.units(kind)]

        logger.debug(
            "构建 %s 于 %s, 输出工作空间 = %s",
            source.id, source.source_root, source.build_workspace(),
        )
        if self.context.max_workers <= 1 or len(jobs) <= 1:
            for kind, unit in jobs:
                self._build_unit(source, unit, kind, cfgs, inputs, deps)
            return deps

        with ThreadPoolExecutor(max_workers=self.context.max_workers) as pool:
            futures = [
                pool.submit(self._build_unit, source, unit, kind, cfgs, inputs, deps)
                for kind, unit in jobs
            ]
            for f in futures:
                f.result()
        return deps

    def _build_unit(
        self,
        source: PackageSource,
        unit: BuildUnit,
        kind: UnitKind,
        cfgs: tuple[str, ...],
        inputs: list[tuple[InputKind, str]],
        deps: DependencyMap,
    ) -> str | None:
        ctx = self.context
        path = source.start_dir / unit.path
        unit_cfgs = tuple(unit.cfgs) + cfgs
        workspace = source.build_workspace()

        def step(exe: Exec) -> str | None:
            for input_kind, ident in inputs:
                exe.discover_input(input_kind, ident, digest_for(input_kind, Path(ident)))
            logger.debug("编译单元 %s，输出位于 %s", path, workspace)
            result = ctx.compiler.compile(
                ctx, exe, source.id, path, workspace,
                deps.copy(), unit.flags, unit_cfgs, ctx.opt_level, kind,
            )
            return str(result) if result is not None else None

        with ctx.cache.prep(unit_tag(path)) as prep:
            prep.declare_input(InputKind.FILE, str(path), digest_file_with_date(path))
            output = prep.exec(step)
        logger.info("[%s] %s -> %s", kind.value, unit.name, output or "(无产物)")
        return output

    @staticmethod
    def declare_inputs(source: PackageSource, prep: Prep) -> None:
        """把包内所有单元文件声明为某个包级缓存作用域的输入"""
        for _kind, unit in source.all_units():
            path = source.start_dir / unit.path
            logger.debug("声明输入: %s", path)
            prep.declare_input(InputKind.FILE, str(path), digest_file_with_date(path))

    def outputs(self, source: PackageSource) -> dict[str, str | None]:
        """各单元最近一次记录的产物路径"""
        return {
            unit.name: self.context.cache.lookup(unit_tag(source.start_dir / unit.path))
            for _kind, unit in source.all_units()
        }
