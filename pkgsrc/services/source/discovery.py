"""构建单元发现

在 start_dir 下递归查找约定文件名并分类：
  lib.rs -> 库, main.rs -> 可执行, test.rs -> 测试, bench.rs -> 基准
其余文件忽略。按路径排序遍历，结果与文件系统遍历顺序无关。
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Callable

from pkgsrc.core.exceptions import NoBuildableUnitsError
from pkgsrc.core.models import BuildUnit, PackageSource, UnitKind

logger = logging.getLogger(__name__)

NameFilter = Callable[[str], bool]

UNIT_NAMING_HINT = "Try naming a unit `main.rs`, `lib.rs`, `test.rs`, or `bench.rs`."


def relative_unit_path(start_dir: Path, path: Path) -> Path:
    """去掉与 start_dir 相同数量的前导路径段"""
    parts = path.parts[len(start_dir.parts):]
    assert parts, f"{path} 不在 {start_dir} 之下"
    return Path(*parts)


def discover_units(source: PackageSource, name_filter: NameFilter | None = None) -> PackageSource:
    """返回填充了四类单元的新 PackageSource；一个单元都没有时抛 NoBuildableUnitsError"""
    accept = name_filter or (lambda _name: True)
    found: dict[UnitKind, list[BuildUnit]] = {k: [] for k in UnitKind}

    logger.debug("在 %s 中查找 %s 的构建单元", source.start_dir, source.id)
    for path in sorted(p for p in source.start_dir.rglob("*") if p.is_file()):
        if not accept(path.name):
            continue
        kind = UnitKind.from_file_name(path.name)
        if kind is None:
            continue
        unit = BuildUnit(path=relative_unit_path(source.start_dir, path))
        logger.debug("将编译单元 %s", unit.name)
        found[kind].append(unit)

    if not any(found.values()):
        logger.warning("无法推断任何可构建单元。%s", UNIT_NAMING_HINT)
        raise NoBuildableUnitsError(source.id, UNIT_NAMING_HINT)

    logger.debug(
        "%s 中找到 %d lib, %d main, %d test, %d bench",
        source.start_dir,
        len(found[UnitKind.LIB]), len(found[UnitKind.MAIN]),
        len(found[UnitKind.TEST]), len(found[UnitKind.BENCH]),
    )
    return dataclasses.replace(
        source,
        libs=tuple(source.libs) + tuple(found[UnitKind.LIB]),
        mains=tuple(source.mains) + tuple(found[UnitKind.MAIN]),
        tests=tuple(source.tests) + tuple(found[UnitKind.TEST]),
        benchs=tuple(source.benchs) + tuple(found[UnitKind.BENCH]),
    )


def log_units(source: PackageSource) -> None:
    """调试输出全部已发现单元"""
    for kind, unit in source.all_units():
        logger.debug("单元 [%s]: %s", kind.value, unit.name)
