"""核心数据模型

所有核心数据类集中定义，定位器 / 发现 / 构建编排统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator

from pkgsrc.core.exceptions import ValidationError

DEFAULT_VERSION = "0.0"

# =========================================================================
# 包标识
# =========================================================================


@dataclass(frozen=True)
class PackageId:
    """包标识：层级路径 + 可选版本

    path 既是文件系统后缀，也是拉取 URL 片段，如 github.com/acme/widget
    """

    path: str
    version: str | None = None

    def __post_init__(self) -> None:
        if not self.path or any(not s for s in self.path.split("/")):
            raise ValidationError(f"非法的包路径: {self.path!r}")

    @classmethod
    def parse(cls, text: str) -> PackageId:
        """解析 <path>[#<version>] 文本形式"""
        path, sep, version = text.strip().partition("#")
        if sep and not version:
            raise ValidationError(f"版本号为空: {text!r}")
        return cls(path=path.strip("/"), version=version or None)

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.path.split("/"))

    @property
    def short_name(self) -> str:
        return self.segments[-1]

    @property
    def group_path(self) -> str:
        """路径去掉最后一段（可能为空）"""
        return "/".join(self.segments[:-1])

    def version_or_default(self) -> str:
        return self.version or DEFAULT_VERSION

    def short_name_with_version(self) -> str:
        return f"{self.short_name}-{self.version_or_default()}"

    def __str__(self) -> str:
        return f"{self.path}#{self.version}" if self.version else self.path


# =========================================================================
# 构建单元
# =========================================================================


class UnitKind(str, Enum):
    """构建单元类别（同时作为编译输出类型）"""

    LIB = "lib"
    MAIN = "main"
    TEST = "test"
    BENCH = "bench"

    @property
    def file_name(self) -> str:
        return f"{self.value}.rs"

    @classmethod
    def from_file_name(cls, name: str) -> UnitKind | None:
        return _KIND_BY_FILE.get(name)


_KIND_BY_FILE = {k.file_name: k for k in UnitKind}

# 编译器的输出类型与单元类别一一对应
OutputType = UnitKind


class InputKind(str, Enum):
    """构建过程中发现的输入类型"""

    FILE = "file"
    BINARY = "binary"


@dataclass(frozen=True)
class BuildUnit:
    """单个可编译文件：相对 start_dir 的路径 + 单元级附加参数（预留）"""

    path: Path
    flags: tuple[str, ...] = ()
    cfgs: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.path.as_posix()


class DependencyMap:
    """单元名 -> {(输入类型, 标识)}，按单元名有序迭代"""

    def __init__(self) -> None:
        self._deps: dict[str, set[tuple[InputKind, str]]] = {}

    def add(self, unit: str, kind: InputKind, ident: str) -> None:
        self._deps.setdefault(unit, set()).add((kind, ident))

    def get(self, unit: str) -> set[tuple[InputKind, str]]:
        return set(self._deps.get(unit, ()))

    def copy(self) -> DependencyMap:
        other = DependencyMap()
        for unit, entries in self._deps.items():
            other._deps[unit] = set(entries)
        return other

    def items(self) -> list[tuple[str, set[tuple[InputKind, str]]]]:
        return [(k, set(self._deps[k])) for k in sorted(self._deps)]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._deps))

    def __len__(self) -> int:
        return len(self._deps)

    def __contains__(self, unit: object) -> bool:
        return unit in self._deps


# =========================================================================
# 包源码
# =========================================================================


@dataclass(frozen=True)
class PackageSource:
    """一个包解析完成后的状态

    build_in_destination 为 True 时，临时构建结果写入 destination_root，
    否则写入 source_root。远程拉取或搜索路径覆盖时为 True，解析后不再变化。
    """

    source_root: Path
    destination_root: Path
    build_in_destination: bool
    start_dir: Path
    id: PackageId
    libs: tuple[BuildUnit, ...] = ()
    mains: tuple[BuildUnit, ...] = ()
    tests: tuple[BuildUnit, ...] = ()
    benchs: tuple[BuildUnit, ...] = ()
    package_file: str = field(default="pkg.rs", compare=False)

    def build_workspace(self) -> Path:
        """临时构建产物所在的工作空间"""
        if self.build_in_destination:
            return self.destination_root
        return self.source_root

    def package_script(self) -> Path | None:
        """start_dir 下存在包描述文件时返回其路径（表示有自定义构建逻辑）"""
        p = self.start_dir / self.package_file
        return p if p.exists() else None

    def units(self, kind: UnitKind) -> tuple[BuildUnit, ...]:
        return {
            UnitKind.LIB: self.libs,
            UnitKind.MAIN: self.mains,
            UnitKind.TEST: self.tests,
            UnitKind.BENCH: self.benchs,
        }[kind]

    def all_units(self) -> list[tuple[UnitKind, BuildUnit]]:
        return [(k, u) for k in UnitKind for u in self.units(k)]

    def has_units(self) -> bool:
        return any(self.units(k) for k in UnitKind)

    def __str__(self) -> str:
        return (
            f"Package ID {self.id} in start dir {self.start_dir} "
            f"[workspaces = {self.source_root} -> {self.destination_root}]"
        )
