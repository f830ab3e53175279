"""外部协作方协议

定位器与构建编排只依赖这里的抽象：版本控制客户端、单单元编译器、缓存执行句柄。
使用 typing.Protocol，测试中的假实现无需继承。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from pkgsrc.core.models import DependencyMap, InputKind, OutputType, PackageId


# =========================================================================
# 版本控制协议
# =========================================================================

class CloneStatus(str, Enum):
    """safe_clone 的两种结果"""

    CHECKED_OUT = "checked_out"   # 目标目录已是可用检出
    DIR_TO_USE = "dir_to_use"     # 需要远程拉取，path 为暂存目录


@dataclass(frozen=True)
class CloneOutcome:
    status: CloneStatus
    path: Path


class VersionControl(Protocol):
    """版本控制客户端协议"""

    def safe_clone(self, source: Path, version: str | None, target: Path) -> CloneOutcome:
        """target 已有对应版本的检出（或 source 是本地仓库并已检出到 target）时返回 CHECKED_OUT，
        否则返回 DIR_TO_USE 与一个新的暂存目录"""
        ...

    def clone_url(self, url: str, target: Path, version: str | None) -> None:
        """按 URL 克隆到 target 并检出 version；失败抛 GitCheckoutFailedError"""
        ...

    def make_read_only(self, target: Path) -> None:
        """将检出目录下的文件标记为只读"""
        ...


# =========================================================================
# 缓存执行句柄协议
# =========================================================================

class ExecHandle(Protocol):
    """缓存作用域内延迟执行步骤可见的句柄"""

    def discover_input(self, kind: InputKind | str, ident: str, digest: str) -> None:
        """登记构建过程中发现的输入"""
        ...


# =========================================================================
# 编译器协议
# =========================================================================

class UnitCompiler(Protocol):
    """单单元编译器协议"""

    def compile(
        self,
        context: Any,
        exec_handle: ExecHandle,
        package_id: PackageId,
        unit_path: Path,
        output_workspace: Path,
        deps: DependencyMap,
        flags: tuple[str, ...],
        cfgs: tuple[str, ...],
        opt_level: int,
        output_type: OutputType,
    ) -> Path | None:
        """编译单个单元，返回产物路径；失败返回 None"""
        ...
