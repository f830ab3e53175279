"""工作空间目录布局约定

    <root>/src/<group>/<short>-<version>/...
    <root>/src/<full-path>/...
    <root>/build/<target>/src/<group>/<short>-<version>/...   (拉取暂存)
    <root>/build/<target>/src/<full-path>/...                 (拉取暂存)
"""

from __future__ import annotations

import logging
from pathlib import Path

from pkgsrc.core.models import DEFAULT_VERSION, PackageId, UnitKind

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_FILE = "pkg.rs"


def target_build_dir(workspace: Path, target: str) -> Path:
    return workspace / "build" / target


def versionize(package_path: str, version: str | None) -> str:
    """给路径最后一段追加版本: a/b -> a/b-<version>"""
    return f"{package_path}-{version or DEFAULT_VERSION}"


def dir_has_package_file(directory: Path, package_file: str = DEFAULT_PACKAGE_FILE) -> bool:
    """目录顶层含包描述文件或任一约定单元文件"""
    names = [package_file] + [k.file_name for k in UnitKind]
    return any((directory / n).is_file() for n in names)


def path_ends_with(path: Path, suffix: str) -> bool:
    """path 的末尾若干段是否恰好等于 suffix"""
    tail = tuple(s for s in suffix.split("/") if s)
    if not tail:
        return False
    return path.parts[-len(tail):] == tail


def strip_segments(path: Path, count: int) -> Path:
    """去掉末尾 count 段"""
    for _ in range(count):
        path = path.parent
    return path


class SearchPathLookup:
    """搜索路径覆盖模式下的包目录查找

    要求搜索路径条目本身以包路径（或其带版本形式）结尾，且含包描述文件。
    """

    def __init__(self, search_path: list[Path], package_file: str = DEFAULT_PACKAGE_FILE) -> None:
        self.search_path = list(search_path)
        self.package_file = package_file

    def find(self, package_id: PackageId) -> Path | None:
        versioned = versionize(package_id.path, package_id.version)
        for d in self.search_path:
            if not (path_ends_with(d, package_id.path) or path_ends_with(d, versioned)):
                continue
            if d.is_dir() and dir_has_package_file(d, self.package_file):
                logger.debug("搜索路径命中: %s -> %s", package_id, d)
                return d
        return None
