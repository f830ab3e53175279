"""包源码定位

按固定优先级查找包源码目录，第一个成功即返回：
  1. 约定布局候选目录（src/ 下两种、build/<target>/src/ 下两种）
  2. 包路径的某个前缀已在拉取暂存区 → 递归解析前缀，再拼接剩余后缀
  3. 远程拉取到暂存区候选目录
  4. 当前工作目录本身含包描述文件
  5. 搜索路径覆盖模式下查搜索路径
  6. 抛 PackageNotFoundError
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pkgsrc.core.exceptions import InvalidPackageDirectoryError, PackageNotFoundError
from pkgsrc.core.models import PackageId, PackageSource
from pkgsrc.services.source.fetcher import RemoteFetcher
from pkgsrc.services.source.layout import (
    DEFAULT_PACKAGE_FILE,
    SearchPathLookup,
    dir_has_package_file,
    path_ends_with,
    strip_segments,
    target_build_dir,
    versionize,
)
from pkgsrc.services.source.prefixes import prefixes

logger = logging.getLogger(__name__)

# 未找到处理器：返回替代的 PackageSource 继续执行，返回 None 则原异常继续抛出
NotFoundHandler = Callable[[PackageNotFoundError], "PackageSource | None"]

_NOT_FOUND = "包目录不存在，且无法作为 URL 片段拉取"


class WorkspaceLocator:
    """包源码定位器"""

    def __init__(
        self,
        fetcher: RemoteFetcher,
        *,
        target: str,
        default_workspace: Path,
        package_file: str = DEFAULT_PACKAGE_FILE,
        search_lookup: SearchPathLookup | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.target = target
        self.default_workspace = default_workspace
        self.package_file = package_file
        self.search_lookup = search_lookup
        self._cwd = cwd

    @property
    def cwd(self) -> Path:
        return self._cwd or Path.cwd()

    def candidates(
        self,
        source_root: Path,
        destination_root: Path,
        use_search_override: bool,
        package_id: PackageId,
    ) -> tuple[list[Path], list[Path]]:
        """返回 (全部候选目录, 其中可作为拉取目标的目录)"""
        if use_search_override:
            return [source_root], []

        versioned = package_id.short_name_with_version()
        group = package_id.group_path

        src = source_root / "src"
        staged = target_build_dir(destination_root, self.target) / "src"
        to_try = [
            (src / group if group else src) / versioned,
            src / package_id.path,
        ]
        fetch_targets = [
            (staged / group if group else staged) / versioned,
            staged / package_id.path,
        ]
        return to_try + fetch_targets, fetch_targets

    def resolve(
        self,
        source_root: Path,
        destination_root: Path,
        use_search_override: bool,
        package_id: PackageId,
        *,
        on_not_found: NotFoundHandler | None = None,
    ) -> PackageSource:
        """定位包源码，失败抛 PackageNotFoundError / InvalidPackageDirectoryError"""
        try:
            return self._resolve(
                source_root.absolute(), destination_root.absolute(),
                use_search_override, package_id,
            )
        except PackageNotFoundError as e:
            if on_not_found is None:
                raise
            substitute = on_not_found(e)
            if substitute is None:
                raise
            logger.info("未找到 %s，使用替代源码: %s", package_id, substitute)
            return substitute

    def _resolve(
        self,
        source_root: Path,
        destination_root: Path,
        use_search_override: bool,
        package_id: PackageId,
    ) -> PackageSource:
        logger.debug(
            "查找包 %s, workspace = %s -> %s, search_override = %s",
            package_id, source_root, destination_root, use_search_override,
        )
        to_try, fetch_targets = self.candidates(
            source_root, destination_root, use_search_override, package_id,
        )
        logger.debug("候选目录: %s", ":".join(str(p) for p in to_try))

        for d in to_try:
            if d.is_dir() and dir_has_package_file(d, self.package_file):
                return self._finish(
                    source_root, destination_root, use_search_override, d, package_id,
                )

        nested = self._resolve_nested(
            source_root, destination_root, use_search_override, package_id,
        )
        if nested is not None:
            return nested

        for local in fetch_targets:
            fetched = self.fetcher.fetch(local, package_id)
            if fetched is None:
                continue
            src, dst = source_root, destination_root
            if path_ends_with(fetched, package_id.path) or path_ends_with(
                fetched, versionize(package_id.path, package_id.version),
            ):
                # 去掉包路径与 src/ 得到源工作空间，再去掉 build/<target> 得到目标工作空间
                src = strip_segments(fetched, len(package_id.segments) + 1)
                dst = strip_segments(src, 2)
            return self._finish(src, dst, True, fetched, package_id)

        cwd = self.cwd
        if dir_has_package_file(cwd, self.package_file):
            logger.info("在当前目录找到包源码: %s", cwd)
            # cwd 并不是真正的工作空间，目标工作空间退回默认值
            return self._finish(cwd, self.default_workspace, True, cwd, package_id)

        if use_search_override and self.search_lookup is not None:
            found = self.search_lookup.find(package_id)
            if found is not None:
                return self._finish(source_root, destination_root, True, found, package_id)

        raise PackageNotFoundError(package_id, _NOT_FOUND)

    def _resolve_nested(
        self,
        source_root: Path,
        destination_root: Path,
        use_search_override: bool,
        package_id: PackageId,
    ) -> PackageSource | None:
        """包路径的某个严格前缀已在暂存区时，递归解析前缀并拼接后缀"""
        staged = target_build_dir(destination_root, self.target) / "src"
        for prefix, suffix in prefixes(package_id.path):
            prefix_dir = staged / prefix
            logger.debug("检查前缀目录: %s", prefix_dir)
            if not prefix_dir.is_dir():
                continue
            try:
                outer = self._resolve(
                    source_root, destination_root, use_search_override, PackageId(prefix),
                )
            except PackageNotFoundError as e:
                logger.debug("前缀 %s 无法解析，继续: %s", prefix, e)
                continue
            return self._finish(
                outer.source_root,
                outer.destination_root,
                outer.build_in_destination,
                outer.start_dir / suffix,
                package_id,
            )
        return None

    def _finish(
        self,
        source_root: Path,
        destination_root: Path,
        build_in_destination: bool,
        start_dir: Path,
        package_id: PackageId,
    ) -> PackageSource:
        if not start_dir.is_dir():
            raise InvalidPackageDirectoryError(
                package_id, f"包目录不是目录: {start_dir}",
            )
        ps = PackageSource(
            source_root=source_root,
            destination_root=destination_root,
            build_in_destination=build_in_destination,
            start_dir=start_dir,
            id=package_id,
            package_file=self.package_file,
        )
        logger.debug("解析结果: %s (build_in_destination=%s)", ps, build_in_destination)
        return ps
