"""包服务：定位 / 单元发现 / 构建的统一入口

按 Config 组装 GitClient、RemoteFetcher、WorkspaceLocator、WorkCache、BuildOrchestrator，
同一服务实例内共享缓存。CLI 通过本服务访问核心功能，而非直接构造各组件。

用法:
    svc = PackageService()                       # 使用全局 get_config()
    src = svc.locate(PackageId.parse("github.com/acme/widget#1.2.0"))
    src = svc.discover(src)
    deps = svc.build(src, cfgs=["feature"])
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from pkgsrc.core.models import DependencyMap, PackageId, PackageSource
from pkgsrc.services.build.cache import WorkCache
from pkgsrc.services.build.compiler import CommandCompiler
from pkgsrc.services.build.orchestrator import BuildContext, BuildOrchestrator, DiscoverableInput
from pkgsrc.services.source.discovery import NameFilter, discover_units, log_units
from pkgsrc.services.source.fetcher import RemoteFetcher
from pkgsrc.services.source.git import GitClient
from pkgsrc.services.source.layout import SearchPathLookup
from pkgsrc.services.source.locator import WorkspaceLocator

if TYPE_CHECKING:
    from pkgsrc.core.config import Config
    from pkgsrc.core.protocols import UnitCompiler, VersionControl
    from pkgsrc.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class PackageService:
    """包源码定位与构建服务"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        vcs: VersionControl | None = None,
        compiler: UnitCompiler | None = None,
        executor: CommandExecutor | None = None,
        cwd: Path | None = None,
    ) -> None:
        if config is None:
            from pkgsrc.core.config import get_config
            config = get_config()
        self.config = config

        self.vcs = vcs or GitClient(executor=executor, timeout=config.git_timeout)
        self.fetcher = RemoteFetcher(self.vcs)
        self.locator = WorkspaceLocator(
            self.fetcher,
            target=config.target,
            default_workspace=config.default_workspace_path(),
            package_file=config.package_file,
            search_lookup=SearchPathLookup(config.effective_search_path(), config.package_file),
            cwd=cwd,
        )
        self.cache = WorkCache(config.cache_db_path())
        self.orchestrator = BuildOrchestrator(BuildContext(
            cache=self.cache,
            compiler=compiler or CommandCompiler(config.compiler_cmd, config.target, executor),
            opt_level=config.opt_level,
            max_workers=config.max_workers,
        ))

    def locate(
        self,
        package_id: PackageId,
        *,
        workspace: Path | None = None,
        destination: Path | None = None,
        search_override: bool = False,
    ) -> PackageSource:
        """定位包源码；workspace 默认取配置的默认工作空间，destination 默认同 workspace"""
        source_root = workspace or self.config.default_workspace_path()
        return self.locator.resolve(
            source_root, destination or source_root, search_override, package_id,
        )

    def discover(self, source: PackageSource, name_filter: NameFilter | None = None) -> PackageSource:
        """有包描述文件时只提示，仍按约定推断单元"""
        script = source.package_script()
        if script is not None:
            logger.info("发现包描述文件 %s（自定义构建逻辑不在此执行，按约定推断单元）", script)
        found = discover_units(source, name_filter)
        log_units(found)
        return found

    def build(
        self,
        source: PackageSource,
        cfgs: Iterable[str] = (),
        inputs_to_discover: Iterable[DiscoverableInput] = (),
    ) -> DependencyMap:
        if not source.has_units():
            source = self.discover(source)
        return self.orchestrator.build(source, cfgs, inputs_to_discover)

    def outputs(self, source: PackageSource) -> dict[str, str | None]:
        return self.orchestrator.outputs(source)

    def fetch(self, package_id: PackageId, dest: Path) -> Path | None:
        """直接把包拉取到指定目录"""
        return self.fetcher.fetch(dest.absolute(), package_id)
