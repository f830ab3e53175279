"""包源码服务模块

拆分说明：
- prefixes.py: 包路径前缀分解
- layout.py: 工作空间目录布局约定、搜索路径查找
- git.py: git 客户端
- fetcher.py: 远程拉取 + 原子落盘
- locator.py: 多策略源码定位
- discovery.py: 构建单元发现
"""

from pkgsrc.services.source.discovery import discover_units, log_units
from pkgsrc.services.source.fetcher import RemoteFetcher
from pkgsrc.services.source.git import GitClient
from pkgsrc.services.source.layout import SearchPathLookup
from pkgsrc.services.source.locator import WorkspaceLocator
from pkgsrc.services.source.prefixes import Prefixes, prefixes

__all__ = [
    "GitClient",
    "Prefixes",
    "RemoteFetcher",
    "SearchPathLookup",
    "WorkspaceLocator",
    "discover_units",
    "log_units",
    "prefixes",
]
