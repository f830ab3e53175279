"""构建服务模块

拆分说明:
- cache.py: 增量构建缓存（声明/发现输入、命中检查、台账持久化）
- orchestrator.py: 按单元驱动编译
- compiler.py: 默认外部命令编译器
"""

from pkgsrc.services.build.cache import CacheEntry, Exec, Prep, WorkCache
from pkgsrc.services.build.compiler import CommandCompiler
from pkgsrc.services.build.orchestrator import BuildContext, BuildOrchestrator

__all__ = [
    "BuildContext",
    "BuildOrchestrator",
    "CacheEntry",
    "CommandCompiler",
    "Exec",
    "Prep",
    "WorkCache",
]
