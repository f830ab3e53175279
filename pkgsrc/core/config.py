"""集中配置管理

替代各模块散落的 DEFAULT_* 常量，提供统一的配置入口。
支持从 YAML 文件加载 + 环境变量 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pkgsrc.core.exceptions import ConfigError
from pkgsrc.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

SEARCH_PATH_ENV = "PKGSRC_PATH"


def host_target() -> str:
    """当前主机的目标标识，用作 build/<target> 目录名"""
    return f"{platform.machine() or 'unknown'}-{platform.system().lower() or 'unknown'}"


@dataclass
class Config:
    """全局配置"""

    # 目录
    default_workspace: str = ".pkgsrc"
    search_path: list[str] = field(default_factory=list)
    cache_db: str = ""               # 空 = <default_workspace>/cache.yml

    # 布局
    target: str = field(default_factory=host_target)
    package_file: str = "pkg.rs"

    # 编译
    compiler_cmd: str = "rustc"
    opt_level: int = 0
    max_workers: int = 1

    # 拉取
    git_timeout: int = 600

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.opt_level not in (0, 1, 2, 3):
            raise ConfigError(f"opt_level 仅支持 0-3: {self.opt_level}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers 必须 >= 1: {self.max_workers}")
        if isinstance(self.search_path, str):
            self.search_path = [p for p in self.search_path.split(os.pathsep) if p]

    @classmethod
    def from_file(cls, path: str = "pkgsrc.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无法解析 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件内容无效 {path}: {e}") from e
        cfg.extra = extra
        return cfg

    def effective_search_path(self) -> list[Path]:
        """搜索路径：环境变量 PKGSRC_PATH 优先，其次配置文件"""
        env = os.getenv(SEARCH_PATH_ENV, "")
        entries = [p for p in env.split(os.pathsep) if p] if env else self.search_path
        return [Path(p).absolute() for p in entries]

    def default_workspace_path(self) -> Path:
        return Path(self.default_workspace).absolute()

    def cache_db_path(self) -> Path:
        """构建缓存台账路径，未配置时放在默认工作空间下"""
        if self.cache_db:
            return Path(self.cache_db).absolute()
        return self.default_workspace_path() / "cache.yml"


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "pkgsrc.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
