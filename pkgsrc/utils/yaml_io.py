"""YAML 读写工具

配置文件与构建缓存台账共用：统一 utf-8、空值保护、目录自动创建、原子写入。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 单个 YAML 文件最大 10MB
MAX_YAML_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """先写同目录临时文件再 os.replace，中途失败不会留下半个文件

    异常:
        OSError: 写入或替换失败（临时文件已清理）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 字典

    文件不存在、为空或顶层不是字典时返回 {}。

    异常:
        ValueError: 文件超过 MAX_YAML_SIZE
        yaml.YAMLError: 格式错误
    """
    p = Path(path)
    if not p.exists():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节), 上限 {MAX_YAML_SIZE}")

    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 失败: %s, 错误: %s", p, e)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是字典 (%s)，按空处理", p, type(data).__name__)
        return {}
    return data


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML（保持键顺序，允许 Unicode）"""
    p = Path(path)
    try:
        content = yaml.safe_dump(
            data, default_flow_style=False,
            allow_unicode=True, sort_keys=False,
        )
    except yaml.YAMLError as e:
        logger.error("序列化 YAML 失败: %s, 错误: %s", p, e)
        raise
    atomic_write(p, content)
