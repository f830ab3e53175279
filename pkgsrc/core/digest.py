"""缓存摘要计算

- 源文件：内容 SHA-256 + 修改时间
- 二进制：仅修改时间（内容过大且只关心是否被替换）
- 单元缓存键：绝对路径
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable

from pkgsrc.core.models import InputKind


def _mtime(path: Path) -> str:
    return str(path.stat().st_mtime_ns)


def digest_file_with_date(path: Path) -> str:
    """内容 + 修改时间摘要；文件不存在时抛 FileNotFoundError"""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    sha256.update(_mtime(path).encode("utf-8"))
    return sha256.hexdigest()


def digest_only_date(path: Path) -> str:
    """仅修改时间摘要"""
    return hashlib.sha256(_mtime(path).encode("utf-8")).hexdigest()


def unit_tag(path: Path) -> str:
    """单元缓存键：单元文件的绝对路径"""
    return str(Path(path).absolute())


_DIGESTERS: dict[InputKind, Callable[[Path], str]] = {
    InputKind.FILE: digest_file_with_date,
    InputKind.BINARY: digest_only_date,
}


def coerce_kind(kind: InputKind | str) -> InputKind:
    """把外部传入的输入类型收敛为 InputKind；非 file/binary 属于调用方违约"""
    try:
        return InputKind(kind)
    except ValueError:
        raise AssertionError(f"非法的输入类型: {kind!r}") from None


def digest_for(kind: InputKind | str, path: Path) -> str:
    """按输入类型计算摘要"""
    return _DIGESTERS[coerce_kind(kind)](Path(path))
