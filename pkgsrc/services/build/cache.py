"""增量构建缓存

职责:
- 按缓存键（单元绝对路径）记录声明输入、发现输入的摘要与输出
- 命中检查：声明输入摘要一致，且发现输入重新计算后仍一致 → 直接返回记录的输出
- 同一缓存键的执行步骤互斥，不同键可并发
- 台账可持久化到 YAML 文件（原子写入）

用法:
    with cache.prep(tag) as prep:
        prep.declare_input(InputKind.FILE, str(path), digest_file_with_date(path))
        output = prep.exec(lambda exe: ...)   # exe.discover_input(...) 登记发现输入
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator

from pkgsrc.core.digest import coerce_kind, digest_for
from pkgsrc.core.models import InputKind
from pkgsrc.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

DB_FORMAT_VERSION = 1


def _key(kind: InputKind, ident: str) -> str:
    return f"{kind.value}:{ident}"


def _split_key(key: str) -> tuple[InputKind, str]:
    kind, _, ident = key.partition(":")
    return coerce_kind(kind), ident


@dataclass
class CacheEntry:
    """单个缓存键的一次成功执行记录"""

    declared: dict[str, str] = field(default_factory=dict)
    discovered: dict[str, str] = field(default_factory=dict)
    output: str | None = None

    def to_dict(self) -> dict:
        return {
            "declared": dict(self.declared),
            "discovered": dict(self.discovered),
            "output": self.output,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CacheEntry:
        return cls(
            declared=dict(data.get("declared") or {}),
            discovered=dict(data.get("discovered") or {}),
            output=data.get("output"),
        )


class Exec:
    """延迟执行步骤内可见的句柄"""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        self.discovered: dict[str, str] = {}

    def discover_input(self, kind: InputKind | str, ident: str, digest: str) -> None:
        self.discovered[_key(coerce_kind(kind), ident)] = digest


class Prep:
    """一个缓存作用域：先声明输入，再 exec"""

    def __init__(self, cache: WorkCache, tag: str) -> None:
        self.cache = cache
        self.tag = tag
        self.declared: dict[str, str] = {}

    def declare_input(self, kind: InputKind | str, ident: str, digest: str) -> None:
        self.declared[_key(coerce_kind(kind), ident)] = digest

    def exec(self, fn: Callable[[Exec], str | None]) -> str | None:
        return self.cache.run(self, fn)


class WorkCache:
    """增量构建缓存（线程安全）"""

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path) if db_path else None
        self._lock = threading.RLock()
        self._tag_locks: dict[str, threading.Lock] = {}
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0
        self._load()

    # ---- 作用域 ----

    @contextmanager
    def prep(self, tag: str) -> Iterator[Prep]:
        yield Prep(self, tag)

    def with_prep(self, tag: str, fn: Callable[[Prep], str | None]) -> str | None:
        with self.prep(tag) as p:
            return fn(p)

    def run(self, prep: Prep, fn: Callable[[Exec], str | None]) -> str | None:
        """命中则返回记录的输出，否则执行 fn 并记录"""
        with self._tag_lock(prep.tag):
            with self._lock:
                entry = self._entries.get(prep.tag)
            if entry is not None and entry.declared == prep.declared and self._is_fresh(entry):
                with self._lock:
                    self.hits += 1
                logger.info("缓存命中: %s", prep.tag)
                return entry.output

            with self._lock:
                self.misses += 1
            logger.debug("缓存未命中，执行: %s", prep.tag)
            handle = Exec(prep.tag)
            output = fn(handle)
            with self._lock:
                self._entries[prep.tag] = CacheEntry(
                    declared=dict(prep.declared),
                    discovered=dict(handle.discovered),
                    output=output,
                )
                self._save()
            return output

    def _tag_lock(self, tag: str) -> threading.Lock:
        with self._lock:
            return self._tag_locks.setdefault(tag, threading.Lock())

    @staticmethod
    def _is_fresh(entry: CacheEntry) -> bool:
        """发现输入按各自类型重新计算摘要，任一不一致或文件消失即失效"""
        for key, recorded in entry.discovered.items():
            kind, ident = _split_key(key)
            try:
                current = digest_for(kind, Path(ident))
            except OSError:
                return False
            if current != recorded:
                logger.debug("发现输入已变化: %s", ident)
                return False
        return True

    # ---- 查询 / 失效 ----

    def lookup(self, tag: str) -> str | None:
        """返回记录的输出（不做新鲜度检查）"""
        with self._lock:
            entry = self._entries.get(tag)
        return entry.output if entry else None

    def is_cached(self, tag: str) -> bool:
        with self._lock:
            return tag in self._entries

    def entry(self, tag: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(tag)

    def tags(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}

    def invalidate(self, tag: str | None = None) -> int:
        """清除指定缓存键（不指定则全部），返回清除条数"""
        with self._lock:
            if tag is None:
                count = len(self._entries)
                self._entries.clear()
            else:
                count = 1 if self._entries.pop(tag, None) is not None else 0
            if count:
                self._save()
        return count

    # ---- 持久化 ----

    def _load(self) -> None:
        if self.db_path is None:
            return
        data = load_yaml(self.db_path)
        if data and data.get("version") != DB_FORMAT_VERSION:
            logger.warning("缓存台账版本不匹配，忽略: %s", self.db_path)
            return
        for tag, raw in (data.get("entries") or {}).items():
            self._entries[tag] = CacheEntry.from_dict(raw or {})
        if self._entries:
            logger.debug("已加载缓存台账: %s (%d 条)", self.db_path, len(self._entries))

    def _save(self) -> None:
        if self.db_path is None:
            return
        save_yaml(self.db_path, {
            "version": DB_FORMAT_VERSION,
            "entries": {t: e.to_dict() for t, e in self._entries.items()},
        })
