"""包路径前缀分解

a/b/c/d -> (a/b/c, d), (a/b, c/d), (a, b/c/d)

用于判断一个包标识是否指向某个已知工作空间内部的子目录。
"""

from __future__ import annotations

from typing import Iterator


class Prefixes:
    """(祖先前缀, 剩余后缀) 序列，可重复迭代，惰性生成

    N 段路径产生 N-1 对；单段或空路径不产生任何结果。
    """

    def __init__(self, path: str) -> None:
        self._components = tuple(s for s in path.split("/") if s)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        components = list(self._components)
        remaining: list[str] = []
        while len(components) > 1:
            remaining.insert(0, components.pop())
            yield "/".join(components), "/".join(remaining)

    def __len__(self) -> int:
        return max(len(self._components) - 1, 0)


def prefixes(path: str) -> Prefixes:
    return Prefixes(path)
