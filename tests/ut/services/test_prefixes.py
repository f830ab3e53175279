"""包路径前缀分解测试"""

from __future__ import annotations

import pytest

from pkgsrc.services.source.prefixes import Prefixes, prefixes


class TestPrefixes:
    def test_four_segments(self) -> None:
        assert list(prefixes("a/b/c/d")) == [
            ("a/b/c", "d"),
            ("a/b", "c/d"),
            ("a", "b/c/d"),
        ]

    @pytest.mark.parametrize("path", ["", "a", "/a/"])
    def test_no_pairs(self, path: str) -> None:
        p = Prefixes(path)
        assert list(p) == []
        assert len(p) == 0

    def test_len_matches_iteration(self) -> None:
        p = prefixes("github.com/acme/widget/sub")
        assert len(p) == len(list(p)) == 3

    def test_restartable(self) -> None:
        p = prefixes("x/y/z")
        assert list(p) == list(p)

    def test_pairs_rejoin_to_path(self) -> None:
        for prefix, suffix in prefixes("a/b/c/d/e"):
            assert f"{prefix}/{suffix}" == "a/b/c/d/e"
