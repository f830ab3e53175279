"""目录布局约定测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgsrc.core.models import PackageId
from pkgsrc.services.source.layout import (
    SearchPathLookup,
    dir_has_package_file,
    path_ends_with,
    strip_segments,
    target_build_dir,
    versionize,
)


class TestHelpers:
    def test_target_build_dir(self) -> None:
        assert target_build_dir(Path("/ws"), "x86_64") == Path("/ws/build/x86_64")

    def test_versionize(self) -> None:
        assert versionize("acme/widget", "1.2.0") == "acme/widget-1.2.0"
        assert versionize("acme/widget", None) == "acme/widget-0.0"

    def test_path_ends_with(self) -> None:
        p = Path("/ws/build/t/src/acme/widget")
        assert path_ends_with(p, "acme/widget")
        assert path_ends_with(p, "widget")
        assert not path_ends_with(p, "acme/widge")
        assert not path_ends_with(p, "")

    @pytest.mark.parametrize("depth", [1, 2, 3, 4, 5])
    def test_root_recomputation(self, depth: int) -> None:
        """暂存目录去掉包路径与 src 得到源工作空间，再去两段得到目标工作空间"""
        segments = [f"s{i}" for i in range(depth)]
        adopted = Path("/ws/build/x86_64/src").joinpath(*segments)
        src = strip_segments(adopted, depth + 1)
        assert src == Path("/ws/build/x86_64")
        assert strip_segments(src, 2) == Path("/ws")


class TestDirHasPackageFile:
    def test_descriptor(self, tmp_path: Path) -> None:
        (tmp_path / "pkg.rs").write_text("")
        assert dir_has_package_file(tmp_path)

    @pytest.mark.parametrize("name", ["lib.rs", "main.rs", "test.rs", "bench.rs"])
    def test_unit_file(self, tmp_path: Path, name: str) -> None:
        (tmp_path / name).write_text("")
        assert dir_has_package_file(tmp_path)

    def test_nested_only_does_not_count(self, make_tree, tmp_path: Path) -> None:
        make_tree(tmp_path, {"inner/lib.rs": "", "README.md": ""})
        assert not dir_has_package_file(tmp_path)

    def test_custom_descriptor(self, tmp_path: Path) -> None:
        (tmp_path / "build.pkg").write_text("")
        assert dir_has_package_file(tmp_path, "build.pkg")
        assert not dir_has_package_file(tmp_path)


class TestSearchPathLookup:
    def test_finds_matching_entry(self, make_tree, tmp_path: Path) -> None:
        make_tree(tmp_path, {"other/lib.rs": "", "vendor/acme/widget/lib.rs": ""})
        lookup = SearchPathLookup([tmp_path / "other", tmp_path / "vendor/acme/widget"])
        assert lookup.find(PackageId("acme/widget")) == tmp_path / "vendor/acme/widget"

    def test_versioned_entry(self, make_tree, tmp_path: Path) -> None:
        make_tree(tmp_path, {"acme/widget-2.0/main.rs": ""})
        lookup = SearchPathLookup([tmp_path / "acme/widget-2.0"])
        assert lookup.find(PackageId("acme/widget", "2.0")) == tmp_path / "acme/widget-2.0"

    def test_entry_without_descriptor(self, tmp_path: Path) -> None:
        (tmp_path / "acme/widget").mkdir(parents=True)
        assert SearchPathLookup([tmp_path / "acme/widget"]).find(PackageId("acme/widget")) is None
