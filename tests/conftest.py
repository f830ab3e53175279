"""测试共享 fixture：假 git 执行器 + 记录型编译器 + 源码树构造

  FakeGitExecutor   模拟 git clone / rev-parse / checkout，不访问网络
  RecordingCompiler 记录每次编译调用，返回固定产物路径
  make_tree         按 {相对路径: 内容} 写出文件
"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from pkgsrc.utils.shell import CommandResult


class FakeGitExecutor:
    """满足 CommandExecutor 协议的 git 假实现"""

    def __init__(
        self,
        head: str = "0123456789abcdef",
        fail_clone: bool = False,
        files: tuple[str, ...] = ("lib.rs",),
    ) -> None:
        self.head = head
        self.fail_clone = fail_clone
        self.files = files
        self.calls: list[tuple[list[str], str]] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        args = list(cmd)
        self.calls.append((args, cwd))
        if args[:2] == ["git", "clone"]:
            if self.fail_clone:
                return CommandResult(128, "", "fatal: repository not found")
            target = Path(args[-1])
            target.mkdir(parents=True, exist_ok=True)
            (target / ".git").mkdir(exist_ok=True)
            for name in self.files:
                f = target / name
                f.parent.mkdir(parents=True, exist_ok=True)
                f.write_text("// fetched\n")
            return CommandResult(0, "", "")
        if args[:2] == ["git", "rev-parse"]:
            return CommandResult(0, self.head + "\n", "")
        if args[:2] == ["git", "checkout"]:
            return CommandResult(0, "", "")
        return CommandResult(1, "", f"unexpected: {args}")

    @property
    def clones(self) -> list[list[str]]:
        return [a for a, _ in self.calls if a[:2] == ["git", "clone"]]

    @property
    def checkouts(self) -> list[list[str]]:
        return [a for a, _ in self.calls if a[:2] == ["git", "checkout"]]


class RecordingCompiler:
    """满足 UnitCompiler 协议，线程安全地记录调用"""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def compile(
        self, context, exec_handle, package_id, unit_path, output_workspace,
        deps, flags, cfgs, opt_level, output_type,
    ):
        with self._lock:
            self.calls.append({
                "package_id": package_id,
                "unit_path": unit_path,
                "output_workspace": output_workspace,
                "flags": flags,
                "cfgs": cfgs,
                "opt_level": opt_level,
                "output_type": output_type,
            })
        if self.fail:
            return None
        return output_workspace / "out" / f"{output_type.value}-{unit_path.parent.name}"

    def compiled(self) -> list[Path]:
        with self._lock:
            return [c["unit_path"] for c in self.calls]


def _make_tree(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)
    return root


@pytest.fixture()
def make_tree():
    """文件树工厂: make_tree(root, {"src/lib.rs": "..."})"""
    return _make_tree


@pytest.fixture()
def fake_git():
    return FakeGitExecutor()


@pytest.fixture()
def compiler():
    return RecordingCompiler()


@pytest.fixture()
def fake_git_factory():
    """需要定制行为时使用: fake_git_factory(fail_clone=True)"""
    return FakeGitExecutor


@pytest.fixture()
def compiler_factory():
    return RecordingCompiler
