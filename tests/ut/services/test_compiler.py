"""默认命令行编译器测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgsrc.core.digest import digest_only_date
from pkgsrc.core.models import DependencyMap, OutputType, PackageId
from pkgsrc.services.build.cache import Exec
from pkgsrc.services.build.compiler import CommandCompiler, artifact_name
from pkgsrc.utils.shell import CommandResult

PID = PackageId("acme/widget", "1.0")


class RecordingExecutor:
    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[tuple[list[str], str]] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        self.calls.append((list(cmd), cwd))
        return CommandResult(self.returncode, "", "error: expected item" if self.returncode else "")


@pytest.fixture()
def fake_cc(tmp_path: Path) -> Path:
    cc = tmp_path / "bin" / "fakecc"
    cc.parent.mkdir()
    cc.write_text("#!/bin/sh\n")
    cc.chmod(0o755)
    return cc


def _compile(compiler: CommandCompiler, handle: Exec, unit: Path, ws: Path,
             output_type: OutputType = OutputType.LIB, cfgs=(), flags=()):
    return compiler.compile(
        None, handle, PID, unit, ws, DependencyMap(), tuple(flags), tuple(cfgs), 1, output_type,
    )


class TestArtifactName:
    @pytest.mark.parametrize("output_type, expected", [
        (OutputType.LIB, "libwidget.rlib"),
        (OutputType.MAIN, "widget"),
        (OutputType.TEST, "widget-test"),
        (OutputType.BENCH, "widget-bench"),
    ])
    def test_names(self, output_type: OutputType, expected: str) -> None:
        assert artifact_name(PID, output_type) == expected


class TestCommandCompiler:
    def test_command_line(self, fake_cc: Path, tmp_path: Path) -> None:
        ex = RecordingExecutor()
        compiler = CommandCompiler(str(fake_cc), "x86_64", ex)
        unit = tmp_path / "src" / "lib.rs"
        out = _compile(compiler, Exec("t"), unit, tmp_path / "ws", cfgs=["unix"], flags=["-g"])

        expected_out = tmp_path / "ws" / "build" / "x86_64" / "acme" / "widget" / "libwidget.rlib"
        assert out == expected_out
        assert expected_out.parent.is_dir()
        args, cwd = ex.calls[0]
        assert args == [
            str(fake_cc), str(unit), "-o", str(expected_out), "-C", "opt-level=1",
            "--crate-type", "lib", "--cfg", "unix", "-g",
        ]
        assert cwd == str(unit.parent)

    def test_test_unit_flags(self, fake_cc: Path, tmp_path: Path) -> None:
        ex = RecordingExecutor()
        _compile(CommandCompiler(str(fake_cc), "t", ex), Exec("t"), tmp_path / "test.rs",
                 tmp_path / "ws", OutputType.TEST)
        assert "--test" in ex.calls[0][0]

    def test_binary_discovered(self, fake_cc: Path, tmp_path: Path) -> None:
        handle = Exec("t")
        _compile(CommandCompiler(str(fake_cc), "t", RecordingExecutor()), handle,
                 tmp_path / "lib.rs", tmp_path / "ws")
        assert handle.discovered == {f"binary:{fake_cc}": digest_only_date(fake_cc)}

    def test_missing_compiler_not_discovered(self, tmp_path: Path) -> None:
        handle = Exec("t")
        ex = RecordingExecutor()
        _compile(CommandCompiler("no-such-compiler-xyz", "t", ex), handle,
                 tmp_path / "lib.rs", tmp_path / "ws")
        assert handle.discovered == {}
        assert ex.calls[0][0][0] == "no-such-compiler-xyz"

    def test_failure_returns_none(
        self, fake_cc: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        out = _compile(CommandCompiler(str(fake_cc), "t", RecordingExecutor(returncode=1)),
                       Exec("t"), tmp_path / "lib.rs", tmp_path / "ws")
        assert out is None
        assert "编译失败" in caplog.text
