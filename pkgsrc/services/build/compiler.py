"""默认单单元编译器：调用配置的外部编译命令

产物位于 <输出工作空间>/build/<target>/<包路径>/，
编译器可执行文件本身作为 binary 类型的发现输入，升级编译器会使缓存失效。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from pkgsrc.core.digest import digest_only_date
from pkgsrc.core.models import DependencyMap, InputKind, OutputType, PackageId
from pkgsrc.core.protocols import ExecHandle
from pkgsrc.services.source.layout import target_build_dir
from pkgsrc.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

_TYPE_FLAGS: dict[OutputType, list[str]] = {
    OutputType.LIB: ["--crate-type", "lib"],
    OutputType.MAIN: [],
    OutputType.TEST: ["--test"],
    OutputType.BENCH: ["--test"],
}


def artifact_name(package_id: PackageId, output_type: OutputType) -> str:
    short = package_id.short_name
    if output_type == OutputType.LIB:
        return f"lib{short}.rlib"
    if output_type == OutputType.MAIN:
        return short
    return f"{short}-{output_type.value}"


class CommandCompiler:
    """通过 CommandExecutor 调用外部编译器"""

    def __init__(
        self,
        compiler_cmd: str,
        target: str,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.compiler_cmd = compiler_cmd
        self.target = target
        self._executor = executor

    def output_dir(self, workspace: Path, package_id: PackageId) -> Path:
        return target_build_dir(workspace, self.target) / package_id.path

    def compile(
        self,
        context: Any,
        exec_handle: ExecHandle,
        package_id: PackageId,
        unit_path: Path,
        output_workspace: Path,
        deps: DependencyMap,
        flags: tuple[str, ...],
        cfgs: tuple[str, ...],
        opt_level: int,
        output_type: OutputType,
    ) -> Path | None:
        binary = shutil.which(self.compiler_cmd)
        if binary:
            exec_handle.discover_input(InputKind.BINARY, binary, digest_only_date(Path(binary)))

        out_dir = self.output_dir(output_workspace, package_id)
        out_dir.mkdir(parents=True, exist_ok=True)
        output = out_dir / artifact_name(package_id, output_type)

        args = [
            binary or self.compiler_cmd, str(unit_path),
            "-o", str(output), "-C", f"opt-level={opt_level}",
            *_TYPE_FLAGS[output_type],
        ]
        for c in cfgs:
            args += ["--cfg", c]
        args += list(flags)

        r = (self._executor or get_executor()).execute(args, cwd=str(unit_path.parent))
        if not r.success:
            logger.error("编译失败 %s (rc=%d): %s", unit_path, r.returncode, r.stderr[:500])
            return None
        logger.debug("编译完成 %s -> %s (已知依赖 %d 项)", unit_path, output, len(deps))
        return output
