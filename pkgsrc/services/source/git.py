"""Git 版本控制客户端

职责：
- 判断目标目录是否已是指定版本的可用检出
- 本地仓库直接检出 / 远程 URL 克隆
- 检出结果标记只读
"""

from __future__ import annotations

import logging
import os
import re
import stat
import tempfile
from pathlib import Path

from pkgsrc.core.exceptions import GitCheckoutFailedError, ValidationError
from pkgsrc.core.protocols import CloneOutcome, CloneStatus
from pkgsrc.utils.net import validate_url_scheme
from pkgsrc.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")


def check_ref(ref: str) -> None:
    if ref.startswith("-") or not _SAFE_REF_RE.match(ref):
        raise ValidationError(f"ref 包含非法字符: {ref}")


class GitClient:
    """通过 CommandExecutor 调用 git"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        timeout: int | None = 600,
        scratch_root: Path | None = None,
    ) -> None:
        self._executor = executor
        self.timeout = timeout
        self.scratch_root = scratch_root

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def _git(self, args: list[str], cwd: Path | None = None):
        return self.executor.execute(
            ["git", *args], cwd=str(cwd) if cwd else ".", timeout=self.timeout,
        )

    def safe_clone(self, source: Path, version: str | None, target: Path) -> CloneOutcome:
        """已有检出直接复用；source 为本地仓库时检出到 target；否则分配暂存目录"""
        if version:
            check_ref(version)

        if (target / ".git").exists() and self.is_at_version(target, version):
            logger.debug("已有检出: %s (version=%s)", target, version or "latest")
            return CloneOutcome(CloneStatus.CHECKED_OUT, target)

        if (source / ".git").exists() and not target.exists():
            try:
                self._clone_local(source, target, version)
                logger.info("本地仓库已检出: %s -> %s", source, target)
                return CloneOutcome(CloneStatus.CHECKED_OUT, target)
            except GitCheckoutFailedError as e:
                logger.warning("本地仓库检出失败，改为远程拉取: %s", e)

        staging = Path(tempfile.mkdtemp(prefix=".pkgsrc-", dir=str(self.staging_parent(target))))
        return CloneOutcome(CloneStatus.DIR_TO_USE, staging)

    def staging_parent(self, target: Path) -> Path:
        """暂存目录的父目录：显式 scratch_root，否则 target 最近的已存在祖先

        保证暂存目录与 target 位于同一文件系统，rename 不跨设备。
        """
        if self.scratch_root is not None:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
            return self.scratch_root
        parent = target.absolute().parent
        while not parent.is_dir() and parent != parent.parent:
            parent = parent.parent
        return parent

    def is_at_version(self, workspace: Path, version: str | None) -> bool:
        """未指定版本时任何检出都可用；否则 HEAD 必须等于 version 指向的提交"""
        if not version:
            return True
        head = self._git(["rev-parse", "HEAD"], cwd=workspace)
        want = self._git(["rev-parse", "--verify", "--quiet", f"{version}^{{commit}}"], cwd=workspace)
        if not (head.success and want.success):
            return False
        return head.stdout.strip() == want.stdout.strip()

    def _clone_local(self, source: Path, target: Path, version: str | None) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        r = self._git(["clone", str(source), str(target)])
        if not r.success:
            raise GitCheckoutFailedError(str(source), str(target), r.stderr[:300])
        self._checkout(str(source), target, version)

    def clone_url(self, url: str, target: Path, version: str | None) -> None:
        """克隆 url 到 target 并检出 version（未指定则保持默认分支最新）"""
        validate_url_scheme(url, context="git clone")
        if version:
            check_ref(version)
        logger.info("git clone %s %s [version=%s]", url, target, version or "latest")
        r = self._git(["clone", url, str(target)])
        if not r.success:
            raise GitCheckoutFailedError(url, str(target), r.stderr[:300])
        self._checkout(url, target, version)

    def _checkout(self, origin: str, target: Path, version: str | None) -> None:
        if not version:
            return
        r = self._git(["checkout", version], cwd=target)
        if not r.success:
            raise GitCheckoutFailedError(origin, str(target), r.stderr[:300])

    def make_read_only(self, target: Path) -> None:
        """去掉检出文件的写权限（.git 除外，保留后续 fetch 能力）"""
        for root, dirs, files in os.walk(target):
            dirs[:] = [d for d in dirs if d != ".git"]
            for name in files:
                p = Path(root) / name
                mode = p.stat().st_mode
                p.chmod(mode & ~(stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH))
