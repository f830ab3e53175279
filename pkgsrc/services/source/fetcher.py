"""远程源码拉取器

策略: 本地优先 + 远程回退
  1. 本地缓存目录已是对应版本的检出 → 标记只读直接返回（可重复调用）
  2. 包路径不足两段，不可能是 URL 片段 → 返回 None
  3. https://<包路径> 克隆到暂存目录，失败交给 on_checkout_failed 处理
  4. 创建缓存目录的所有祖先后 rename 暂存目录到位；rename 失败视为拉取失败，暂存目录删除
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable

from pkgsrc.core.exceptions import GitCheckoutFailedError
from pkgsrc.core.models import PackageId
from pkgsrc.core.protocols import CloneStatus, VersionControl
from pkgsrc.utils.net import url_for_path

logger = logging.getLogger(__name__)

# 拉取失败处理器：返回即表示「没拉到，继续下一个候选」，抛异常则中止整个解析
CheckoutFailedHandler = Callable[[GitCheckoutFailedError], None]


def _log_checkout_failed(err: GitCheckoutFailedError) -> None:
    logger.warning("拉取失败，尝试下一个候选: %s", err)


class RemoteFetcher:
    """把包标识当作 git 仓库拉取并缓存到本地目录"""

    def __init__(
        self,
        vcs: VersionControl,
        on_checkout_failed: CheckoutFailedHandler | None = None,
    ) -> None:
        self.vcs = vcs
        self.on_checkout_failed = on_checkout_failed or _log_checkout_failed

    def fetch(self, local: Path, package_id: PackageId) -> Path | None:
        """拉取成功返回缓存目录 local，否则返回 None"""
        source = Path(package_id.path)
        logger.debug(
            "检查 %s 是否已存在本地检出: %s (cwd=%s)", package_id, local, Path.cwd(),
        )

        outcome = self.vcs.safe_clone(source, package_id.version, local)
        if outcome.status == CloneStatus.CHECKED_OUT:
            self.vcs.make_read_only(local)
            return local

        staging = outcome.path
        if len(package_id.segments) < 2:
            # 单段路径不是 URL 片段，不做远程拉取
            shutil.rmtree(staging, ignore_errors=True)
            return None

        url = url_for_path(package_id.path)
        logger.info(
            "拉取包: git clone %s %s [version=%s]",
            url, staging, package_id.version_or_default(),
        )
        try:
            self.vcs.clone_url(url, staging, package_id.version)
        except GitCheckoutFailedError as e:
            shutil.rmtree(staging, ignore_errors=True)
            self.on_checkout_failed(e)
            return None

        return self._adopt(staging, local)

    @staticmethod
    def _adopt(staging: Path, local: Path) -> Path | None:
        """先建祖先目录，再把暂存目录整体 rename 到缓存位置"""
        try:
            local.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
            os.rename(staging, local)
        except OSError as e:
            logger.error("暂存目录无法移动到缓存位置 %s -> %s: %s", staging, local, e)
            shutil.rmtree(staging, ignore_errors=True)
            return None
        logger.info("已缓存: %s", local)
        return local
