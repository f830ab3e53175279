"""统一异常体系

所有业务异常继承 PkgSrcError，替代散落的 ValueError / RuntimeError。
业务异常均可由调用方捕获后替换结果继续执行，
CLI 层统一转为带 code 的友好提示。

输入类型错误（非 file/binary）属于调用方违约，直接 AssertionError，不在此体系内。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgsrc.core.models import PackageId


class PkgSrcError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgSrcError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgSrcError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"


class PackageNotFoundError(PkgSrcError):
    """所有候选目录、嵌套前缀、远程拉取、CWD/搜索路径回退均未找到包源码"""

    code = "PACKAGE_NOT_FOUND"

    def __init__(self, package_id: PackageId, details: str) -> None:
        super().__init__(f"{package_id}: {details}")
        self.package_id = package_id
        self.details = details


class InvalidPackageDirectoryError(PkgSrcError):
    """解析出的 start_dir 存在但不是目录"""

    code = "INVALID_PACKAGE_DIR"

    def __init__(self, package_id: PackageId, details: str) -> None:
        super().__init__(f"{package_id}: {details}")
        self.package_id = package_id
        self.details = details


class GitCheckoutFailedError(PkgSrcError):
    """单次 git 拉取失败（由拉取器内部转为「尝试下一个候选」）"""

    code = "GIT_CHECKOUT_FAILED"

    def __init__(self, url: str, target: str, details: str = "") -> None:
        msg = f"git 检出失败: {url} -> {target}"
        if details:
            msg = f"{msg} ({details})"
        super().__init__(msg)
        self.url = url
        self.target = target


class NoBuildableUnitsError(PkgSrcError):
    """源码目录下没有任何可构建单元"""

    code = "NO_BUILDABLE_UNITS"

    def __init__(self, package_id: PackageId, hint: str = "") -> None:
        msg = f"无法推断可构建单元: {package_id}"
        if hint:
            msg = f"{msg}。{hint}"
        super().__init__(msg)
        self.package_id = package_id
