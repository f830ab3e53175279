"""网络工具：拉取 URL 校验"""

from __future__ import annotations

from urllib.parse import urlparse

from pkgsrc.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))

# 包标识派生 URL 时固定使用的协议
FETCH_SCHEME = "https"


def url_for_path(package_path: str) -> str:
    """把包路径片段拼成拉取 URL，如 github.com/acme/widget -> https://github.com/acme/widget"""
    return f"{FETCH_SCHEME}://{package_path}"


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，且带有主机名

    Raises:
        ValidationError: 协议不在白名单内或缺少主机名
    """
    parsed = urlparse(url)
    label = f" ({context})" if context else ""
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，仅支持 http/https: {url}"
        )
    if not parsed.netloc:
        raise ValidationError(f"URL 缺少主机名{label}: {url}")
