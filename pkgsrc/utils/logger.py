"""pkgsrc 日志配置

库代码只使用 logging.getLogger(__name__)，由入口（CLI）调用 setup_logging 一次。
支持人类可读文本与结构化 JSON 两种输出。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL_ENV = "PKGSRC_LOG_LEVEL"
LOG_JSON_ENV = "PKGSRC_LOG_JSON"


class JSONFormatter(logging.Formatter):
    """每条日志输出一行 JSON，便于 CI 流水线消费

    字段: timestamp / level / logger / message / module / function / line，
    有异常时附带 exception。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            # 取事件发生时间，而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器，输出到 stderr

    参数:
        level: DEBUG / INFO / WARNING / ERROR / CRITICAL，非法值按 INFO
        json_output: True 时使用 JSONFormatter

    重复调用会先清理已有 handler，不会重复输出。
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)-7s] %(name)s: %(message)s")
        )
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按 PKGSRC_LOG_LEVEL / PKGSRC_LOG_JSON 环境变量配置日志"""
    setup_logging(
        level=os.getenv(LOG_LEVEL_ENV, "INFO"),
        json_output=os.getenv(LOG_JSON_ENV, "") == "1",
    )


def reset_logging() -> None:
    """清理根日志器上的所有 handler（测试中重新配置时使用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
