"""abt の診断ログ出力設定"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from .exceptions import AbtError, AbtErrorCodes

LOGGER_NAME = "k1s0_abt"
_FORMATS = ("json", "text")


def new_logger(
    level: str = "INFO",
    format: str = "json",
    **initial_values: Any,
) -> structlog.stdlib.BoundLogger:
    """abt 用に structlog を設定し、initial_values をバインドしたロガーを返す。

    ルートロガーには触れず、"k1s0_abt" ロガーにだけ stdout ハンドラーを付ける。
    返すロガーは AssignmentResolver / HttpAbtFetcher の logger 引数に渡せる。

    Raises:
        AbtError: level または format が不正な場合（VALIDATION_ERROR）
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise AbtError(AbtErrorCodes.VALIDATION, f"unknown log level: {level}")
    if format not in _FORMATS:
        raise AbtError(AbtErrorCodes.VALIDATION, f"unknown log format: {format}")

    stdlib_logger = logging.getLogger(LOGGER_NAME)
    stdlib_logger.setLevel(log_level)
    if not stdlib_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    return structlog.stdlib.get_logger(LOGGER_NAME).bind(**initial_values)
