"""structlog 配置模块

日志写到 stderr，CLI 的对比结果独占 stdout。
任何字符串字段中的 key=<API key> 查询参数在渲染前被掩码。
"""

import logging
import os
import re
import sys

import structlog

# 第三方库在 INFO/DEBUG 级别会打印完整请求 URL
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")

_KEY_PARAM = re.compile(r"([?&]key=)[^&\s\"']+")


def redact_api_key(_logger, _method_name, event_dict: dict) -> dict:
    """掩码事件中出现的 key 查询参数"""
    for name, value in event_dict.items():
        if isinstance(value, str) and "key=" in value:
            event_dict[name] = _KEY_PARAM.sub(r"\1***", value)
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json" 为结构化输出，其余值为 dev 可读输出；
                    缺省时读 SIDEBYSIDE_LOG_FORMAT（默认 dev）
        log_level: 日志级别名；缺省时读 SIDEBYSIDE_LOG_LEVEL（默认 WARNING）
    """
    log_format = log_format or os.environ.get("SIDEBYSIDE_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("SIDEBYSIDE_LOG_LEVEL", "WARNING")
    level = getattr(logging, log_level.upper(), logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_api_key,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
