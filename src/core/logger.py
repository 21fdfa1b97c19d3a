"""Loguru logging configuration.

모든 모듈은 `from loguru import logger`를 그대로 사용하고, sink 구성은
이 모듈에서 한 번만 합니다.

Features:
    - Console sink (human-readable) + File sink (JSON 직렬화 또는 회전 text)
    - Context patcher: LoggingContext로 설정된 vault / strategy / operation /
      trace_id를 모든 record의 extra에 주입 (명시적 bind 값이 우선)

Rules Applied:
    - #15 Logging Standards: Loguru, dual sinks
    - #23 Exception Handling: file sink에는 diagnose 비활성
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from src.logging.config import LoggingConfig, get_logging_config
from src.logging.context import get_current_context

if TYPE_CHECKING:
    from loguru import Record

    from src.logging.config import LogLevel

_BASE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
)

CONSOLE_FORMAT = _BASE_FORMAT + "<level>{message}</level>"

CONTEXT_FORMAT = (
    _BASE_FORMAT
    + "<dim>[{extra[vault]}:{extra[operation]}:{extra[trace_id]}]</dim> "
    + "<level>{message}</level>"
)


def _context_patcher(record: Record) -> None:
    """현재 logging context를 record extra에 병합."""
    for key, value in get_current_context().items():
        record["extra"].setdefault(key, value or "-")


def _file_sink(config: LoggingConfig) -> dict[str, Any]:
    suffix = "json" if config.json_logs else "log"
    sink: dict[str, Any] = {
        "sink": config.log_dir / f"{config.file_prefix}_{{time:YYYY-MM-DD}}.{suffix}",
        "level": config.file_level,
        "rotation": config.rotation,
        "retention": config.retention,
        "backtrace": config.backtrace,
        "diagnose": False,
    }
    if config.json_logs:
        sink |= {"format": "{message}", "serialize": True}
    else:
        sink |= {"format": CONTEXT_FORMAT, "compression": config.compression}
    return sink


def configure_logger(config: LoggingConfig) -> None:
    """기존 sink를 모두 교체하고 config대로 재구성."""
    handlers: list[dict[str, Any]] = [
        {
            "sink": sys.stderr,
            "format": CONTEXT_FORMAT if config.show_context else CONSOLE_FORMAT,
            "level": config.console_level,
            "colorize": True,
            "backtrace": config.backtrace,
            "diagnose": config.diagnose,
        }
    ]
    if config.enable_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_file_sink(config))

    logger.configure(handlers=handlers, patcher=_context_patcher)
    logger.debug(
        "Logger configured: console={} file={} dir={}",
        config.console_level,
        config.file_level if config.enable_file else "off",
        config.log_dir,
    )


def setup_logger_from_config(config: LoggingConfig | None = None) -> None:
    """LoggingConfig (없으면 LOG_* 환경 변수)로 logger 초기화.

    Example:
        >>> from src.core.logger import setup_logger_from_config
        >>> setup_logger_from_config()
    """
    configure_logger(config if config is not None else get_logging_config())


def setup_logger(
    log_dir: Path | str = Path("logs"),
    console_level: LogLevel = "INFO",
    file_level: LogLevel = "DEBUG",
    *,
    enable_file: bool = True,
    show_context: bool = False,
) -> None:
    """자주 쓰는 옵션만 받는 간이 초기화.

    Example:
        >>> setup_logger(console_level="DEBUG", enable_file=False)
        >>> logger.info("Vault simulation started")
    """
    configure_logger(
        LoggingConfig(
            log_dir=Path(log_dir),
            console_level=console_level,
            file_level=file_level,
            enable_file=enable_file,
            show_context=show_context,
        )
    )


__all__ = [
    "configure_logger",
    "logger",
    "setup_logger",
    "setup_logger_from_config",
]
