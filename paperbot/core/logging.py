from __future__ import annotations

import os
from pathlib import Path

from loguru import logger as _logger

FILLS_CHANNEL = "fills"


def _is_fill(record) -> bool:
    return record["extra"].get("channel") == FILLS_CHANNEL


def setup_logging(log_dir: str = "logs", level: str = "INFO", fills_log: bool = True) -> None:
    """Console + rotating ``paperbot.log``, plus ``paper_fills.log`` holding one line per applied fill."""
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    # Allow env override for log level (e.g., DEBUG)
    level = str(os.getenv("PAPERBOT_LOG_LEVEL", level)).upper()

    _logger.remove()
    # Console sink can be disabled when the terminal is used for the summary tables
    disable_console = str(os.getenv("PAPERBOT_DISABLE_CONSOLE_LOG", "0")).lower() in {"1", "true", "yes"}
    if not disable_console:
        # per-fill lines stay out of the console; the engine logs a summary per order
        _logger.add(
            sink=lambda msg: print(msg, end=""),
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
            filter=lambda record: not _is_fill(record),
        )
    _logger.add(
        Path(log_dir) / "paperbot.log",
        rotation="10 MB",
        retention=10,
        level=level,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[channel]} | {message}",
    )
    if fills_log:
        _logger.add(
            Path(log_dir) / "paper_fills.log",
            rotation="50 MB",
            retention=5,
            level="INFO",
            enqueue=True,
            filter=_is_fill,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}",
        )
    _logger.configure(extra={"channel": "main"})


def get_logger() -> _logger.__class__:
    return _logger


def fills_logger() -> _logger.__class__:
    return _logger.bind(channel=FILLS_CHANNEL)
