"""Logging setup with Loguru."""

import contextvars
import logging
import sys
from pathlib import Path
from types import FrameType
from typing import Any, Dict, Optional

from loguru import logger

# Context variable carrying the intake session id for the current task
session_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "intake_session_id", default=None
)

__all__ = ["session_id_ctx", "setup_logging", "InterceptHandler"]


class InterceptHandler(logging.Handler):
    """Route standard library log records (aiohttp, tenacity) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _session_patcher(record: Dict[str, Any]) -> None:
    """
    Patch log records with the intake session id from context.

    Called by Loguru for each record to copy the ContextVar value into
    the record's extra fields.
    """
    session_id = session_id_ctx.get()
    if session_id:
        record["extra"]["session_id"] = session_id


def setup_logging(
    level: str = "INFO", json_format: bool = False, log_dir: Optional[str] = None
) -> None:
    """
    Setup Loguru logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Write a serialized JSONL file (requires log_dir)
        log_dir: Directory for file sinks; console only when omitted
    """
    logger.remove()
    logger.configure(patcher=_session_patcher)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stderr, format=console_format, level=level, colorize=True)

    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        if json_format:
            logger.add(
                logs_path / "intake.jsonl",
                format="{message}",
                level=level,
                rotation="10 MB",
                retention="30 days",
                serialize=True,
            )
        else:
            logger.add(
                logs_path / "intake.log",
                format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
                level=level,
                rotation="10 MB",
                retention="30 days",
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logger.info(f"Logging initialized (level={level}, json={json_format})")
