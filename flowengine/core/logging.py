"""Logging configuration for the flow engine."""

import logging
import sys
import json
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional, Dict, Any, Iterator
from pathlib import Path


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(funcName)s:%(lineno)d] - %(message)s"


class StructuredFormatter(logging.Formatter):
    """Formatter that renders each record as one JSON object."""
    
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        
        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }
        
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)
        
        return json.dumps(log_entry, default=str)


class RunContextFilter(logging.Filter):
    """Filter that stamps run and request identifiers onto log records.

    The fields live in a context variable so concurrent runs on one event
    loop each see their own values.
    """

    def __init__(self):
        super().__init__()
        self._context: ContextVar[Dict[str, Any]] = ContextVar("flowengine_log_context", default={})

    def set_context(self, **kwargs):
        return self._context.set({**self._context.get(), **kwargs})

    def reset_context(self, token) -> None:
        self._context.reset(token)

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'extra_fields'):
            record.extra_fields = {}
        record.extra_fields.update(self._context.get())
        return True


# Global context filter instance
_context_filter = RunContextFilter()


def setup_logging(
    level: str = "INFO", 
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    structured: bool = False,
    max_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure logging for the flow engine.
    
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        log_format: Custom log format string
        structured: Whether to use structured JSON logging
        max_size: Maximum log file size in bytes before rotation
        backup_count: Number of backup files to keep
        
    Returns:
        Root logger instance
    """
    if structured:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            fmt=log_format or DEFAULT_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(_context_filter)
    root_logger.addHandler(console_handler)
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = RotatingFileHandler(
            log_file, 
            maxBytes=max_size,
            backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(_context_filter)
        root_logger.addHandler(file_handler)
    
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    
    logging.getLogger("flowengine.core").setLevel(logging.DEBUG if level.upper() == "DEBUG" else logging.INFO)
    logging.getLogger("flowengine.api").setLevel(logging.INFO)
    
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name."""
    return logging.getLogger(name)


@contextmanager
def logging_context(**kwargs) -> Iterator[None]:
    """Set context fields for the duration of a block, then restore the previous ones."""
    token = _context_filter.set_context(**kwargs)
    try:
        yield
    finally:
        _context_filter.reset_context(token)
