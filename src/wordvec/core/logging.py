"""
Logging utilities for the wordvec package.

Provides human-readable or JSON-structured output, with query context
(query_id, mode) attached to records emitted while a query is running.
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional


CONTEXT_FIELDS = ["query_id", "mode", "model_path"]


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.
    
    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Query context fields if present (query_id, mode, model_path)
    """
    
    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp
    
    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()
        
        for field in CONTEXT_FIELDS + ["vocab_size", "dimension", "elapsed_ms"]:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value
        
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        
        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with query context.
    
    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [query_id=X mode=Y]
    """
    
    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)
    
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        
        context_parts = []
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")
        
        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger instance for the wordvec package.
    
    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional logging level override
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    
    if level is not None:
        logger.setLevel(level)
    
    return logger


def configure_logging(
    level: int = logging.INFO,
    include_timestamp: bool = True,
    structured: bool = False,
    stream=None,
) -> None:
    """
    Configure the wordvec package logger.
    
    Args:
        level: Logging level (default: INFO)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable
        stream: Output stream for the handler (default: stderr)
    """
    package_logger = logging.getLogger("wordvec")
    package_logger.setLevel(level)
    
    # Only add handler if none exist (avoid duplicate handlers)
    if not package_logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        
        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)
        
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)


class QueryContext:
    """
    Context manager for adding query fields to log records.
    
    Example:
        >>> with QueryContext(query_id="abc", mode="analogy"):
        ...     log_with_context(logger, logging.INFO, "Scoring")
    """
    
    _local = threading.local()
    
    def __init__(self, query_id: Optional[str] = None, mode: Optional[str] = None, **extra: Any):
        self.context = {"query_id": query_id, "mode": mode, **extra}
        self.context = {k: v for k, v in self.context.items() if v is not None}
        self._previous: Optional["QueryContext"] = None
    
    def __enter__(self) -> "QueryContext":
        self._previous = getattr(QueryContext._local, "current", None)
        QueryContext._local.current = self
        return self
    
    def __exit__(self, *args) -> None:
        QueryContext._local.current = self._previous
    
    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current query context."""
        current = getattr(cls._local, "current", None)
        if current is None:
            return {}
        return current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message merged with the current QueryContext.
    """
    context = QueryContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)
