"""
Centralized logging configuration for Persona Panel
===================================================

Provides standardized logging with:
- Consistent logger instances across all modules
- Structured JSON logging for production
- Session correlation IDs so interleaved conversations stay traceable
- Configurable log levels and formats
"""

import logging
import json
import sys
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Iterator
from contextvars import ContextVar
from pathlib import Path

from ..config import get_config

# Context variable for correlation ID tracking
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'message', 'exc_info',
    'exc_text', 'stack_info', 'correlation_id', 'taskName'
])


class CorrelationFilter(logging.Filter):
    """Add correlation ID to log records for session tracing"""

    def filter(self, record):
        record.correlation_id = correlation_id.get() or 'none'
        return True


class StructuredFormatter(logging.Formatter):
    """JSON structured logging formatter for production monitoring"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'correlation_id': getattr(record, 'correlation_id', 'none')
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter for development"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        corr_id = getattr(record, 'correlation_id', 'none')
        corr_display = f"[{corr_id[:8]}]" if corr_id != 'none' else ""

        color = self.COLORS.get(record.levelname, '')
        reset = self.COLORS['RESET']
        colored_level = f"{color}{record.levelname:8s}{reset}"

        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        return f"{timestamp} {colored_level} {record.name:30s} {corr_display} {record.getMessage()}"


class LoggingManager:
    """
    Centralized logging configuration manager

    Handles:
    - Logger creation with consistent naming
    - Configuration from environment settings
    - Correlation ID management for session tracing
    - Structured vs console output selection
    """

    def __init__(self):
        self.config = get_config()
        self.loggers: Dict[str, logging.Logger] = {}
        self._setup_package_logging()

    def _setup_package_logging(self):
        """Attach handlers to the package logger so host applications keep their root config"""

        log_level = getattr(logging, self.config.logging.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger('persona_panel')
        package_logger.handlers.clear()
        package_logger.setLevel(log_level)

        correlation_filter = CorrelationFilter()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        if self.config.logging.debug_mode:
            console_formatter = ConsoleFormatter()
        else:
            console_formatter = StructuredFormatter()

        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(correlation_filter)
        package_logger.addHandler(console_handler)

        log_file = self.config.logging.log_file
        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(log_level)

            # Always use structured format for file output
            file_handler.setFormatter(StructuredFormatter())
            file_handler.addFilter(correlation_filter)
            package_logger.addHandler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a standardized logger instance

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            Configured logger instance
        """
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)

        return self.loggers[name]

    def set_correlation_id(self, corr_id: Optional[str] = None) -> str:
        """
        Set correlation ID for session tracing

        Args:
            corr_id: Optional correlation ID. If None, generates a new UUID

        Returns:
            The correlation ID that was set
        """
        if corr_id is None:
            corr_id = str(uuid.uuid4())

        correlation_id.set(corr_id)
        return corr_id

    def clear_correlation_id(self):
        """Clear the current correlation ID"""
        correlation_id.set(None)

    def get_correlation_id(self) -> Optional[str]:
        """Get the current correlation ID"""
        return correlation_id.get()


# Global logging manager instance
_logging_manager: Optional[LoggingManager] = None


def _get_manager() -> LoggingManager:
    global _logging_manager
    if _logging_manager is None:
        _logging_manager = LoggingManager()
    return _logging_manager


def get_logger(name: str) -> logging.Logger:
    """
    Get a standardized logger instance

    Usage:
        from persona_panel.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Speaker selected")

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance
    """
    return _get_manager().get_logger(name)


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set correlation ID for session tracing, generating one when omitted"""
    return _get_manager().set_correlation_id(corr_id)


def clear_correlation_id():
    """Clear the current correlation ID"""
    correlation_id.set(None)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID"""
    return correlation_id.get()


@contextmanager
def with_session_id(session_id: str) -> Iterator[None]:
    """
    Context manager that tags every log record with a conversation session ID

    Usage:
        with with_session_id(session.id):
            logger.info("Processing user turn")
    """
    token = correlation_id.set(session_id)
    try:
        yield
    finally:
        correlation_id.reset(token)
