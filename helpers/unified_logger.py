"""
Unified logging for the Bison client.

Provides consistent, colored logging across all SDK components:
- REST client
- Streaming subscriptions (sessions, heartbeats, reconnects)
- Order flows

Based on loguru with component-specific context bound to every record.
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as _logger


class UnifiedLogger:
    """
    Logger that binds a component identifier to every record.

    Features:
    - Colored console output with source location (module:function:line)
    - Component-specific context (channel, subscription key, etc.)
    - Optional file logging when BISON_LOG_DIR is set
    - ``.log(message, level)`` call style used throughout the SDK
    """

    def __init__(
        self,
        component_type: str,  # "client", "stream", "flow"
        component_name: str,  # "rest", "market_ticker", "buy", ...
        context: Optional[Dict[str, Any]] = None,
        log_to_console: bool = True,
        log_level: str = "INFO",
    ):
        """
        Initialize unified logger.

        Args:
            component_type: Type of component (client, stream, flow)
            component_name: Name of specific component
            context: Additional context (channel key, address, ...)
            log_to_console: Whether to log to console
            log_level: Minimum console log level
        """
        self.component_type = component_type.upper()
        self.component_name = component_name.upper()
        self.context = context or {}
        self.log_level = log_level.upper()

        self.component_id = f"{self.component_type}:{self.component_name}"
        if self.context:
            context_str = ":".join([f"{k}={v}" for k, v in self.context.items()])
            self.component_id = f"{self.component_id}:{context_str}"

        self._setup_logger(log_to_console)

    def _setup_logger(self, log_to_console: bool):
        """Install the shared loguru sinks once per process."""
        if log_to_console and not hasattr(_logger, "_bison_console_setup"):
            _logger.remove()

            def format_record(record):
                module_name = record.get("module") or record.get("name", "")
                function_name = record.get("function", "")
                line_number = record.get("line", 0)
                source = f"{module_name}:{function_name}:{line_number}"
                max_width = 45
                if len(source) > max_width:
                    source = f"...{source[-(max_width - 3):]}"
                record["extra"]["short_name"] = f"{source:>{max_width}}"
                return True

            console_format = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{extra[short_name]}</cyan> | "
                "<level>{message}</level>"
            )

            _logger.add(
                sys.stdout,
                format=console_format,
                level=self.log_level,
                colorize=True,
                filter=lambda record: record["extra"].get("component_id") and format_record(record),
                backtrace=True,
                diagnose=False,
            )
            _logger._bison_console_setup = True

        log_dir = os.getenv("BISON_LOG_DIR")
        if log_dir and not hasattr(_logger, "_bison_file_setup"):
            logs_dir = Path(log_dir)
            logs_dir.mkdir(parents=True, exist_ok=True)
            session_ts = datetime.now().strftime("%Y%m%d_%H%M%S")

            def ensure_component(record):
                if "component_id" not in record["extra"]:
                    record["extra"]["component_id"] = "UNKNOWN"
                return True

            _logger.add(
                str(logs_dir / f"bison_{session_ts}.log"),
                format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {extra[component_id]:<35} | {message}",
                level="DEBUG",
                filter=ensure_component,
                rotation="50 MB",
                retention=5,
                enqueue=True,
                catch=True,
            )
            _logger._bison_file_setup = True

        self._logger = _logger.bind(component_id=self.component_id)

    def debug(self, message: str, **kwargs):
        self._logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self._logger.opt(depth=1).error(message, **kwargs)

    def log(self, message: str, level: str = "INFO", **kwargs):
        """
        Log at a named level.

        Args:
            message: Log message
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            **kwargs: Additional context
        """
        level = level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            level = "INFO"
        # depth=1 skips this wrapper so records show the real caller
        self._logger.opt(depth=1).log(level, message, **kwargs)

    def with_context(self, **context) -> "UnifiedLogger":
        """Create a new logger instance with additional context."""
        return UnifiedLogger(
            component_type=self.component_type.lower(),
            component_name=self.component_name.lower(),
            context={**self.context, **context},
            log_level=self.log_level,
        )


def get_logger(
    component_type: str,
    component_name: str,
    context: Optional[Dict[str, Any]] = None,
    log_to_console: bool = True,
    log_level: Optional[str] = None,
) -> UnifiedLogger:
    """
    Factory function to create unified loggers.

    Args:
        component_type: Type of component (client, stream, flow)
        component_name: Name of specific component
        context: Additional context
        log_to_console: Whether to log to console
        log_level: Log level (defaults to env BISON_LOG_LEVEL or INFO)

    Examples:
        logger = get_logger("stream", "orderbook", {"key": "KXBTC-25"})
        logger = get_logger("client", "rest")
    """
    if log_level is None:
        log_level = os.getenv("BISON_LOG_LEVEL", "INFO")

    return UnifiedLogger(
        component_type=component_type,
        component_name=component_name,
        context=context,
        log_to_console=log_to_console,
        log_level=log_level,
    )


def get_stream_logger(channel_name: str, log_level: Optional[str] = None, **context) -> UnifiedLogger:
    """Get logger for a streaming subscription."""
    return get_logger("stream", channel_name, context, log_level=log_level)


def get_client_logger(name: str = "rest", log_level: Optional[str] = None, **context) -> UnifiedLogger:
    """Get logger for the request/response client."""
    return get_logger("client", name, context, log_level=log_level)
