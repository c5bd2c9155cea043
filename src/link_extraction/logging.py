"""
Structured logging for the unsubscribe link extraction pipeline.

This module provides JSON-structured logging with bound context,
operation timing and sensitive data filtering. Loggers are immutable
once built: ``bind`` returns a new logger so concurrent extraction calls
never share mutable context.
"""

import logging
import json
import time
import re
from typing import Dict, Any, Optional
from contextlib import contextmanager
from datetime import datetime, timezone

LOGGER_NAMESPACE = "unsublink"


class SensitiveDataFilter:
    """Filter sensitive data from log messages."""

    def __init__(self):
        self.sensitive_patterns = [
            (re.compile(r'token=([^&\s"]+)', re.IGNORECASE), 'token=***'),
            (re.compile(r'password["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'password=***'),
            (re.compile(r'api_key["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'api_key=***'),
            (re.compile(r'secret["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'secret=***'),
        ]
        self.sensitive_keys = {'password', 'token', 'api_key', 'secret'}

    def filter_message(self, message: str) -> str:
        """Filter sensitive data from a message string."""
        filtered = message
        for pattern, replacement in self.sensitive_patterns:
            filtered = pattern.sub(replacement, filtered)
        return filtered

    def filter_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.filter_message(value)
        if isinstance(value, dict):
            return self.filter_dict(value)
        if isinstance(value, (list, tuple)):
            return [self.filter_value(item) for item in value]
        return value

    def filter_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Filter sensitive data from a dictionary."""
        filtered = {}
        for key, value in data.items():
            if key.lower() in self.sensitive_keys:
                filtered[key] = '***'
            else:
                filtered[key] = self.filter_value(value)
        return filtered


class ExtractionLogger:
    """Structured logger for one pipeline component."""

    def __init__(self, component: str, context: Optional[Dict[str, Any]] = None):
        self.component = component
        self.logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{component}")
        self.context: Dict[str, Any] = dict(context or {})
        self.filter = SensitiveDataFilter()

    def bind(self, **context: Any) -> 'ExtractionLogger':
        """Return a logger carrying this logger's context plus ``context``."""
        merged = dict(self.context)
        merged.update(context)
        return ExtractionLogger(self.component, merged)

    def _prepare_log_data(self, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Prepare structured log data with context and filtering."""
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'component': self.component,
            'message': self.filter.filter_message(message),
            'context': self.filter.filter_dict(self.context)
        }

        if extra:
            log_data['extra'] = self.filter.filter_dict(extra)

        return log_data

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        # Skip JSON encoding entirely when the level is disabled
        if not self.logger.isEnabledFor(level):
            return
        log_data = self._prepare_log_data(message, extra)
        self.logger.log(level, json.dumps(log_data, default=str), **kwargs)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.ERROR, message, extra)

    @contextmanager
    def time_operation(self, operation_name: str):
        """Context manager to time operations and log performance."""
        start_time = time.perf_counter()
        self.debug(f"Starting {operation_name}", {"operation": operation_name})

        try:
            yield
        except Exception as e:
            self.error(f"Operation {operation_name} failed", {
                "operation": operation_name,
                "duration_seconds": round(time.perf_counter() - start_time, 3),
                "status": "failure",
                "error": str(e)
            })
            raise

        self.debug(f"Operation {operation_name} completed", {
            "operation": operation_name,
            "duration_seconds": round(time.perf_counter() - start_time, 3),
            "status": "success"
        })

    def log_exception(self, exception: Exception, extra: Optional[Dict[str, Any]] = None):
        """Log exception with its type, context and traceback."""
        if not self.logger.isEnabledFor(logging.ERROR):
            return
        log_data = self._prepare_log_data(f"Exception occurred: {exception}", extra)
        log_data['exception'] = {
            'type': type(exception).__name__,
            'message': str(exception)
        }

        context = getattr(exception, 'context', None)
        if context:
            log_data['exception']['context'] = self.filter.filter_dict(context)

        self.logger.error(json.dumps(log_data, default=str), exc_info=exception)


def configure_extraction_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "console",
    filename: Optional[str] = None
) -> logging.Logger:
    """Configure the extraction logging system."""

    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(log_level)
    logger.handlers.clear()

    if format == "json":
        formatter = logging.Formatter('%(message)s')
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    if output in ["console", "both"]:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if output in ["file", "both"] and filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
