"""
Logging Configuration Module
Provides consistent logging across the application, tagging records emitted
while serving an API request with the caller and the request line.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flask import Response, g, has_request_context, request

from tracker_hub.config_manager import ConfigManager, get_config

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(user)s %(request)s] %(message)s'

# Libraries that log every HTTP call, SQL statement or job run at INFO
QUIET_LOGGERS = ('urllib3', 'requests', 'sqlalchemy.engine', 'apscheduler', 'werkzeug')


class RequestContextFilter(logging.Filter):
    """Adds ``user`` and ``request`` attributes; both are '-' outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.user = '-'
        record.request = '-'
        if has_request_context():
            principal = getattr(g, 'principal', None)
            if principal is not None:
                record.user = principal.user
            record.request = f"{request.method} {request.path}"
        return True


def setup_logging(config: Optional[ConfigManager] = None) -> None:
    """
    Setup application-wide logging configuration.
    Call this once at application startup.

    Args:
        config: Optional configuration; the shared one is used when omitted
    """
    config = config or get_config()
    log_config = config.get_logging_config()

    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper())
    formatter = logging.Formatter(log_config.get('format', DEFAULT_FORMAT))
    context = RequestContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]

    # An empty path keeps logs on stdout only (containers)
    log_file = log_config.get('file', './logs/tracker_hub.log')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=log_config.get('max_bytes', 10485760),  # 10MB
            backupCount=log_config.get('backup_count', 5)
        ))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler.addFilter(context)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_response(response: Response) -> Response:
    """after_request hook writing one access line per API call."""
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logging.getLogger('tracker_hub.access').log(level, f"-> {response.status_code}")
    return response


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class LoggerMixin:
    """Mixin class to add logging capability to any class."""

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        return logging.getLogger(self.__class__.__module__ + '.' + self.__class__.__name__)
