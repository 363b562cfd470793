"""Loguru-based logger configuration for the waitlist service."""

import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger


# Create logs directory if it doesn't exist
LOGS_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Generate log filename with timestamp
SERVICE_START_TIME = datetime.now()
LOG_FILENAME = SERVICE_START_TIME.strftime("waitlist_%Y%m%d_%H%M%S.log")
LOG_FILEPATH = LOGS_DIR / LOG_FILENAME

# Configuration from environment
DEBUG_MODE = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO")
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() in ("true", "1", "yes")

SENSITIVE_HEADERS = {
    'authorization', 'cookie', 'x-api-key',
    'x-auth-token', 'x-csrf-token'
}

SENSITIVE_FIELDS = {
    'password', 'token', 'secret', 'api_key',
    'access_token', 'refresh_token', 'phone', 'email'
}


class WaitlistLoguru:
    """Loguru-based logger for the waitlist service."""

    _instance = None
    _configured = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._configured:
            self._setup_logger()
            self._configured = True

    def _setup_logger(self):
        """Configure Loguru logger with file and console handlers."""
        logger.remove()

        if DEBUG_MODE:
            console_format = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )
            logger.add(
                sys.stdout,
                format=console_format,
                level=LOG_LEVEL,
                colorize=True,
                backtrace=True,
                diagnose=True
            )

        logger.add(
            LOG_FILEPATH,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="50 MB",
            retention="10 days",
            compression="gz",
            serialize=not DEBUG_MODE,
            backtrace=True,
            diagnose=DEBUG_MODE,
            enqueue=True
        )

        logger.bind(
            log_file=str(LOG_FILEPATH),
            debug_mode=DEBUG_MODE,
            log_level=LOG_LEVEL
        ).info("Waitlist service logger configured")

    def log_request(
        self,
        request_id: str,
        method: str,
        endpoint: str,
        headers: Dict[str, str],
        body: Any,
        query_params: Optional[Dict[str, str]] = None
    ):
        """Log incoming request."""
        safe_body = self._sanitize_body(body)

        log_data = {
            "request_id": request_id,
            "request_type": "incoming",
            "method": method,
            "endpoint": endpoint,
            "body": safe_body,
            "query_params": query_params or {},
        }

        if VERBOSE_LOGGING:
            log_data["headers"] = self._sanitize_headers(headers)

        if DEBUG_MODE:
            body_preview = json.dumps(safe_body, indent=2, default=str) if safe_body else "None"
            message = f"Request {method} {endpoint}\n{body_preview}"
        else:
            message = f"Request received: {method} {endpoint}"

        logger.bind(**log_data).info(message)

    def log_response(
        self,
        request_id: str,
        status_code: int,
        headers: Dict[str, str],
        body: Any,
        duration_ms: float
    ):
        """Log outgoing response."""
        log_data = {
            "request_id": request_id,
            "request_type": "outgoing",
            "status_code": status_code,
            "duration_ms": duration_ms,
        }

        if VERBOSE_LOGGING:
            log_data.update({
                "headers": dict(headers),
                "body": self._sanitize_body(body),
            })

        if status_code >= 500:
            log_level = "error"
        elif status_code >= 400:
            log_level = "warning"
        else:
            log_level = "info"

        message = f"Response sent - Status: {status_code} ({duration_ms:.1f}ms)"
        getattr(logger.bind(**log_data), log_level)(message)

    def log_error(
        self,
        message: str,
        error: Optional[Exception] = None,
        **kwargs
    ):
        """Log an error."""
        if error:
            logger.bind(**kwargs).opt(exception=error).error(message)
        else:
            logger.bind(**kwargs).error(message)

    def log_warning(self, message: str, **kwargs):
        """Log a warning."""
        logger.bind(**kwargs).warning(message)

    def log_info(self, message: str, **kwargs):
        """Log info message."""
        logger.bind(**kwargs).info(message)

    def log_debug(self, message: str, **kwargs):
        """Log debug message."""
        logger.bind(**kwargs).debug(message)

    def log_operation(
        self,
        operation: str,
        duration_ms: float,
        **fields: Any
    ):
        """Log a completed waitlist or placement operation."""
        log_data = {
            "operation": operation,
            "duration_ms": duration_ms,
            **{key: str(value) if value is not None else None for key, value in fields.items()}
        }
        logger.bind(**log_data).info(f"Operation completed: {operation} ({duration_ms:.1f}ms)")

    def _sanitize_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Remove sensitive information from headers."""
        return {
            key: "***REDACTED***" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _sanitize_body(self, body: Any) -> Any:
        """Remove sensitive information from request/response body."""
        if not body:
            return body

        if isinstance(body, dict):
            safe_body = {}
            for key, value in body.items():
                if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
                    safe_body[key] = "***REDACTED***"
                elif isinstance(value, (dict, list)):
                    safe_body[key] = self._sanitize_body(value)
                else:
                    safe_body[key] = value
            return safe_body

        elif isinstance(body, list):
            return [self._sanitize_body(item) for item in body]

        return body


# Singleton instance
waitlist_logger = WaitlistLoguru()


def get_logger() -> WaitlistLoguru:
    """Get the waitlist logger instance."""
    return waitlist_logger
