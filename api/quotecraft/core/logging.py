"""Structured logging with secret redaction.

JSON output (python-json-logger) for log aggregation, with the current
request id attached to every record. Upstream URLs and error messages may
carry API keys, so messages are sanitized before they are emitted.
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import settings

# Context variable for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class SecuritySanitizer:
    """Sanitize sensitive information from logs."""

    SENSITIVE_PATTERNS = {
        'api_key': re.compile(r'(api[_-]?key["\s:=]+["\']?)([a-zA-Z0-9_-]{20,})', re.IGNORECASE),
        'query_key': re.compile(r'([?&]key=)([^&\s"\']+)', re.IGNORECASE),
        'bearer_token': re.compile(r'(bearer\s+)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
        'client_id': re.compile(r'(client-id\s+)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
        'authorization': re.compile(r'(authorization["\s:=]+["\']?)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
    }

    @classmethod
    def sanitize_string(cls, text: str) -> str:
        """Sanitize a string by redacting sensitive information."""
        if not isinstance(text, str):
            return str(text)

        sanitized = text
        for pattern in cls.SENSITIVE_PATTERNS.values():
            sanitized = pattern.sub(r'\1***REDACTED***', sanitized)
        return sanitized


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service and request context."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        log_record['service'] = settings.service_name
        log_record['environment'] = settings.service_env

        if request_id := request_id_var.get():
            log_record['request_id'] = request_id

        if 'message' in log_record:
            log_record['message'] = SecuritySanitizer.sanitize_string(log_record['message'])


class TextFormatter(logging.Formatter):
    """Plain text formatter for local development."""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = request_id_var.get() or "-"
        return SecuritySanitizer.sanitize_string(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger once for the process."""
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(StructuredFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
    else:
        handler.setFormatter(TextFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
        ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # httpx logs full request URLs at INFO, including the Gemini key query param
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
