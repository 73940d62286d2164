"""
Centralized logging module for the Painel backend.

- Structured JSON logs suitable for Loki/ELK
- Appropriate log levels (info, warning, error)
- NEVER logs passwords, tokens, service keys, or full request bodies
- Security-sensitive actions emit structured logs with user_id, tenant_id, action, result, timestamp
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from core.config import settings

logger = logging.getLogger("painel")
logger.setLevel(settings.LOG_LEVEL.upper())

_handler = logging.StreamHandler()


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    EXTRA_FIELDS = ("user_id", "tenant_id", "action", "result", "meta")

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def log_security_event(
    action: str,
    result: str,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log security-sensitive actions (invitations, membership links, profile,
    password and logo changes, authorization denials).

    Args:
        action: Action name (e.g., "invite_user", "password_change")
        result: Result status (e.g., "success", "failure", "denied", "partial")
        user_id: Account ID (optional)
        tenant_id: Company ID (optional)
        meta: Additional metadata dict (optional, never secrets)
        level: Log level ("info", "warning", "error")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    extra: Dict[str, Any] = {
        "action": action,
        "result": result,
    }
    if user_id:
        extra["user_id"] = user_id
    if tenant_id:
        extra["tenant_id"] = tenant_id
    if meta:
        extra["meta"] = meta

    log_method("Security event", extra=extra)
