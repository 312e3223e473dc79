"""
Structured Logging Configuration
structlog over stdlib logging; JSON in production, console elsewhere
"""

import logging
import sys

import structlog

from taskhub.core.config import settings

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset({
    "password",
    "password_hash",
    "access_token",
    "refresh_token",
    "refresh_token_hash",
    "authorization",
    "secret_key",
})

REDACTED = "***"


def redact_sensitive(logger, method_name, event_dict):
    """structlog processor masking credential material in event keys"""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def setup_logging():
    """Configure structured logging for the application"""

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL),
    )

    if settings.ENVIRONMENT == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")

    structlog.configure(
        processors=[
            # request_id, user_id and tenant_id bound per request
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            redact_sensitive,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
