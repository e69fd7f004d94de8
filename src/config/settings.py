import logging.config
import re

import structlog
from decouple import Csv, config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
LOG_RENDERER = config("LOG_RENDERER", default="json")

# ---------------------------------------------------------------------------
# Order locking (single-flight transitions)
# ---------------------------------------------------------------------------
LOCK_BACKEND = config("LOCK_BACKEND", default="memory")
REDIS_URL = config("REDIS_URL", default="redis://localhost:6379/0")
ORDER_LOCK_TTL_SECONDS = config("ORDER_LOCK_TTL_SECONDS", default=30, cast=int)

# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
ORDER_NOTIFICATION_CHANNELS = config(
    "ORDER_NOTIFICATION_CHANNELS", default="SOCKET,TELEGRAM", cast=Csv()
)
NOTIFICATION_WORKERS_PER_CHANNEL = config(
    "NOTIFICATION_WORKERS_PER_CHANNEL", default=8, cast=int
)
NOTIFICATION_BACKGROUND_WORKERS = config(
    "NOTIFICATION_BACKGROUND_WORKERS", default=4, cast=int
)
NOTIFICATION_AUDIT_MAX_ATTEMPTS = config(
    "NOTIFICATION_AUDIT_MAX_ATTEMPTS", default=3, cast=int
)
NOTIFICATION_AUDIT_BACKOFF_SECONDS = config(
    "NOTIFICATION_AUDIT_BACKOFF_SECONDS", default=1.0, cast=float
)
NOTIFICATION_CHANNEL_TIMEOUT_SECONDS = config(
    "NOTIFICATION_CHANNEL_TIMEOUT_SECONDS", default=10.0, cast=float
)

# ---------------------------------------------------------------------------
# Structured Logging (structlog + stdlib logging)
# ---------------------------------------------------------------------------
SENSITIVE_PATTERN = re.compile(
    r"(\d{8,10}:[A-Za-z0-9_-]{35})"  # Telegram bot token
    r"|([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,})"  # e-mail address
    r"|(password|passwd|secret|token|authorization)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks bot tokens, e-mails, passwords and tokens in log values."""
    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub("***MASKED***", value)
    return event_dict


# Shared processors used by both structlog and stdlib logging
_shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer():
    if LOG_RENDERER == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processors": [
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(),
            ],
            "foreign_pre_chain": _shared_processors,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}


def configure_logging() -> None:
    """Route structlog through stdlib logging using the shared processor chain."""
    structlog.configure(
        processors=[
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(LOGGING)
