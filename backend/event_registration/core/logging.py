"""
Structured logging for the registration service, built on structlog.

Workflow and ledger events are snake_case names with keyword context
(region, registration_id, status). Registrant emails are personal data:
any `email` or `*_email` field is masked before rendering, leaving the
first character of the mailbox and the full domain.

Production renders one JSON object per line; other environments use the
console renderer.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog
from event_registration.core.config import get_settings

_configured = False


def mask_email(value: str) -> str:
    """`jane.doe@borough.org` -> `j***@borough.org`."""
    local, sep, domain = value.partition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}***@{domain}"


def mask_registrant_emails(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key, value in event_dict.items():
        if isinstance(value, str) and (key == "email" or key.endswith("_email")):
            event_dict[key] = mask_email(value)
    return event_dict


def _registration_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        mask_registrant_emails,
        structlog.processors.TimeStamper(fmt="iso", key="logged_at"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging() -> None:
    global _configured
    if _configured:
        return
    settings = get_settings()

    processors = _registration_processors()
    if settings.ENVIRONMENT == "production":
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer]
        )
    )
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Request lines and SQL echo duplicate the workflow events
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def bind_registration_context(**context: Any) -> None:
    """Attach region / registration_id to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
