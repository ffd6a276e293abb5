"""
structlog setup for tenant-gate

Every record carries the app name and environment, plus whatever the
pipeline bound to contextvars (request_id, tenant_id, user_id).
"""
import logging
from typing import Any, Callable, Optional

import structlog

# Libraries whose INFO chatter drowns out pipeline decisions
QUIET_LOGGERS = ("uvicorn.access", "asyncpg")


def app_context(app_name: str, environment: str) -> Callable[[Any, str, dict], dict]:
    def add_app_context(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault('app', app_name)
        event_dict.setdefault('environment', environment)
        return event_dict

    return add_app_context


def drop_color_message_key(logger: Any, method_name: str, event_dict: dict) -> dict:
    # uvicorn duplicates the message with ANSI codes
    event_dict.pop('color_message', None)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    app_name: str = "tenant-gate",
    environment: str = "production"
):
    """
    Route structlog and stdlib records through one handler

    JSON lines when json_logs is set, colored console output otherwise.
    """
    level = log_level.upper()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        app_context(app_name, environment),
        drop_color_message_key,
    ]

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *shared_processors,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    ))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    if level != "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name) if name else structlog.get_logger()
