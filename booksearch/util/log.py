import logging

import structlog

from booksearch.internal.env_settings import Settings


def configure_logging(level: str | None = None, json_logs: bool | None = None):
    settings = Settings().app
    level = level or settings.log_level
    json_logs = settings.log_json if json_logs is None else json_logs

    renderer: structlog.typing.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level]
        ),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger: structlog.typing.FilteringBoundLogger = structlog.get_logger("booksearch")
