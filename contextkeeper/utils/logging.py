"""structlog configuration for contextkeeper.

One processor chain is shared by structlog loggers and by the stdlib
``logging`` bridge, so uvicorn and httpx records come out in the same
shape as application events.  ``create_app`` picks the renderer from
``server.env``: JSON lines in production, a coloured console otherwise.

uvicorn's own access log is silenced because ``RequestLoggingMiddleware``
already emits one ``http_request`` event per request.
"""

import logging
import sys

import structlog

_QUIET_LOGGERS = ("uvicorn.access",)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Install the structlog pipeline and route stdlib logging through it.

    Parameters
    ----------
    log_level:
        Minimum level name (``DEBUG`` .. ``CRITICAL``), case-insensitive.
    json_output:
        Render JSON lines instead of the console format.

    Returns
    -------
    structlog.BoundLogger
        The root logger, already configured.
    """
    level = logging.getLevelName(log_level.upper())
    processors = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
