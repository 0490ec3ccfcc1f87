# ─────────────────────────────────────────────────────────────────────────────
# Logging Configuration — structlog over stdlib logging
# ─────────────────────────────────────────────────────────────────────────────


import logging
import sys

import structlog

# httpx logs every request URL at INFO. The Gemini key travels as a query
# parameter, so these loggers must stay above INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for structured logging to stdout.

    JSON output is one parseable object per line for the platform's log
    collector. Console output is for local development.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    # shared_processors already ran inside structlog.configure(); running
    # them again here would duplicate timestamps and level tags.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
