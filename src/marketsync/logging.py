"""structlog setup for marketsync.

Every event goes through the stdlib root handler, so httpx warnings and
engine events land in one stream with one format. Events emitted while a
refresh cycle runs carry that cycle's sequence number (see ``cycle_context``).
"""

import logging
import os
from contextlib import AbstractContextManager

import structlog

# Third-party loggers that are chatty at INFO (httpx logs every request)
_QUIET_LOGGERS = ("httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging through a single stderr handler.

    ``LOG_FORMAT=json`` switches to one JSON object per line; anything else
    gives the coloured console renderer. ``log_level`` applies to the root
    logger; httpx and httpcore are held at WARNING.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(os.environ.get("LOG_FORMAT", "console").lower()),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cycle_context(cycle: int) -> AbstractContextManager:
    """Bind ``cycle=<n>`` to every event logged inside the block.

    Bound through contextvars, so each refresh-cycle task sees only its own
    number.
    """
    return structlog.contextvars.bound_contextvars(cycle=cycle)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module-level logger, e.g. ``logger = get_logger(__name__)``."""
    return structlog.get_logger(name)
