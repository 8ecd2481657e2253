"""structlog wiring for the CLI, the HTTP API and library use.

Modules log through ``logging.getLogger(__name__)``; records from them and
from third-party libraries go through the same structlog renderer, with any
bound run or trace context merged in.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog

# Chatty third-party loggers and the level they are capped at.
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
}


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Route all logging through structlog on stderr.

    Args:
        log_level: debug, info, warning or error.
        json_output: one JSON object per line instead of the console renderer.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


@contextmanager
def run_context(run_id: str, **extra: str) -> Iterator[None]:
    """Bind ``run_id`` (and any non-empty ``extra``) to every record in the block."""
    bound = {key: value for key, value in extra.items() if value}
    with structlog.contextvars.bound_contextvars(run_id=run_id, **bound):
        yield
