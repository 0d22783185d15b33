"""
Logging - structlog configuration for the session subsystem.

JSON lines (rendered with orjson) for production, colored console
output for development.
"""

import logging
import sys
from typing import Any, Dict, List

import orjson
import structlog


def _orjson_renderer(logger: object, name: str, event_dict: Dict[str, object]) -> str:
    """Render log events as JSON using orjson."""
    return orjson.dumps(event_dict, option=orjson.OPT_NON_STR_KEYS, default=str).decode("utf-8")


def setup_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """
    Configure structlog and route it through the stdlib root logger.

    Args:
        json_output: Emit JSON lines instead of console output
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if json_output:
        renderer = _orjson_renderer
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str) -> Any:
    """Get a named structlog logger."""
    return structlog.get_logger(name)
