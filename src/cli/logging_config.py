"""structlog setup for the factpack CLI and for hosts embedding the service."""

import logging
import sys

import structlog

# Longest string value rendered per log field
MAX_FIELD_CHARS = 300


def _truncate_long_values(_, __, event_dict: dict) -> dict:
    """Clip oversized string fields such as fact text or long topics."""
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
            event_dict[key] = value[:MAX_FIELD_CHARS] + "...[truncated]"
    return event_dict


def _event_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _truncate_long_values,
    ]


def _renderer(json_mode: bool) -> structlog.types.Processor:
    if json_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(json_mode: bool = False, level: str = "INFO") -> None:
    """Route structlog events through one stderr handler on the root logger.

    Args:
        json_mode: One JSON object per event (``--json-logs``); otherwise
            the colored console renderer.
        level: Root level name. Unknown names fall back to INFO.
    """
    structlog.configure(
        processors=[*_event_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)  # stdout carries --json packs
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_mode)],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
