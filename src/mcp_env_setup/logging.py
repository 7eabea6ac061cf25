"""Logging configuration."""
import datetime
import inspect
import json
import logging
import sys
from typing import Any, List

import structlog
from structlog.types import Processor, EventDict

IGNORED_MODULES = [
    "/structlog/",
    "/logging/__init__.py",
    "mcp_env_setup/logging.py",
]
CALLER_KEYS = ("module", "line", "file")


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def add_caller_info(logger: Any, name: str, event_dict: EventDict) -> EventDict:
    """Add caller info to the event dict."""
    frame = inspect.currentframe()
    if frame is not None:
        caller = frame.f_back
        while caller and any(ignored in caller.f_code.co_filename for ignored in IGNORED_MODULES):
            caller = caller.f_back
        if caller:
            event_dict.update({
                "module": caller.f_code.co_name,
                "line": caller.f_lineno,
                "file": caller.f_code.co_filename.split("/")[-1]
            })
    return event_dict


def make_level_filter(level: str) -> Processor:
    """Drop events below ``level``."""
    min_level = logging.getLevelName(level.upper())

    def level_filter(_: Any, name: str, event_dict: EventDict) -> EventDict:
        level_no = logging.getLevelName(name.upper())
        if isinstance(level_no, int) and level_no < min_level:
            raise structlog.DropEvent
        return event_dict

    return level_filter


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""
    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
            **{k: v for k, v in event_dict.items() if k in CALLER_KEYS}
        }
        if other := {k: v for k, v in event_dict.items() if k not in CALLER_KEYS}:
            items["data"] = other
        return json.dumps(items, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO", fmt: str = "auto") -> None:
    """Configure structured logging for the application.

    Everything goes to STDERR so stdout stays free for results and for the
    MCP stdio transport:
    - ``json``: compact single-line JSON
    - ``console``: colored human readable lines
    - ``auto``: console on a terminal, JSON otherwise
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper())
    )
    logging.getLogger().setLevel(getattr(logging, level.upper()))

    json_processors: List[Processor] = [
        make_level_filter(level),
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_caller_info,
        CompactJSONRenderer()
    ]

    console_processors: List[Processor] = [
        make_level_filter(level),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True)
    ]

    if fmt == "auto":
        fmt = "console" if sys.stderr.isatty() else "json"

    structlog.configure(
        processors=console_processors if fmt == "console" else json_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
