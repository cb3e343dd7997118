"""
Structured logging for the scoring engine.

Every engine logger accepts an ``extra_data`` mapping that ends up as
top-level keys of the JSON record (or as ``key=value`` pairs in text
mode). Grading operations log through :func:`attempt_logger` so the quiz,
attempt and learner identifiers appear on every record they emit.
"""

import sys
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import json
from pathlib import Path

from .config import Settings, get_settings

# Keys the JSON formatter writes itself; context cannot replace them
_RESERVED_KEYS = frozenset({"timestamp", "level", "logger", "message", "location", "exception"})

# Third-party loggers that are too chatty below WARNING
_QUIET_LOGGERS = ("sympy", "asyncio")


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, context keys inlined"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for key, value in _record_context(record).items():
            if key not in _RESERVED_KEYS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines; context follows the message in brackets"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        # Exception text, when present, stays on the lines after the message
        first, _, rest = line.partition("\n")
        return f"{first} [{pairs}]" + (f"\n{rest}" if rest else "")


def _build_handlers(settings: Settings, formatter: logging.Formatter) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger from settings.

    Args:
        settings: Settings to honor (defaults to the process settings)
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = StructuredFormatter() if settings.LOG_FORMAT == "json" else TextFormatter()

    logging.basicConfig(
        level=log_level,
        handlers=_build_handlers(settings, formatter),
        force=True
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class ContextLogger(logging.LoggerAdapter):
    """Logger that merges its bound context with each call's ``extra_data``"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra_data = kwargs.pop("extra_data", None) or {}
        kwargs.setdefault("extra", {})["extra_data"] = {**self.extra, **extra_data}
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextLogger":
        """Copy of this logger with more context; None values are left out"""
        bound = {key: value for key, value in context.items() if value is not None}
        return ContextLogger(self.logger, {**self.extra, **bound})


def get_logger(name: str) -> ContextLogger:
    """Module logger accepting ``extra_data``"""
    return ContextLogger(logging.getLogger(name), {})


def attempt_logger(
    name: str,
    quiz_id: Optional[int] = None,
    attempt_id: Optional[int] = None,
    user_id: Optional[int] = None,
    **context: Any
) -> ContextLogger:
    """
    Logger for one grading operation.

    ``attempt_logger(__name__, quiz_id=3, attempt_id=40).info("Essay graded")``
    emits ``quiz_id`` and ``attempt_id`` with the message. Identifiers that
    are not known yet are omitted and can be added later with
    :meth:`ContextLogger.bind`.
    """
    return get_logger(name).bind(quiz_id=quiz_id, attempt_id=attempt_id, user_id=user_id, **context)
