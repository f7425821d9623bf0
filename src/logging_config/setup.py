"""Logging Setup.

One-call configuration for calculator logging. Every record passes
through CalculationContextFilter, so both formatters can report which
calculator produced a line, under which calculation ID, and how long
the call took.
"""

import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import CalculationContextFilter

LEVEL_ENV_VAR = "FUTURES_CALC_LOG_LEVEL"
FORMAT_ENV_VAR = "FUTURES_CALC_LOG_FORMAT"

_stamp = CalculationContextFilter()


def _calculation_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Calculation identity for ``record``, stamping it if no filter ran."""
    if not hasattr(record, "calculator"):
        _stamp.filter(record)
    return {
        "calculation_id": record.calculation_id or None,
        "calculator": record.calculator or None,
        "tags": record.calculation_tags,
        "duration_ms": getattr(record, "duration_ms", None),
        "error_type": getattr(record, "error_type", None),
        "call_args": getattr(record, "call_args", None),
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.

    ``calculator`` and ``calculation_id`` are always present (null
    outside a calculator call). Timing, rejection type, call arguments
    and bound tags appear only when set.
    """

    def __init__(self, service_name: str = "futures-calculator", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        calc = _calculation_fields(record)
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "calculator": calc["calculator"],
            "calculation_id": calc["calculation_id"],
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("duration_ms", "error_type", "call_args"):
            if calc[key] is not None:
                entry[key] = calc[key]
        if calc["tags"]:
            entry["tags"] = calc["tags"]

        if self.include_caller:
            entry["caller"] = f"{record.module}.{record.funcName}:{record.lineno}"

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored one-line output for development.

    Lines inside a calculation are prefixed ``[calculator:short-id]``
    and suffixed with the call duration when known, e.g.
    ``12:00:01.250 DEBUG    [pnl:1a2b3c4d] src.futures_calculator.pnl: ... (0.4ms)``.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        calc = _calculation_fields(record)
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]

        scope = ""
        if calc["calculation_id"]:
            scope = f"[{calc['calculator'] or '-'}:{calc['calculation_id'][:8]}] "

        line = (
            f"{color}{timestamp} {record.levelname:8s}{self.RESET} "
            f"{scope}{record.name}: {record.getMessage()}"
        )
        if calc["duration_ms"] is not None:
            line += f" ({calc['duration_ms']}ms)"
        if calc["tags"]:
            line += " " + " ".join(f"{k}={v}" for k, v in calc["tags"].items())

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)

        return line


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure logging for the calculators.

    Call once at application startup. Installs a stdout handler with the
    configured formatter and the calculation-context filter on the root
    logger.

    Args:
        config: Logging configuration. Uses defaults if not provided.
                Log level can be overridden with FUTURES_CALC_LOG_LEVEL.
                Log format can be overridden with FUTURES_CALC_LOG_FORMAT.
    """
    config = config or DEFAULT_LOGGING_CONFIG

    env_level = os.environ.get(LEVEL_ENV_VAR, "").upper()
    if env_level and env_level in LogLevel.__members__:
        config = replace(config, level=LogLevel(env_level))

    env_format = os.environ.get(FORMAT_ENV_VAR, "").lower()
    if env_format and env_format in [f.value for f in LogFormat]:
        config = replace(config, format=LogFormat(env_format))

    if config.format == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CalculationContextFilter())
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.value))
