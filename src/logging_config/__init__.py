"""Structured Logging & Calculation Tracing.

Provides structured JSON logging, calculation ID propagation,
and performance timing for the futures calculators.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import (
    CalculationContext,
    CalculationContextFilter,
    CalculationScope,
    current_scope,
    generate_calculation_id,
    tag_calculation,
)
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import configure_logging

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "CalculationContext",
    "CalculationContextFilter",
    "CalculationScope",
    "PerformanceTimer",
    "configure_logging",
    "current_scope",
    "generate_calculation_id",
    "log_performance",
    "tag_calculation",
]
