"""Calculator Error Configuration.

Defines error codes, severity levels, and configuration for
structured error reporting across the futures calculators.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """Standardized error codes for calculator failures."""

    # Input validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_LEVERAGE = "INVALID_LEVERAGE"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_RATE = "INVALID_RATE"
    OUT_OF_RANGE = "OUT_OF_RANGE"

    # Unexpected
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorSeverity(Enum):
    """Severity levels for error reporting."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Map error codes to severity
ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.VALIDATION_ERROR: ErrorSeverity.LOW,
    ErrorCode.INVALID_LEVERAGE: ErrorSeverity.LOW,
    ErrorCode.INVALID_PRICE: ErrorSeverity.LOW,
    ErrorCode.INVALID_QUANTITY: ErrorSeverity.LOW,
    ErrorCode.INVALID_RATE: ErrorSeverity.LOW,
    ErrorCode.OUT_OF_RANGE: ErrorSeverity.LOW,
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorConfig:
    """Configuration for calculator error reporting."""

    max_error_detail_length: int = 500
    message_separator: str = "; "


DEFAULT_ERROR_CONFIG = ErrorConfig()
