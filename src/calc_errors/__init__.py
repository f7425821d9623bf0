"""Calculator Error Handling & Validation.

Provides the error codes, exception hierarchy, and reusable
input validators shared by every futures calculator.
"""

from src.calc_errors.config import (
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.calc_errors.exceptions import (
    CalculatorError,
    ValidationError,
)
from src.calc_errors.validators import (
    validate_leverage,
    validate_price,
    validate_quantity,
    validate_range,
    validate_rate,
)

__all__ = [
    # Config
    "ErrorCode",
    "ErrorConfig",
    "ErrorSeverity",
    # Exceptions
    "CalculatorError",
    "ValidationError",
    # Validators
    "validate_leverage",
    "validate_price",
    "validate_quantity",
    "validate_range",
    "validate_rate",
]
