"""Custom Exception Hierarchy.

Defines typed exceptions raised by the futures calculators. A
validation failure carries every violated rule so callers can
display all of them at once.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.calc_errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ErrorCode,
    ErrorSeverity,
)


class CalculatorError(Exception):
    """Base exception for all calculator errors.

    All calculator exceptions inherit from this, allowing a caller
    to catch the entire hierarchy with one handler.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = ERROR_SEVERITY_MAP.get(error_code, ErrorSeverity.CRITICAL)
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        """Serializable representation for an outer presentation layer."""
        return {
            "error_code": self.error_code.value,
            "message": self.message[: DEFAULT_ERROR_CONFIG.max_error_detail_length],
            "severity": self.severity.value,
            "details": list(self.details),
        }


class ValidationError(CalculatorError):
    """Raised when calculator input fails validation.

    ``details`` is a list of ``{"field": ..., "issue": ...}`` dicts,
    one per violated rule.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
    ):
        if field and not details:
            details = [{"field": field, "issue": message}]
        super().__init__(message, error_code, details)

    @classmethod
    def from_issues(
        cls,
        issues: Iterable[Tuple[str, str]],
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> "ValidationError":
        """Build one error from ``(field, issue)`` pairs."""
        details = [{"field": field, "issue": issue} for field, issue in issues]
        message = DEFAULT_ERROR_CONFIG.message_separator.join(d["issue"] for d in details)
        return cls(message=message or "Validation failed", error_code=error_code, details=details)

    @property
    def messages(self) -> List[str]:
        """Human-readable message per violated rule."""
        if not self.details:
            return [self.message]
        return [d["issue"] for d in self.details]

    @property
    def fields(self) -> List[str]:
        """Names of the offending input fields."""
        return [d["field"] for d in self.details if d.get("field")]
