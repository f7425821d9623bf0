"""Rule collection for calculator inputs.

Each calculator checks every rule before computing anything and
raises one ValidationError listing all violations.
"""

import math
from enum import Enum
from typing import Any, Callable, Optional

from src.calc_errors import ValidationError


def check_finite(value: Any, label: str) -> Optional[str]:
    """Return a message if ``value`` is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return f"{label} must be a valid number"
    return None


def check_positive(value: Any, label: str) -> Optional[str]:
    return check_finite(value, label) or (f"{label} must be greater than 0" if value <= 0 else None)


def check_non_negative(value: Any, label: str) -> Optional[str]:
    return check_finite(value, label) or (f"{label} must not be negative" if value < 0 else None)


def check_choice(value: Any, choices: type[Enum], label: str) -> Optional[str]:
    """Return a message unless ``value`` is a member (or value) of ``choices``."""
    try:
        choices(value)
    except ValueError:
        allowed = ", ".join(c.value for c in choices)
        return f"{label} must be one of: {allowed}"
    return None


def check_range(
    value: Any,
    label: str,
    min_value: float,
    max_value: float,
    min_inclusive: bool = True,
    max_inclusive: bool = True,
) -> Optional[str]:
    problem = check_finite(value, label)
    if problem:
        return problem
    below = value < min_value if min_inclusive else value <= min_value
    above = value > max_value if max_inclusive else value >= max_value
    if below or above:
        left = "[" if min_inclusive else "("
        right = "]" if max_inclusive else ")"
        return f"{label} must be in {left}{min_value:g}, {max_value:g}{right}"
    return None


class RuleSet:
    """Accumulates rule violations as ``(field, issue)`` pairs.

    Example:
        rules = RuleSet()
        rules.add("leverage", check_positive(inputs.leverage, "Leverage"))
        rules.validate(validate_price, inputs.entry_price, field="entry_price")
        rules.raise_if_invalid()
    """

    def __init__(self) -> None:
        self._issues: list[tuple[str, str]] = []

    def add(self, field: str, issue: Optional[str]) -> None:
        """Record ``issue`` against ``field`` unless it is None."""
        if issue:
            self._issues.append((field, issue))

    def require(self, condition: bool, field: str, issue: str) -> None:
        if not condition:
            self._issues.append((field, issue))

    def validate(self, validator: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a raising validator and record its failure instead of stopping."""
        try:
            return validator(*args, **kwargs)
        except ValidationError as exc:
            for detail in exc.details or [{"field": kwargs.get("field", ""), "issue": exc.message}]:
                self._issues.append((detail.get("field", ""), detail["issue"]))
            return None

    @property
    def is_valid(self) -> bool:
        return not self._issues

    @property
    def messages(self) -> list[str]:
        return [issue for _, issue in self._issues]

    def raise_if_invalid(self) -> None:
        if self._issues:
            raise ValidationError.from_issues(self._issues)
