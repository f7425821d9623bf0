"""Calculation Context Management.

Each calculator call runs inside a CalculationScope: the calculator's
name, a calculation ID, and any tags bound while it runs (symbol,
layer count). ``CalculationContextFilter`` stamps the active scope
onto log records so the formatters can emit it as first-class fields.
"""

import logging
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class CalculationScope:
    """Identity of one running calculation."""
    calculation_id: str
    calculator: str = ""
    tags: tuple[tuple[str, Any], ...] = ()

    def tag_dict(self) -> dict[str, Any]:
        return dict(self.tags)


_scope_var: ContextVar[Optional[CalculationScope]] = ContextVar("calculation_scope", default=None)


def generate_calculation_id() -> str:
    """Generate a unique calculation ID using UUID4."""
    return str(uuid.uuid4())


def current_scope() -> Optional[CalculationScope]:
    """The innermost active calculation, or None outside any calculator call."""
    return _scope_var.get()


def get_calculation_id() -> str:
    scope = _scope_var.get()
    return scope.calculation_id if scope else ""


def get_calculator() -> str:
    scope = _scope_var.get()
    return scope.calculator if scope else ""


def tag_calculation(**tags: Any) -> None:
    """Add tags to the running calculation. None values are skipped.

    No-op outside a calculation.
    """
    scope = _scope_var.get()
    if scope is None:
        return
    merged = {**scope.tag_dict(), **{k: v for k, v in tags.items() if v is not None}}
    _scope_var.set(replace(scope, tags=tuple(merged.items())))


def get_context_dict() -> dict[str, Any]:
    """Active scope flattened to ``calculation_id``, ``calculator`` and tags."""
    scope = _scope_var.get()
    if scope is None:
        return {}
    ctx: dict[str, Any] = {"calculation_id": scope.calculation_id}
    if scope.calculator:
        ctx["calculator"] = scope.calculator
    ctx.update(scope.tags)
    return ctx


@dataclass
class CalculationContext:
    """Context manager that makes a CalculationScope active.

    Example:
        with CalculationContext(calculator="pnl"):
            logger.debug("computing")  # record carries calculation_id, calculator
    """

    calculator: str = ""
    calculation_id: str = ""
    tags: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    _token: Any = field(default=None, repr=False)

    def __post_init__(self):
        if not self.calculation_id:
            self.calculation_id = generate_calculation_id()

    @property
    def scope(self) -> CalculationScope:
        return CalculationScope(self.calculation_id, self.calculator, tuple(self.tags.items()))

    def __enter__(self) -> "CalculationContext":
        self._token = _scope_var.set(self.scope)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _scope_var.reset(self._token)
        self._token = None

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def bind(self, **kwargs: Any) -> None:
        """Tag the running calculation; later log records carry the tags."""
        self.tags.update(kwargs)
        if get_calculation_id() == self.calculation_id:
            tag_calculation(**kwargs)


class CalculationContextFilter(logging.Filter):
    """Stamp ``calculation_id``, ``calculator`` and ``calculation_tags`` on records.

    Records logged outside a calculation get empty values, so formatters
    can read the attributes unconditionally.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        scope = _scope_var.get()
        record.calculation_id = scope.calculation_id if scope else ""
        record.calculator = scope.calculator if scope else ""
        record.calculation_tags = scope.tag_dict() if scope else {}
        return True
