from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, Mapping, Optional, Protocol, Tuple, Union

from pydantic import ValidationError

from .models import AuditEntry

logger = logging.getLogger(__name__)

_DECIMAL_TEXT = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
_PREFIXED_INT_TEXT = re.compile(r"0[xXoObB][0-9a-fA-F]+")


class HistoryLookup(Protocol):
    def contains(self, field_id: str, value: Any) -> bool:
        ...


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion: True != 1, "1" != 1, NaN != NaN."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if left is None or right is None:
        return left is None and right is None
    return type(left) is type(right) and left == right


def strict_contains(candidates: Iterable[Any], value: Any) -> bool:
    return any(strict_equals(candidate, value) for candidate in candidates)


def to_number(value: Any) -> float:
    """Numeric coercion for form input. Anything unreadable becomes NaN."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if not isinstance(value, str):
        return math.nan

    text = value.strip()
    if text == "":
        return 0.0
    if _DECIMAL_TEXT.fullmatch(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if _PREFIXED_INT_TEXT.fullmatch(text):
        try:
            return float(int(text, 0))
        except ValueError:
            return math.nan
    return math.nan


def outside_bounds(number: float, lower: Optional[float], upper: Optional[float]) -> bool:
    # NaN is outside every bound.
    if math.isnan(number):
        return True
    if lower is not None and number < lower:
        return True
    if upper is not None and number > upper:
        return True
    return False


def is_blank(value: Any) -> bool:
    return value is None or value == "" or value is False


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def age_in_years(born: date, today: date) -> int:
    had_birthday = (today.month, today.day) >= (born.month, born.day)
    return today.year - born.year - (0 if had_birthday else 1)


def _index_key(value: Any) -> Optional[Tuple[str, Hashable]]:
    if isinstance(value, bool):
        return ("bool", value)
    if _is_number(value):
        if isinstance(value, float) and math.isnan(value):
            return None
        return ("number", value)
    if value is None:
        return ("null", None)
    try:
        hash(value)
    except TypeError:
        return None
    return (type(value).__name__, value)


@dataclass(frozen=True)
class HistoryScan:
    """Linear scan over prior audit entries."""

    entries: Tuple[AuditEntry, ...] = ()

    def contains(self, field_id: str, value: Any) -> bool:
        for entry in self.entries:
            if field_id in entry.form_data and strict_equals(entry.form_data[field_id], value):
                return True
        return False


class HistoryIndex:
    """Prebuilt value index over prior audit entries, for histories too large to scan."""

    def __init__(self):
        self._values: Dict[str, set] = {}

    @classmethod
    def from_entries(cls, entries: Iterable[AuditEntry]) -> "HistoryIndex":
        index = cls()
        for entry in entries:
            index.add(entry)
        return index

    def add(self, entry: AuditEntry) -> None:
        for field_id, value in entry.form_data.items():
            key = _index_key(value)
            if key is not None:
                self._values.setdefault(field_id, set()).add(key)

    def contains(self, field_id: str, value: Any) -> bool:
        key = _index_key(value)
        if key is None:
            return False
        return key in self._values.get(field_id, set())


HistoryInput = Union[HistoryLookup, Iterable[Union[AuditEntry, Mapping[str, Any]]], None]


def as_history_lookup(history: HistoryInput) -> HistoryLookup:
    if history is None:
        return HistoryScan()
    if hasattr(history, "contains"):
        return history  # type: ignore[return-value]
    entries = []
    for entry in history:  # type: ignore[union-attr]
        if isinstance(entry, AuditEntry):
            entries.append(entry)
            continue
        try:
            entries.append(AuditEntry.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping malformed history entry: %s", exc)
    return HistoryScan(entries=tuple(entries))


@dataclass(frozen=True)
class EvaluationContext:
    record: Mapping[str, Any] = field(default_factory=dict)
    history: HistoryLookup = field(default_factory=HistoryScan)
    today: date = field(default_factory=date.today)

    @classmethod
    def build(
        cls,
        record: Optional[Mapping[str, Any]] = None,
        history: HistoryInput = None,
        *,
        today: Optional[date] = None,
    ) -> "EvaluationContext":
        return cls(
            record=MappingProxyType(dict(record or {})),
            history=as_history_lookup(history),
            today=today or date.today(),
        )

    def get(self, field_id: str) -> Any:
        return self.record.get(field_id)
