"""Audit-trail helpers for submitted records.

Everything here is pure: callers own the history and persist it however they
like (see `pipelines.audit_store` for a JSON file store).
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from .config import FieldDefinition, RulesConfig
from .errors import SubmissionBlockedError
from .models import AuditEntry, ExceptionState
from .submission import ExceptionInput, SubmissionDecision

SEARCH_FIELDS = ("fullName", "email")


class ExceptionFilter(str, Enum):
    ALL = "all"
    NONE = "none"
    ANY = "any"
    FLAGGED = "flagged"


class HistorySummary(BaseModel):
    total_submissions: int = 0
    exception_rate: int = 0
    flagged_entries: int = 0
    avg_exceptions: Decimal = Decimal("0.0")
    exception_buckets: Dict[str, int] = Field(default_factory=dict)


def _round_half_up(value: Decimal, quantum: str = "1") -> Decimal:
    return value.quantize(Decimal(quantum), rounding=ROUND_HALF_UP)


def build_audit_entry(
    record: Mapping[str, Any],
    exceptions: Mapping[str, ExceptionInput],
    decision: SubmissionDecision,
    *,
    entry_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> AuditEntry:
    if not decision.can_submit:
        raise SubmissionBlockedError("Record cannot be submitted in its current state.", decision)

    snapshot = {
        field_id: raw if isinstance(raw, ExceptionState) else ExceptionState.model_validate(raw)
        for field_id, raw in exceptions.items()
    }
    return AuditEntry(
        id=entry_id or str(uuid.uuid4()),
        timestamp=timestamp or datetime.now(timezone.utc),
        form_data=dict(record),
        exceptions=snapshot,
        exception_count=decision.active_exception_count,
        is_flagged=decision.is_flagged,
    )


def prepend_entry(entries: Sequence[AuditEntry], entry: AuditEntry) -> Tuple[AuditEntry, ...]:
    # Newest first.
    return (entry, *entries)


def remove_entry(entries: Sequence[AuditEntry], entry_id: str) -> Tuple[AuditEntry, ...]:
    return tuple(entry for entry in entries if entry.id != entry_id)


def _matches_query(entry: AuditEntry, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    for key in SEARCH_FIELDS:
        value = entry.form_data.get(key)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def _matches_filter(entry: AuditEntry, exception_filter: ExceptionFilter) -> bool:
    if exception_filter == ExceptionFilter.NONE:
        return entry.exception_count == 0
    if exception_filter == ExceptionFilter.ANY:
        return entry.exception_count >= 1
    if exception_filter == ExceptionFilter.FLAGGED:
        return entry.exception_count >= 3
    return True


def filter_entries(
    entries: Iterable[AuditEntry],
    query: str = "",
    exception_filter: ExceptionFilter = ExceptionFilter.ALL,
) -> List[AuditEntry]:
    """Search by candidate name or email, then narrow by exception count."""
    exception_filter = ExceptionFilter(exception_filter)
    return [
        entry
        for entry in entries
        if _matches_query(entry, query) and _matches_filter(entry, exception_filter)
    ]


def summarize_history(entries: Sequence[AuditEntry]) -> HistorySummary:
    total = len(entries)
    buckets = {"0": 0, "1": 0, "2": 0, "3+": 0}
    for entry in entries:
        key = "3+" if entry.exception_count >= 3 else str(entry.exception_count)
        buckets[key] = buckets.get(key, 0) + 1

    if total == 0:
        return HistorySummary(exception_buckets=buckets)

    with_exceptions = sum(1 for entry in entries if entry.exception_count > 0)
    rate = _round_half_up(Decimal(with_exceptions) * 100 / Decimal(total))
    avg = _round_half_up(Decimal(sum(entry.exception_count for entry in entries)) / Decimal(total), "0.1")
    return HistorySummary(
        total_submissions=total,
        exception_rate=int(rate),
        flagged_entries=sum(1 for entry in entries if entry.is_flagged),
        avg_exceptions=avg,
        exception_buckets=buckets,
    )


def option_distribution(entries: Iterable[AuditEntry], field: FieldDefinition) -> Dict[str, int]:
    """Counts per select option for `field`; options never submitted are left out."""
    entries = list(entries)
    counts: Dict[str, int] = {}
    for option in field.options or []:
        count = sum(1 for entry in entries if entry.form_data.get(field.id) == option)
        if count > 0:
            counts[option] = count
    return counts


def completion_percentage(config: RulesConfig, record: Mapping[str, Any]) -> int:
    if not config.fields:
        return 0
    filled = sum(1 for field in config.fields if record.get(field.id) not in (None, ""))
    return int(_round_half_up(Decimal(filled) * 100 / Decimal(len(config.fields))))


def export_history_json(entries: Iterable[AuditEntry]) -> str:
    return json.dumps(
        [entry.model_dump(mode="json", by_alias=True) for entry in entries],
        indent=2,
    )
