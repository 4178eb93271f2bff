from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from .config import FieldDefinition, RulesConfig, default_rules_config
from .context import EvaluationContext, HistoryInput
from .models import EvaluationReport, ValidationResult
from .registry import registry

# Ensure built-in checks are imported/registered before anything is evaluated.
from . import checks as _builtin_checks  # noqa: F401

registry.ensure_complete()

logger = logging.getLogger(__name__)


def evaluate_in_context(field: FieldDefinition, value: Any, ctx: EvaluationContext) -> ValidationResult:
    is_soft = field.is_soft
    for rule in field.validations:
        failure = registry.get(rule.kind).check(rule, field, value, ctx)
        if failure is None:
            continue
        # First failing rule decides the verdict; later rules are not evaluated.
        return ValidationResult(
            valid=False,
            error=failure.message,
            is_soft=is_soft,
            block_submission=True if rule.block_submission else None,
        )
    return ValidationResult(valid=True, error=None, is_soft=is_soft)


def evaluate(
    field: FieldDefinition,
    value: Any,
    record: Optional[Mapping[str, Any]] = None,
    history: HistoryInput = None,
    *,
    today: Optional[date] = None,
) -> ValidationResult:
    """Verdict for one field's value.

    `record` supplies other fields for conditional rules and `history` the prior
    submissions for unique rules: either a sequence of audit entries or any
    object with a `contains(field_id, value)` method.
    """
    ctx = EvaluationContext.build(record, history, today=today)
    return evaluate_in_context(field, value, ctx)


class RecordEvaluator:
    def __init__(self, config: Optional[RulesConfig] = None):
        self._config = config if config is not None else default_rules_config()

    @property
    def config(self) -> RulesConfig:
        return self._config

    def run(
        self,
        record: Mapping[str, Any],
        history: HistoryInput = None,
        *,
        today: Optional[date] = None,
        field_ids: Optional[Iterable[str]] = None,
    ) -> EvaluationReport:
        ctx = EvaluationContext.build(record, history, today=today)
        wanted = set(field_ids) if field_ids is not None else None

        results: dict[str, ValidationResult] = {}
        for field in self._config.fields:
            if wanted is not None and field.id not in wanted:
                continue
            results[field.id] = evaluate_in_context(field, ctx.get(field.id), ctx)

        totals = {"valid": 0, "invalid": 0, "soft_invalid": 0, "blocking": 0}
        for res in results.values():
            if res.valid:
                totals["valid"] += 1
                continue
            totals["invalid"] += 1
            if res.is_soft:
                totals["soft_invalid"] += 1
            if res.block_submission:
                totals["blocking"] += 1

        logger.debug(
            "Evaluated %d fields: %d invalid (%d soft)",
            len(results),
            totals["invalid"],
            totals["soft_invalid"],
        )
        return EvaluationReport(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            results=results,
            totals=totals,
        )
