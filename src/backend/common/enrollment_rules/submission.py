from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import FieldDefinition, RulesConfig
from .context import is_missing
from .models import ExceptionState, ValidationResult
from .rationale import check_rationale

logger = logging.getLogger(__name__)

ExceptionInput = Union[ExceptionState, Mapping[str, Any]]


class SubmissionDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_submit: bool
    is_flagged: bool
    active_exception_count: int
    has_blocking_failure: bool = False
    missing_required: bool = False

    blocking_fields: List[str] = Field(default_factory=list)
    missing_fields: List[str] = Field(default_factory=list)
    flag_message: Optional[str] = None


def as_exception_state(raw: Optional[ExceptionInput]) -> Optional[ExceptionState]:
    if raw is None or isinstance(raw, ExceptionState):
        return raw
    return ExceptionState.model_validate(raw)


def exception_overrides(field: FieldDefinition, exception: Optional[ExceptionState]) -> bool:
    """True when an active exception with an acceptable rationale covers `field`."""
    if exception is None or not exception.active:
        return False
    return check_rationale(field, exception.rationale).valid


def is_blocking(field: FieldDefinition, result: ValidationResult, exception: Optional[ExceptionState]) -> bool:
    if result.valid:
        return False
    if not field.is_soft:
        return True
    if result.block_submission:
        return True
    return not exception_overrides(field, exception)


def count_active_exceptions(exceptions: Mapping[str, ExceptionInput]) -> int:
    count = 0
    for raw in exceptions.values():
        state = as_exception_state(raw)
        if state is not None and state.active:
            count += 1
    return count


def decide_submission(
    config: RulesConfig,
    results: Mapping[str, ValidationResult],
    exceptions: Mapping[str, ExceptionInput],
    record: Mapping[str, Any],
) -> SubmissionDecision:
    """Decide whether a record may be submitted and whether it needs manager review.

    Results for ids outside the schema are ignored. Required fields are checked
    for emptiness straight from `record`, independent of their verdicts.
    """
    blocking_fields: List[str] = []
    missing_fields: List[str] = []

    for field in config.fields:
        result = results.get(field.id)
        if result is not None:
            exception = as_exception_state(exceptions.get(field.id))
            if is_blocking(field, result, exception):
                blocking_fields.append(field.id)

        if field.is_required and is_missing(record.get(field.id)):
            missing_fields.append(field.id)

    active_count = count_active_exceptions(exceptions)
    is_flagged = active_count > config.system_rules.max_exceptions
    has_blocking_failure = bool(blocking_fields)
    missing_required = bool(missing_fields)

    decision = SubmissionDecision(
        can_submit=not has_blocking_failure and not missing_required,
        is_flagged=is_flagged,
        active_exception_count=active_count,
        has_blocking_failure=has_blocking_failure,
        missing_required=missing_required,
        blocking_fields=blocking_fields,
        missing_fields=missing_fields,
        flag_message=config.system_rules.flag_message if is_flagged else None,
    )
    logger.debug(
        "Submission decision: can_submit=%s flagged=%s blocking=%s missing=%s",
        decision.can_submit,
        decision.is_flagged,
        blocking_fields,
        missing_fields,
    )
    return decision
