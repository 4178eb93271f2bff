from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FieldCategory(str, Enum):
    STRICT = "strict"
    SOFT = "soft"


class ValueType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    DATE = "date"
    SELECT = "select"
    NUMBER = "number"
    TOGGLE = "toggle"


class RuleKind(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    NO_NUMBERS = "noNumbers"
    EMAIL_FORMAT = "emailFormat"
    UNIQUE = "unique"
    PATTERN = "pattern"
    AGE_RANGE = "ageRange"
    RANGE = "range"
    MIN_VALUE = "minValue"
    NOT_EQUALS = "notEquals"
    EXACT_LENGTH = "exactLength"
    CONDITIONAL = "conditional"


class CamelModel(BaseModel):
    """Accepts snake_case names and the camelCase keys used by exported JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    error: Optional[str] = None
    is_soft: bool = False
    # Only set when the failing rule carried block_submission.
    block_submission: Optional[bool] = None


class RationaleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    error: Optional[str] = None


class ExceptionState(CamelModel):
    active: bool = False
    rationale: str = ""


class AuditEntry(CamelModel):
    """Snapshot of a submitted record. Entries are appended or removed, never edited."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    form_data: Dict[str, Any] = Field(default_factory=dict)
    exceptions: Dict[str, ExceptionState] = Field(default_factory=dict)
    exception_count: int = 0
    is_flagged: bool = False


class EvaluationReport(BaseModel):
    run_id: str
    generated_at: datetime

    results: Dict[str, ValidationResult] = Field(default_factory=dict)
    totals: Dict[str, int] = Field(default_factory=dict)

    def errors(self) -> Dict[str, ValidationResult]:
        return {field_id: res for field_id, res in self.results.items() if not res.valid}
