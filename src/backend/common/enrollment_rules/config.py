from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import ConfigDict, Field, ValidationError, model_validator

from .errors import RulesConfigError
from .models import CamelModel, FieldCategory, RuleKind, ValueType

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent / "default_rules.yaml"
DEFAULT_RATIONALE_MIN_LENGTH = 30


class RuleBase(CamelModel):
    model_config = ConfigDict(frozen=True)

    message: Optional[str] = None
    # Blocks submission when the rule fails, even for soft fields with an active exception.
    block_submission: bool = False
    banner_message: Optional[str] = None

    @property
    def kind(self) -> RuleKind:
        return RuleKind(getattr(self, "type"))

    def failure_message(self) -> Optional[str]:
        return self.message or self.banner_message


class RequiredRule(RuleBase):
    type: Literal["required"] = "required"


class MinLengthRule(RuleBase):
    type: Literal["minLength"] = "minLength"
    value: int = 0


class ExactLengthRule(RuleBase):
    type: Literal["exactLength"] = "exactLength"
    value: int


class NoNumbersRule(RuleBase):
    type: Literal["noNumbers"] = "noNumbers"
    # Informational only; the check looks for any decimal digit.
    pattern: Optional[str] = None


class EmailFormatRule(RuleBase):
    type: Literal["emailFormat"] = "emailFormat"


class UniqueRule(RuleBase):
    type: Literal["unique"] = "unique"
    check_storage: bool = False


class PatternRule(RuleBase):
    type: Literal["pattern"] = "pattern"
    pattern: Optional[str] = None


class AgeRangeRule(RuleBase):
    type: Literal["ageRange"] = "ageRange"
    min: Optional[int] = None
    max: Optional[int] = None


class RangeRule(RuleBase):
    type: Literal["range"] = "range"
    min: Optional[float] = None
    max: Optional[float] = None


class MinValueRule(RuleBase):
    type: Literal["minValue"] = "minValue"
    value: float = 0


class NotEqualsRule(RuleBase):
    type: Literal["notEquals"] = "notEquals"
    value: Any = None


class Condition(CamelModel):
    """One branch of a conditional rule.

    A branch applies when the record value of `when` equals `is` or is one of `in`.
    """

    model_config = ConfigDict(frozen=True)

    when: str
    is_: Any = Field(default=None, alias="is")
    in_: Optional[List[Any]] = Field(default=None, alias="in")
    requires: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    message: Optional[str] = None

    @property
    def has_is(self) -> bool:
        # `is: null` is a real matcher; only an absent key disables it.
        return "is_" in self.model_fields_set


class ConditionalRule(RuleBase):
    type: Literal["conditional"] = "conditional"
    conditions: Optional[List[Condition]] = None


ValidationRule = Annotated[
    Union[
        RequiredRule,
        MinLengthRule,
        ExactLengthRule,
        NoNumbersRule,
        EmailFormatRule,
        UniqueRule,
        PatternRule,
        AgeRangeRule,
        RangeRule,
        MinValueRule,
        NotEqualsRule,
        ConditionalRule,
    ],
    Field(discriminator="type"),
]

RULE_MODELS: Dict[RuleKind, type] = {
    RuleKind.REQUIRED: RequiredRule,
    RuleKind.MIN_LENGTH: MinLengthRule,
    RuleKind.EXACT_LENGTH: ExactLengthRule,
    RuleKind.NO_NUMBERS: NoNumbersRule,
    RuleKind.EMAIL_FORMAT: EmailFormatRule,
    RuleKind.UNIQUE: UniqueRule,
    RuleKind.PATTERN: PatternRule,
    RuleKind.AGE_RANGE: AgeRangeRule,
    RuleKind.RANGE: RangeRule,
    RuleKind.MIN_VALUE: MinValueRule,
    RuleKind.NOT_EQUALS: NotEqualsRule,
    RuleKind.CONDITIONAL: ConditionalRule,
}


class FieldDefinition(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str = ""
    type: ValueType = ValueType.TEXT
    category: FieldCategory = FieldCategory.STRICT
    options: Optional[List[str]] = None
    sub_type: Optional[str] = None
    validations: List[ValidationRule] = Field(default_factory=list)
    allow_exception: bool = False
    rationale_keywords: List[str] = Field(default_factory=list)
    rationale_min_length: int = Field(default=DEFAULT_RATIONALE_MIN_LENGTH, ge=0)

    @property
    def is_soft(self) -> bool:
        return self.category == FieldCategory.SOFT

    @property
    def is_required(self) -> bool:
        return any(rule.kind == RuleKind.REQUIRED for rule in self.validations)


class SystemRules(CamelModel):
    model_config = ConfigDict(frozen=True)

    max_exceptions: int = Field(default=2, ge=0)
    flag_message: str = ""


class RulesConfig(CamelModel):
    """The full field schema plus system policy. Loaded once; read-only afterwards."""

    model_config = ConfigDict(frozen=True)

    fields: List[FieldDefinition] = Field(default_factory=list)
    system_rules: SystemRules = Field(default_factory=SystemRules)

    @model_validator(mode="after")
    def _unique_field_ids(self) -> "RulesConfig":
        seen: set[str] = set()
        for field in self.fields:
            if field.id in seen:
                raise ValueError(f"Duplicate field id in rules config: {field.id}")
            seen.add(field.id)
        return self

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def field_ids(self) -> List[str]:
        return [field.id for field in self.fields]


def parse_rules_config(raw: Dict[str, Any]) -> RulesConfig:
    try:
        return RulesConfig.model_validate(raw)
    except ValidationError as exc:
        raise RulesConfigError(f"Invalid rules config: {exc}") from exc


def load_rules_config(path: Path | str) -> RulesConfig:
    """Load a rules config from a `.yaml`, `.yml` or `.json` file."""
    path = Path(path)
    if not path.exists():
        raise RulesConfigError(f"Rules config not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RulesConfigError(f"Could not parse rules config {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise RulesConfigError(f"Rules config {path} must be a mapping at the top level.")

    config = parse_rules_config(raw)
    logger.info("Loaded %d field definitions from %s", len(config.fields), path)
    return config


@lru_cache(maxsize=1)
def default_rules_config() -> RulesConfig:
    return load_rules_config(DEFAULT_RULES_PATH)
