from __future__ import annotations

from typing import Any, Optional

from ..config import FieldDefinition, MinValueRule, RangeRule
from ..context import EvaluationContext, outside_bounds, to_number
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck


@register_check
class RangeCheck(RuleCheck):
    kind = RuleKind.RANGE
    title = "Number must fall inside an inclusive range"
    rule_model = RangeRule

    def check(
        self,
        rule: RangeRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if outside_bounds(to_number(value), rule.min, rule.max):
            return self.fail(rule)
        return None


@register_check
class MinValueCheck(RuleCheck):
    kind = RuleKind.MIN_VALUE
    title = "Number must reach a minimum"
    rule_model = MinValueRule

    def check(
        self,
        rule: MinValueRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if outside_bounds(to_number(value), rule.value, None):
            return self.fail(rule)
        return None
