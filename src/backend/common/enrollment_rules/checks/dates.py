from __future__ import annotations

from typing import Any, Optional

from ..config import AgeRangeRule, FieldDefinition
from ..context import EvaluationContext, age_in_years, outside_bounds, parse_date
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck


@register_check
class AgeRangeCheck(RuleCheck):
    kind = RuleKind.AGE_RANGE
    title = "Age in whole years must fall inside an inclusive range"
    rule_model = AgeRangeRule

    def check(
        self,
        rule: AgeRangeRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if not value:
            return None
        born = parse_date(value)
        if born is None:
            return self.fail(rule)
        age = age_in_years(born, ctx.today)
        if outside_bounds(age, rule.min, rule.max):
            return self.fail(rule)
        return None
