from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import Condition, ConditionalRule, FieldDefinition
from ..context import EvaluationContext, outside_bounds, strict_contains, strict_equals, to_number
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck

logger = logging.getLogger(__name__)


def condition_applies(cond: Condition, ctx: EvaluationContext) -> bool:
    when_value = ctx.get(cond.when)
    if cond.has_is and strict_equals(when_value, cond.is_):
        return True
    if cond.in_ is not None and strict_contains(cond.in_, when_value):
        return True
    return False


@register_check
class ConditionalCheck(RuleCheck):
    """Cross-field checks keyed on another field's value.

    Every applicable branch runs in order. A branch with `requires` fails unless
    that field's value is one of the branch's `in` values; a branch with
    `min`/`max` bounds this field's numeric value. The first failing branch wins.
    """

    kind = RuleKind.CONDITIONAL
    title = "Cross-field condition"
    rule_model = ConditionalRule

    def check(
        self,
        rule: ConditionalRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if rule.conditions is None:
            logger.warning("Conditional rule on field %s has no conditions; treating as passing.", field.id)
            return None

        for cond in rule.conditions:
            if not condition_applies(cond, ctx):
                continue

            message = cond.message or rule.failure_message()
            if cond.requires and cond.in_ is not None:
                if not strict_contains(cond.in_, ctx.get(cond.requires)):
                    return CheckFailure(message=message)

            if cond.min is None and cond.max is None:
                continue
            if outside_bounds(to_number(value), cond.min, cond.max):
                return CheckFailure(message=message)
        return None
