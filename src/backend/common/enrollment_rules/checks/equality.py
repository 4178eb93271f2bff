from __future__ import annotations

from typing import Any, Optional

from ..config import FieldDefinition, NotEqualsRule
from ..context import EvaluationContext, strict_equals
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck


@register_check
class NotEqualsCheck(RuleCheck):
    kind = RuleKind.NOT_EQUALS
    title = "Value must not equal a forbidden value"
    rule_model = NotEqualsRule

    def check(
        self,
        rule: NotEqualsRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if strict_equals(value, rule.value):
            return self.fail(rule)
        return None
