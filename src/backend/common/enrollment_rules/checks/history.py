from __future__ import annotations

from typing import Any, Optional

from ..config import FieldDefinition, UniqueRule
from ..context import EvaluationContext
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck


@register_check
class UniqueCheck(RuleCheck):
    kind = RuleKind.UNIQUE
    title = "Text must not repeat a previously submitted value"
    rule_model = UniqueRule

    def check(
        self,
        rule: UniqueRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if not rule.check_storage or not isinstance(value, str):
            return None
        if ctx.history.contains(field.id, value):
            return self.fail(rule)
        return None
