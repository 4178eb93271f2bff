from __future__ import annotations

from typing import Any, Optional

from ..config import FieldDefinition, RequiredRule
from ..context import EvaluationContext, is_blank
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck


@register_check
class RequiredCheck(RuleCheck):
    kind = RuleKind.REQUIRED
    title = "Value must be present"
    rule_model = RequiredRule

    def check(
        self,
        rule: RequiredRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        # An unticked toggle counts as missing; zero does not.
        if is_blank(value):
            return self.fail(rule)
        return None
