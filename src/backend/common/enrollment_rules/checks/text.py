from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Optional

from ..config import (
    EmailFormatRule,
    ExactLengthRule,
    FieldDefinition,
    MinLengthRule,
    NoNumbersRule,
    PatternRule,
)
from ..context import EvaluationContext
from ..models import RuleKind
from ..registry import register_check
from ..rule import CheckFailure, RuleCheck

logger = logging.getLogger(__name__)

_DIGIT = re.compile(r"[0-9]")
_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def _end_anchors(pattern: str) -> str:
    r"""Rewrite each unescaped `$` outside a character class as `\Z`.

    Python's `$` also matches before a trailing newline; `\Z` only matches at the very end.
    """
    out = []
    in_class = False
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            out.append(pattern[i : i + 2])
            i += 2
            continue
        if in_class:
            if ch == "]":
                in_class = False
        elif ch == "[":
            in_class = True
        elif ch == "$":
            ch = r"\Z"
        out.append(ch)
        i += 1
    return "".join(out)


@lru_cache(maxsize=128)
def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(_end_anchors(pattern), re.ASCII)
    except re.error as exc:
        logger.warning("Ignoring pattern rule with invalid regex %r: %s", pattern, exc)
        return None


@register_check
class MinLengthCheck(RuleCheck):
    kind = RuleKind.MIN_LENGTH
    title = "Text must reach a minimum length"
    rule_model = MinLengthRule

    def check(
        self,
        rule: MinLengthRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if isinstance(value, str) and len(value) < rule.value:
            return self.fail(rule)
        return None


@register_check
class ExactLengthCheck(RuleCheck):
    kind = RuleKind.EXACT_LENGTH
    title = "Text must have an exact length"
    rule_model = ExactLengthRule

    def check(
        self,
        rule: ExactLengthRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if isinstance(value, str) and len(value) != rule.value:
            return self.fail(rule)
        return None


@register_check
class NoNumbersCheck(RuleCheck):
    kind = RuleKind.NO_NUMBERS
    title = "Text must not contain digits"
    rule_model = NoNumbersRule

    def check(
        self,
        rule: NoNumbersRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if isinstance(value, str) and _DIGIT.search(value):
            return self.fail(rule)
        return None


@register_check
class EmailFormatCheck(RuleCheck):
    kind = RuleKind.EMAIL_FORMAT
    title = "Text must look like local@domain.tld"
    rule_model = EmailFormatRule

    def check(
        self,
        rule: EmailFormatRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if isinstance(value, str) and not _EMAIL.fullmatch(value):
            return self.fail(rule)
        return None


@register_check
class PatternCheck(RuleCheck):
    kind = RuleKind.PATTERN
    title = "Text must match a regular expression"
    rule_model = PatternRule

    def check(
        self,
        rule: PatternRule,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:
        if not isinstance(value, str) or not rule.pattern:
            return None
        compiled = _compile(rule.pattern)
        if compiled is None:
            return None
        # Anchors come from the authored pattern; `$` was compiled to `\Z` in _compile().
        if not compiled.search(value):
            return self.fail(rule)
        return None
