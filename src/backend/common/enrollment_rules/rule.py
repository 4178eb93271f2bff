from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Type

from pydantic import BaseModel

from .config import FieldDefinition
from .context import EvaluationContext
from .models import RuleKind


@dataclass(frozen=True)
class CheckFailure:
    message: Optional[str] = None


class RuleCheck(ABC):
    """Checks one rule kind against a field value.

    `check` returns None when the value passes and a CheckFailure otherwise.
    """

    kind: RuleKind
    title: str = ""
    rule_model: Type[BaseModel]

    def __init__(self):
        if not getattr(self, "kind", None):
            raise ValueError("RuleCheck must define kind")

    @abstractmethod
    def check(
        self,
        rule: Any,
        field: FieldDefinition,
        value: Any,
        ctx: EvaluationContext,
    ) -> Optional[CheckFailure]:  # pragma: no cover
        raise NotImplementedError

    def fail(self, rule: Any) -> CheckFailure:
        return CheckFailure(message=rule.failure_message())
