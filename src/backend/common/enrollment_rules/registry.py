from __future__ import annotations

from typing import Dict, Iterable, Type

from .models import RuleKind
from .rule import RuleCheck


class CheckRegistry:
    def __init__(self):
        self._checks: Dict[RuleKind, RuleCheck] = {}

    def register(self, check_cls: Type[RuleCheck]) -> None:
        kind = getattr(check_cls, "kind", None)
        if not kind:
            raise ValueError("Check class missing kind")
        if kind in self._checks:
            raise ValueError(f"Duplicate check registered for rule kind: {kind.value}")
        self._checks[kind] = check_cls()

    def get(self, kind: RuleKind) -> RuleCheck:
        return self._checks[kind]

    def kinds(self) -> Iterable[RuleKind]:
        return self._checks.keys()

    def missing_kinds(self) -> list[RuleKind]:
        return [kind for kind in RuleKind if kind not in self._checks]

    def ensure_complete(self) -> None:
        missing = self.missing_kinds()
        if missing:
            names = ", ".join(kind.value for kind in missing)
            raise RuntimeError(f"No check registered for rule kinds: {names}")


registry = CheckRegistry()


def register_check(check_cls: Type[RuleCheck]) -> Type[RuleCheck]:
    registry.register(check_cls)
    return check_cls
