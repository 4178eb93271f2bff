from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .submission import SubmissionDecision


class EnrollmentRulesError(Exception):
    """Base class for errors raised around the enrollment gate.

    Field verdicts never raise; these cover configuration and caller misuse.
    """


class RulesConfigError(EnrollmentRulesError):
    """Raised when a rules configuration cannot be read or validated."""


class SubmissionBlockedError(EnrollmentRulesError):
    """Raised when an audit entry is requested for a record that cannot be submitted."""

    def __init__(self, message: str, decision: "SubmissionDecision"):
        super().__init__(message)
        self.decision = decision

    @property
    def blocking_fields(self) -> List[str]:
        return list(self.decision.blocking_fields)


class AuditStoreError(EnrollmentRulesError):
    """Raised when the local audit store holds unreadable data."""


__all__ = [
    "EnrollmentRulesError",
    "RulesConfigError",
    "SubmissionBlockedError",
    "AuditStoreError",
]
