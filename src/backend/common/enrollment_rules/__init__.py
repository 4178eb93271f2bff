"""Field-rule evaluation and exception gating for enrollment records.

This package intentionally contains only domain logic:
- Inputs are a rules config, the record being entered, prior audit entries and
  the caller's exception states.
- No storage, UI or network calls live here; every entry point is a pure function.
"""

from .audit import (
    ExceptionFilter,
    HistorySummary,
    build_audit_entry,
    completion_percentage,
    export_history_json,
    filter_entries,
    option_distribution,
    prepend_entry,
    remove_entry,
    summarize_history,
)
from .config import (
    FieldDefinition,
    RulesConfig,
    SystemRules,
    default_rules_config,
    load_rules_config,
)
from .context import EvaluationContext, HistoryIndex, HistoryScan
from .errors import (
    AuditStoreError,
    EnrollmentRulesError,
    RulesConfigError,
    SubmissionBlockedError,
)
from .evaluator import RecordEvaluator, evaluate
from .models import (
    AuditEntry,
    EvaluationReport,
    ExceptionState,
    FieldCategory,
    RationaleResult,
    RuleKind,
    ValidationResult,
)
from .rationale import check_rationale
from .submission import SubmissionDecision, decide_submission
