import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import date

import pytest

from common.enrollment_rules.config import FieldDefinition, RulesConfig, default_rules_config
from common.enrollment_rules.evaluator import RecordEvaluator
from common.enrollment_rules.models import AuditEntry


@pytest.fixture
def today() -> date:
    return date(2026, 1, 15)


@pytest.fixture
def rules_config() -> RulesConfig:
    return default_rules_config()


@pytest.fixture
def get_field(rules_config):
    def _get(field_id: str) -> FieldDefinition:
        field = rules_config.get_field(field_id)
        assert field is not None, field_id
        return field

    return _get


@pytest.fixture
def make_field():
    def _make(*, validations, field_id: str = "subject", category: str = "strict", **extra) -> FieldDefinition:
        return FieldDefinition.model_validate(
            {"id": field_id, "label": field_id, "category": category, "validations": validations, **extra}
        )

    return _make


@pytest.fixture
def make_config():
    def _make(*, fields, max_exceptions: int = 2, flag_message: str = "Flagged for review") -> RulesConfig:
        return RulesConfig.model_validate(
            {
                "fields": fields,
                "systemRules": {"maxExceptions": max_exceptions, "flagMessage": flag_message},
            }
        )

    return _make


@pytest.fixture
def valid_record() -> dict:
    return {
        "fullName": "Asha Verma",
        "email": "asha@example.com",
        "phone": "9876543210",
        "dob": "2000-06-01",
        "qualification": "B.Tech",
        "graduationYear": "2022",
        "scoreType": "percentage",
        "scoreValue": "75",
        "screeningScore": "65",
        "interviewStatus": "Cleared",
        "aadhaar": "123456789012",
        "offerLetterSent": False,
    }


@pytest.fixture
def make_entry():
    def _make(form_data: dict, *, exception_count: int = 0, is_flagged: bool = False, entry_id=None) -> AuditEntry:
        kwargs = {"form_data": form_data, "exception_count": exception_count, "is_flagged": is_flagged}
        if entry_id is not None:
            kwargs["id"] = entry_id
        return AuditEntry(**kwargs)

    return _make


@pytest.fixture
def run_record(rules_config, today):
    def _run(record: dict, history=None, config: RulesConfig | None = None):
        return RecordEvaluator(config or rules_config).run(record, history, today=today)

    return _run


@pytest.fixture
def good_rationale() -> str:
    return "Graduation gap approved by the dean of admissions"
