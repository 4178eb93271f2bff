from common.enrollment_rules.config import default_rules_config
from common.enrollment_rules.context import HistoryIndex
from common.enrollment_rules.evaluator import RecordEvaluator, evaluate
from common.enrollment_rules.models import AuditEntry, RuleKind
from common.enrollment_rules.registry import registry


def test_every_rule_kind_has_a_check():
    assert registry.missing_kinds() == []
    assert set(registry.kinds()) == set(RuleKind)


def test_first_failing_rule_wins(make_field):
    field = make_field(
        validations=[
            {"type": "required", "message": "required msg"},
            {"type": "minLength", "value": 3, "message": "length msg"},
        ]
    )
    assert evaluate(field, "", {}, []).error == "required msg"
    assert evaluate(field, "ab", {}, []).error == "length msg"


def test_later_rules_not_consulted_after_failure(get_field):
    # Too short and contains digits: only the earlier minLength complaint is reported.
    res = evaluate(get_field("fullName"), "1", {}, [])
    assert res.error == "Name must be at least 2 characters"


def test_evaluate_is_idempotent(get_field, valid_record, make_entry, today):
    history = [make_entry({"email": "someone@example.com"})]
    field = get_field("email")
    first = evaluate(field, "someone@example.com", valid_record, history, today=today)
    second = evaluate(field, "someone@example.com", valid_record, history, today=today)
    assert first == second
    assert not first.valid


def test_evaluate_does_not_mutate_record(get_field, valid_record):
    snapshot = dict(valid_record)
    evaluate(get_field("offerLetterSent"), True, valid_record, [])
    assert valid_record == snapshot


def test_verdict_marks_soft_fields(get_field):
    soft = evaluate(get_field("graduationYear"), "2010", {}, [])
    strict = evaluate(get_field("phone"), "123", {}, [])
    assert soft.is_soft and not soft.valid
    assert not strict.is_soft and not strict.valid
    assert evaluate(get_field("graduationYear"), "2020", {}, []).is_soft


def test_block_submission_carried_on_verdict(get_field):
    res = evaluate(get_field("interviewStatus"), "Rejected", {"interviewStatus": "Rejected"}, [])
    assert not res.valid
    assert res.block_submission is True
    assert res.error == "Rejected candidates cannot be enrolled"


def test_block_submission_unset_for_ordinary_failures(get_field):
    assert evaluate(get_field("interviewStatus"), "", {}, []).block_submission is None


def test_uniqueness_against_history_mappings(get_field):
    history = [{"formData": {"email": "a@x.com"}}]
    email = get_field("email")
    assert evaluate(email, "a@x.com", {}, history).error == "This email is already registered"
    assert evaluate(email, "b@x.com", {}, history).valid


def test_uniqueness_with_history_index(get_field, make_entry):
    entries = [make_entry({"email": "a@x.com"}), make_entry({"email": "c@x.com"})]
    index = HistoryIndex.from_entries(entries)
    email = get_field("email")
    assert not evaluate(email, "c@x.com", {}, index).valid
    assert evaluate(email, "b@x.com", {}, index).valid


def test_history_index_keeps_types_apart():
    index = HistoryIndex.from_entries([AuditEntry(form_data={"flag": True, "n": 1})])
    assert index.contains("flag", True)
    assert not index.contains("flag", 1)
    assert index.contains("n", 1.0)
    assert not index.contains("n", "1")
    assert not index.contains("missing", True)


def test_record_evaluator_valid_record(run_record, valid_record):
    report = run_record(valid_record)
    assert set(report.results) == set(default_rules_config().field_ids())
    assert report.errors() == {}
    assert report.totals["invalid"] == 0
    assert report.totals["valid"] == len(report.results)


def test_record_evaluator_totals(run_record, valid_record):
    record = dict(valid_record, phone="123", graduationYear="2010", interviewStatus="Rejected")
    report = run_record(record)
    assert set(report.errors()) == {"phone", "graduationYear", "interviewStatus"}
    assert report.totals == {"valid": 8, "invalid": 3, "soft_invalid": 1, "blocking": 1}


def test_record_evaluator_subset(rules_config, valid_record, today):
    report = RecordEvaluator(rules_config).run(valid_record, today=today, field_ids=["email", "phone"])
    assert list(report.results) == ["email", "phone"]


def test_record_evaluator_uses_history(run_record, valid_record, make_entry):
    history = [make_entry({"email": valid_record["email"]})]
    report = run_record(valid_record, history)
    assert report.results["email"].error == "This email is already registered"


def test_schema_without_soft_fields_never_yields_soft_verdicts(make_config, valid_record, run_record):
    config = make_config(
        fields=[
            {"id": "fullName", "category": "strict", "validations": [{"type": "required", "message": "m"}]},
            {"id": "phone", "category": "strict", "validations": [{"type": "pattern", "pattern": "^\\d+$"}]},
        ]
    )
    report = run_record(dict(valid_record, phone="abc"), config=config)
    assert all(not res.is_soft for res in report.results.values())
    assert report.totals["soft_invalid"] == 0


def test_malformed_history_mappings_are_skipped(get_field, caplog):
    history = [{"formData": "oops"}, {"formData": {"email": "c@x.com"}}]
    email = get_field("email")
    with caplog.at_level("WARNING", logger="common.enrollment_rules.context"):
        res = evaluate(email, "c@x.com", {}, history)
    assert not res.valid
    assert "Skipping malformed history entry" in caplog.text
