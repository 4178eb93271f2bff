from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _load_json(path: Path):
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _load_optional_json(path: Path | None):
    if path is None or not path.exists():
        return None
    return _load_json(path)


@dataclass(frozen=True)
class CheckInputs:
    record: dict[str, Any]
    exceptions: dict[str, Any] = field(default_factory=dict)
    history: tuple = ()


@dataclass(frozen=True)
class CheckOutcome:
    report: Any
    decision: Any
    rationales: dict[str, Any]


def build_check_inputs(
    record_path: Path,
    *,
    exceptions_path: Path | None = None,
    history_path: Path | None = None,
) -> CheckInputs:
    """Read a record, its exception states and prior submissions from JSON files.

    The record file may be a bare mapping of field values or an object with
    `formData` and `exceptions` keys (the shape of a saved draft).
    """
    _ensure_backend_on_path()
    from common.enrollment_rules.models import AuditEntry

    raw = _load_json(record_path)
    if not isinstance(raw, dict):
        raise SystemExit(f"Record file {record_path} must hold a JSON object.")
    if "formData" in raw:
        record = dict(raw.get("formData") or {})
        exceptions = dict(raw.get("exceptions") or {})
    else:
        record = raw
        exceptions = {}

    extra_exceptions = _load_optional_json(exceptions_path)
    if extra_exceptions:
        exceptions.update(extra_exceptions)

    history_raw = _load_optional_json(history_path) or []
    history = tuple(AuditEntry.model_validate(item) for item in history_raw)
    return CheckInputs(record=record, exceptions=exceptions, history=history)


def run_enrollment_check(inputs: CheckInputs, *, config=None, today: date | None = None) -> CheckOutcome:
    _ensure_backend_on_path()
    from common.enrollment_rules.evaluator import RecordEvaluator
    from common.enrollment_rules.rationale import check_rationale
    from common.enrollment_rules.submission import as_exception_state, decide_submission

    evaluator = RecordEvaluator(config)
    report = evaluator.run(inputs.record, inputs.history, today=today)
    decision = decide_submission(evaluator.config, report.results, inputs.exceptions, inputs.record)

    rationales = {}
    for field_id, state in inputs.exceptions.items():
        field_def = evaluator.config.get_field(field_id)
        if field_def is None:
            continue
        state = as_exception_state(state)
        rationales[field_id] = check_rationale(field_def, state.rationale if state else "")
    return CheckOutcome(report=report, decision=decision, rationales=rationales)


def _write_markdown(outcome: CheckOutcome, out_path: Path) -> None:
    decision = outcome.decision
    lines = [
        "# Enrollment Check",
        "",
        f"Generated at: {outcome.report.generated_at.isoformat()}",
        "",
        "## Decision",
        f"- Can submit: {'yes' if decision.can_submit else 'no'}",
        f"- Active exceptions: {decision.active_exception_count}",
        f"- Flagged for review: {'yes' if decision.is_flagged else 'no'}",
    ]
    if decision.flag_message:
        lines.append(f"- {decision.flag_message}")
    if decision.blocking_fields:
        lines.append(f"- Blocking fields: {', '.join(decision.blocking_fields)}")
    if decision.missing_fields:
        lines.append(f"- Missing required: {', '.join(decision.missing_fields)}")

    lines.append("")
    lines.append("## Fields")
    for field_id, res in outcome.report.results.items():
        if res.valid:
            lines.append(f"- {field_id}: ok")
            continue
        kind = "soft" if res.is_soft else "strict"
        suffix = " (blocks submission)" if res.block_submission else ""
        lines.append(f"- {field_id}: {res.error} [{kind}]{suffix}")
        rationale = outcome.rationales.get(field_id)
        if rationale is not None and not rationale.valid:
            lines.append(f"  - Rationale: {rationale.error}")
    out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    _ensure_backend_on_path()
    from common.enrollment_rules.audit import build_audit_entry
    from common.enrollment_rules.config import default_rules_config, load_rules_config
    from pipelines.audit_store import LocalAuditStore
    from pipelines.settings import configure_logging, get_gate_settings

    settings = get_gate_settings()
    configure_logging(settings)

    parser = argparse.ArgumentParser(description="Evaluate an enrollment record against the rules config.")
    parser.add_argument("--record", required=True, help="JSON file with the record (or a saved draft).")
    parser.add_argument("--exceptions", help="JSON file mapping field id to {active, rationale}.")
    parser.add_argument(
        "--history",
        help="JSON audit history for uniqueness checks (default: the configured audit store).",
    )
    parser.add_argument("--rules", help="Rules config file (default: ADMITGUARD_RULES_PATH or built-in rules).")
    parser.add_argument("--output-dir", default=".", help="Directory for the JSON and markdown reports.")
    parser.add_argument("--today", help="Evaluate age rules as of this ISO date.")
    parser.add_argument(
        "--submit",
        action="store_true",
        help="Append the record to the audit store when it can be submitted.",
    )
    args = parser.parse_args(argv)

    rules_path = Path(args.rules) if args.rules else settings.rules_path
    config = load_rules_config(rules_path) if rules_path else default_rules_config()
    store = LocalAuditStore(settings.audit_store_path)
    history_path = Path(args.history) if args.history else store.path

    inputs = build_check_inputs(
        Path(args.record),
        exceptions_path=Path(args.exceptions) if args.exceptions else None,
        history_path=history_path,
    )
    today = date.fromisoformat(args.today) if args.today else None
    outcome = run_enrollment_check(inputs, config=config, today=today)

    output_dir = Path(args.output_dir).resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    out_json = output_dir / "enrollment_check.json"
    out_md = output_dir / "enrollment_check.md"

    out_json.write_text(
        json.dumps(
            {
                "report": outcome.report.model_dump(mode="json"),
                "decision": outcome.decision.model_dump(mode="json"),
                "rationales": {k: v.model_dump(mode="json") for k, v in outcome.rationales.items()},
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    _write_markdown(outcome, out_md)
    print(f"Wrote {out_json}")
    print(f"Wrote {out_md}")

    if not outcome.decision.can_submit:
        return 1

    if args.submit:
        entry = build_audit_entry(inputs.record, inputs.exceptions, outcome.decision)
        store.append(entry)
        print(f"Submitted entry {entry.id} to {store.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
