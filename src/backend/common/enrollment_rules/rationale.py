from __future__ import annotations

from typing import Optional

from .config import FieldDefinition
from .models import RationaleResult


def check_rationale(field: FieldDefinition, rationale: Optional[str]) -> RationaleResult:
    """Judge the written justification for an exception on `field`.

    Only the text is checked, never the field value.
    """
    min_length = field.rationale_min_length
    if not rationale or len(rationale) < min_length:
        return RationaleResult(valid=False, error=f"Rationale must be at least {min_length} characters.")

    if field.rationale_keywords:
        lowered = rationale.lower()
        if not any(keyword.lower() in lowered for keyword in field.rationale_keywords):
            keywords = ", ".join(field.rationale_keywords)
            return RationaleResult(
                valid=False,
                error=f"Rationale must include one of the following keywords: {keywords}",
            )

    return RationaleResult(valid=True, error=None)
