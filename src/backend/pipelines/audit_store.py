from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Tuple

from pydantic import ValidationError

from common.enrollment_rules.audit import prepend_entry, remove_entry
from common.enrollment_rules.errors import AuditStoreError
from common.enrollment_rules.models import AuditEntry

logger = logging.getLogger(__name__)


class AuditStore(Protocol):
    def load(self) -> Tuple[AuditEntry, ...]:
        ...

    def append(self, entry: AuditEntry) -> Tuple[AuditEntry, ...]:
        ...

    def remove(self, entry_id: str) -> Tuple[AuditEntry, ...]:
        ...

    def clear(self) -> None:
        ...


@dataclass(frozen=True)
class LocalAuditStore:
    """Audit history kept as a JSON array (newest first) in a single file."""

    path: Path

    def load(self) -> Tuple[AuditEntry, ...]:
        if not self.path.exists():
            return ()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise AuditStoreError(f"Audit store {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(raw, list):
            raise AuditStoreError(f"Audit store {self.path} must hold a JSON array.")
        try:
            return tuple(AuditEntry.model_validate(item) for item in raw)
        except ValidationError as exc:
            raise AuditStoreError(f"Audit store {self.path} holds an invalid entry: {exc}") from exc

    def append(self, entry: AuditEntry) -> Tuple[AuditEntry, ...]:
        entries = prepend_entry(self.load(), entry)
        self._write(entries)
        logger.info("Appended audit entry %s (flagged=%s)", entry.id, entry.is_flagged)
        return entries

    def remove(self, entry_id: str) -> Tuple[AuditEntry, ...]:
        before = self.load()
        entries = remove_entry(before, entry_id)
        if len(entries) == len(before):
            logger.warning("Audit entry %s not found in %s", entry_id, self.path)
        self._write(entries)
        return entries

    def clear(self) -> None:
        self._write(())
        logger.info("Cleared audit store %s", self.path)

    def _write(self, entries: Tuple[AuditEntry, ...]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
