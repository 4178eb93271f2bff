from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()

AUDIT_STORE_DEFAULT = ".admitguard_audit.json"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class GateSettings:
    rules_path: Optional[Path]
    audit_store_path: Path
    log_level: str


def get_gate_settings() -> GateSettings:
    """
    Load process settings from environment variables (and a `.env` file if present).

    Reads:
      ADMITGUARD_RULES_PATH  (optional; built-in rules when unset)
      ADMITGUARD_AUDIT_PATH  (default: .admitguard_audit.json)
      ADMITGUARD_LOG_LEVEL   (default: WARNING)
    """
    rules_path = os.getenv("ADMITGUARD_RULES_PATH", "").strip()
    audit_path = os.getenv("ADMITGUARD_AUDIT_PATH", "").strip() or AUDIT_STORE_DEFAULT
    return GateSettings(
        rules_path=Path(rules_path) if rules_path else None,
        audit_store_path=Path(audit_path),
        log_level=_log_level(os.getenv("ADMITGUARD_LOG_LEVEL", "WARNING")),
    )


def _log_level(raw: str) -> str:
    level = (raw or "").strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"ADMITGUARD_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")
    return level


def configure_logging(settings: GateSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
