import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` and
# `import pipelines...` work when pytest runs from the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest


GATE_ENV_VARS = ("ADMITGUARD_RULES_PATH", "ADMITGUARD_AUDIT_PATH", "ADMITGUARD_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_gate_env(monkeypatch):
    """Keep a developer's `.env` or shell settings out of the tests."""
    for name in GATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
