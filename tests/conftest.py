import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def isolated_database_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MMO_DB_ECHO", raising=False)
    monkeypatch.setenv("MMO_DB_CONNECT_PROBE_TIMEOUT_S", "0.05")
