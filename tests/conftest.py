import sys

import pytest

# Ensure project root is importable (so `import main` / `import cli` work without installing)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from trr import db  # noqa: E402
from trr.settings import Settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the events table at a throwaway sqlite file for every test."""
    monkeypatch.setattr(db, "settings", Settings(db_path=str(tmp_path / "events.db")))
    db.init_db()
    return tmp_path / "events.db"


class FakeRecorder:
    def __init__(self):
        self.events = []

    def event(self, rollout, event_type, reason, message):
        self.events.append((rollout.name, event_type, reason, message))


@pytest.fixture
def recorder():
    return FakeRecorder()
