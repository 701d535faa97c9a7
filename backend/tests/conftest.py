import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from studynotes.models.flashcard import Difficulty, Flashcard

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    def _make(**overrides) -> Flashcard:
        fields = {
            "id": str(uuid.uuid4()),
            "owner_id": "alice",
            "front": "What is osmosis?",
            "back": "Diffusion of water across a membrane",
            "difficulty": Difficulty.MEDIUM,
            "created_at": NOW - timedelta(days=10),
            "updated_at": NOW - timedelta(days=10),
        }
        fields.update(overrides)
        return Flashcard(**fields)

    return _make


@pytest.fixture
def client(tmp_path, monkeypatch):
    from studynotes import app
    from studynotes.config import settings

    monkeypatch.setattr(settings, "data_dir", tmp_path)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice():
    return {"X-User-Id": "alice"}


@pytest.fixture
def bob():
    return {"X-User-Id": "bob"}
