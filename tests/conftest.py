"""Shared fixtures.

Settings are read once at import time, so the environment is pointed at a
throw-away SQLite file and log directory before any project module loads.
"""
import json
import os
import tempfile
from types import SimpleNamespace

_TMP = tempfile.mkdtemp(prefix="nutrition-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["READ_DATABASE_URL"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["QUOTA_RESET_JOB_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

import pytest

from database import init_db
from database.database import WriteSessionLocal, drop_db
from services.auth import auth_service


class FakeOpenAIClient:
    """Stands in for `openai.OpenAI`; answers chat completions from a queue.

    Each queued item is returned as message content; a queued exception is
    raised instead. `calls` keeps the keyword arguments of every request.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.responses.pop(0) if self.responses else None
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            item = json.dumps(item)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=item))])


def make_meal(name, timing, calories=400, **extra):
    meal = {
        "name": name,
        "meal_timing": timing,
        "calories": calories,
        "protein_g": 30,
        "carbs_g": 40,
        "fats_g": 12,
        "ingredients": [{"name": "chicken breast", "quantity": 0.2, "unit": "kg", "category": "Protein"}],
    }
    meal.update(extra)
    return meal


def make_week(days=7, timings=("BREAKFAST", "LUNCH", "DINNER")):
    """A model-style weekly plan with one distinct meal per slot."""
    return {
        "weekly_plan": [
            {"day": f"Day {d + 1}", "meals": [make_meal(f"{t.title()} {d}", t) for t in timings]}
            for d in range(days)
        ]
    }


@pytest.fixture
def db():
    """Fresh schema and a write session per test."""
    init_db()
    session = WriteSessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_db()


@pytest.fixture
def signed_up(db):
    """(user, token) for a freshly registered FREE user."""
    return auth_service.sign_up(db, "jane@example.com", "Jane", "secret123")


@pytest.fixture
def user(signed_up):
    return signed_up[0]
