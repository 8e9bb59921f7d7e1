"""
Shared pytest fixtures and configuration for study engine tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path so `import src...` works without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.collaborators import StaticAuthProvider  # noqa: E402
from src.models.quiz import Answer, Question  # noqa: E402
from src.models.user import User  # noqa: E402
from src.utils.persistence import InMemoryStore  # noqa: E402


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, when: datetime) -> datetime:
        self.now = when
        return self.now


def make_question(qid: str, correct: str = "b", options=("a", "b", "c", "d")) -> Question:
    """Build a question whose answer ids are the given option letters."""
    return Question(
        id=qid,
        text=f"Question {qid}?",
        answers=tuple(Answer(id=o, text=f"Option {o}") for o in options),
        correct_answer_id=correct,
    )


@pytest.fixture
def clock():
    """Clock fixed at 2024-03-10 09:00 UTC."""
    return FakeClock(datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def alice():
    return User(id="u-alice", display_name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return User(id="u-bob", display_name="Bob")


@pytest.fixture
def carol():
    return User(id="u-carol", display_name="Carol")


@pytest.fixture
def auth(alice):
    """Auth provider with Alice signed in."""
    return StaticAuthProvider(alice)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def five_questions():
    """Five questions whose correct answer is always 'b'."""
    return [make_question(f"q{i}") for i in range(1, 6)]


@pytest.fixture
def temp_schema_file(tmp_path):
    """
    Fixture providing a temporary schema file for testing.

    Args:
        tmp_path: pytest's tmp_path fixture

    Returns:
        Path: Path to temporary schema file
    """
    import json

    schema = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {"test": {"type": "string"}},
        "required": ["test"],
    }

    schema_file = tmp_path / "test.schema.json"
    with open(schema_file, "w") as f:
        json.dump(schema, f)

    return schema_file


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
