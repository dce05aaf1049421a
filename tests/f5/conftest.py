"""Fixtures for F5 tests - Web API and CLI."""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from levelup.config.app_config import clear_config_cache, resolve_db_path
from levelup.core.models import DifficultyTier, Question, SubjectCategory
from levelup.db import courses_repository
from levelup.db.database import init_db
from levelup.web.api import create_app
from levelup.web.engine_provider import reset_engine


@pytest.fixture
def data_dir(tmp_path, monkeypatch) -> Path:
    """Isolated LEVELUP_DATA_DIR with a seeded database."""
    monkeypatch.setenv("LEVELUP_DATA_DIR", str(tmp_path))
    clear_config_cache()
    reset_engine()

    db_path = init_db(resolve_db_path())
    courses_repository.upsert_course(
        "math-101", "Algebra", category=SubjectCategory.MATH, db_path=db_path
    )
    for tier in (DifficultyTier.EASY, DifficultyTier.MEDIUM):
        for i in range(1, 5):
            courses_repository.insert_question(
                "math-101",
                tier,
                Question(
                    question_id=f"{tier.value}-{i}",
                    prompt=f"{tier.label} question {i}",
                    correct_answer="A",
                    options=["A", "B", "C", "D"],
                    explanation="The answer is A.",
                ),
                position=i,
                db_path=db_path,
            )

    yield tmp_path

    reset_engine()


@pytest.fixture
def client(data_dir) -> TestClient:
    """Test client bound to the seeded data dir."""
    return TestClient(create_app())


@pytest.fixture
def answers_file(tmp_path) -> Path:
    """Answers for the four Easy questions, three of them right."""
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"answers": ["A", "A", "A", "C"], "duration_seconds": 300}))
    return path
