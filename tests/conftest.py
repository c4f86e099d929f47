"""
Test fixtures for the Study Tracker.

Provides app, client, store and seeded-data fixtures backed by an in-memory
key-value store. Gemini is mocked globally to avoid API calls during tests.
"""

from __future__ import annotations

import pytest
from unittest.mock import MagicMock, patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(scope="session", autouse=True)
def mock_gemini():
    """Mock Google Generative AI globally to prevent API calls."""
    with patch.dict("sys.modules", {
        "google.generativeai": MagicMock(),
    }):
        yield


@pytest.fixture(autouse=True)
def reset_circuit_breaker():
    from ai_resilience import get_circuit_breaker
    get_circuit_breaker().reset()
    yield
    get_circuit_breaker().reset()


@pytest.fixture
def backend():
    from storage_backend import InMemoryStore
    return InMemoryStore()


@pytest.fixture
def app(backend):
    from app import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "STORAGE_BACKEND": "memory",
        "GEMINI_MODEL": "gemini-test",
    }, backend=backend)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["study_store"]


def make_physics():
    from models import Subject, Subtopic, Topic
    return Subject(
        id="phys",
        name="Physics",
        syllabus=[
            Topic(id="T1", name="Kinematics", subtopics=[Subtopic(id="T1.1", name="Velocity")]),
            Topic(id="T2", name="Thermo", subtopics=[]),
        ],
    )


def make_paper(paper_id, subject_id, marks, date="2026-01-15T10:00:00"):
    """marks: list of (allotted, obtained, topic_id)."""
    from models import ExamPaper, Question
    return ExamPaper(
        id=paper_id,
        subject_id=subject_id,
        name=f"Paper {paper_id}",
        date=date,
        questions=[
            Question(id=f"{paper_id}-q{i}", text=f"Q{i}", allotted_marks=a,
                     obtained_marks=o, mapped_topic_id=t)
            for i, (a, o, t) in enumerate(marks)
        ],
    )


@pytest.fixture
def seeded_store(store):
    """Physics with one paper (the 80% / 30% scenario)."""
    store.add_subject(make_physics())
    store.add_paper(make_paper("p1", "phys", [(10, 8, "T1"), (10, 3, "T2")]))
    return store
