"""Test bootstrap.

Points the application at a shared in-memory SQLite database before any
application module is imported; tables are rebuilt for every test.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("SUGGESTION_LIMIT", None)
os.environ.pop("ASSESSMENT_ID", None)

import pytest

from catalog import CATALOG, InputKind, ranking_candidates
from config import reset_config
from database import Base, SessionLocal, engine
import models


class FakeLookup:
    """Occupation lookup returning canned codes per Holland code and counting calls."""

    def __init__(self, codes_by_riasec=None, fail_on=()):
        self.codes_by_riasec = codes_by_riasec or {}
        self.fail_on = set(fail_on)
        self.calls = []

    def find_codes(self, riasec_code, limit, exclude=()):
        from recommendation import OccupationLookupError

        self.calls.append((riasec_code, limit, tuple(exclude)))
        if riasec_code in self.fail_on:
            raise OccupationLookupError(f"lookup for {riasec_code} unavailable")
        codes = [c for c in self.codes_by_riasec.get(riasec_code, []) if c not in exclude]
        return codes[:limit]


def valid_answer(question, answers):
    kind = question.input_kind
    if kind in (InputKind.SINGLE_CHOICE, InputKind.SCENARIO_CHOICE):
        return question.options[0].id
    if kind is InputKind.RATING_SCALE:
        return 4
    if kind is InputKind.RANKED_MULTI_SELECT:
        return [item.id for item in ranking_candidates(question, answers)[:3]]
    return "Something I care about."


def full_answers():
    answers = {}
    for q in CATALOG:
        answers[q.id] = valid_answer(q, answers)
    return answers


def seed_occupations(db):
    rows = [
        ("15-1252.00", "Software Developers", "I"),
        ("15-2041.00", "Statisticians", "I"),
        ("19-1042.00", "Medical Scientists", "I"),
        ("27-1024.00", "Graphic Designers", "A"),
        ("27-1014.00", "Special Effects Artists", "A"),
        ("27-2012.00", "Producers and Directors", "A"),
        ("47-2111.00", "Electricians", "R"),
        ("49-3023.00", "Automotive Technicians", "R"),
        ("21-1012.00", "Educational Counselors", "S"),
        ("43-3031.00", "Bookkeeping Clerks", "C"),
    ]
    for code, title, riasec in rows:
        db.add(models.Occupation(code=code, title=title, riasec_code=riasec))
    db.commit()


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    from intake import IntakeRegistry
    from main import app

    app.state.intake = IntakeRegistry()
    with TestClient(app) as c:
        yield c
