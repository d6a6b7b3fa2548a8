"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database. API tests route the
application's get_db dependency to the same session the test uses, and
replace the media store with an in-memory fake.
"""

import os

# Configuration is read at import time, so it must be in place before
# anything from myanedu is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from myanedu.database import Base, get_db, configure_sqlite_engine
from myanedu.main import app
from myanedu.models.course import Course, Batch
from myanedu.services.media import get_media_store
from myanedu.services.students import register_student
from myanedu.services.enrollment import resolve_enrollment
from myanedu.services.payments import submit_payment


class FakeMediaStore:
    """Records uploads and hands back predictable URLs."""

    def __init__(self):
        self.uploads = []

    def upload(self, content, filename, content_type="application/octet-stream"):
        self.uploads.append({"filename": filename, "content": content, "content_type": content_type})
        return f"https://media.test/{filename}"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine with the application's connection hooks."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def client(db, media_store):
    """TestClient whose requests use the test session and fake media store."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: media_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def course(db):
    course = Course(title="Basic Computer", description="Office tools for beginners")
    db.add(course)
    db.commit()
    return course


@pytest.fixture
def batch(db, course):
    """Batch with the 30000 fee used throughout the payment scenarios."""
    batch = Batch(id="C1-B1", course_id=course.id, batch_name="Batch 1", fees=30000, status="active")
    db.add(batch)
    db.commit()
    return batch


@pytest.fixture
def other_batch(db, course):
    batch = Batch(id="C1-B2", course_id=course.id, batch_name="Batch 2", fees=25000, status="open")
    db.add(batch)
    db.commit()
    return batch


@pytest.fixture
def student(db):
    return register_student(db, "Aung Aung", "09420000001", "secret-pass")


@pytest.fixture
def enrollment(db, student, batch):
    enrollment = resolve_enrollment(db, student.id, batch.id)
    db.commit()
    return enrollment


@pytest.fixture
def pending_payment(db, student, batch):
    """Payment from the S/B scenario: 30000 via KBZPay with receipt r1."""
    return submit_payment(db, student.id, 30000, "KBZPay", "r1", batch_id=batch.id)
