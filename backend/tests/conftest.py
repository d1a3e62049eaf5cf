# backend/tests/conftest.py
"""
Pytest configuration for the tutorbook test suite.

Every test gets its own in-memory SQLite database. All sessions share one
connection (StaticPool) so that notifications written after commit by the
notification service are visible to the test session.
"""

import os

# Set testing mode BEFORE any tutorbook imports
os.environ.setdefault("is_testing", "true")
os.environ.setdefault("CI", "true")
os.environ.setdefault("database_url", "sqlite://")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorbook.api.dependencies import get_db as dependency_get_db
from tutorbook.api.dependencies import get_notification_service
from tutorbook.core.actor import Actor
from tutorbook.core.config import settings
from tutorbook.core.enums import ActorRole
from tutorbook.database import Base
from tutorbook.main import app
from tutorbook.models import Notification, Slot, Student, Teacher
from tutorbook.services.notification_service import NotificationService

from tests.utils.builders import CLASS_DATE, CLASS_TIME, FrozenClock

settings.is_testing = True


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def notifier(session_factory) -> NotificationService:
    return NotificationService(session_factory)


@pytest.fixture
def clock() -> FrozenClock:
    # Two days before the standard class, in UTC
    return FrozenClock(datetime(2026, 2, 28, 1, 0, tzinfo=timezone.utc))


@pytest.fixture
def teacher(db) -> Teacher:
    teacher = Teacher(
        email="maria.santos@example.com",
        name="Maria Santos",
        payment_account="PH-ACCT-001",
    )
    db.add(teacher)
    db.commit()
    return teacher


@pytest.fixture
def other_teacher(db) -> Teacher:
    teacher = Teacher(email="jose.reyes@example.com", name="Jose Reyes", rate=Decimal("120.00"))
    db.add(teacher)
    db.commit()
    return teacher


@pytest.fixture
def student(db) -> Student:
    student = Student(email="kenji@example.com", name="Kenji Tanaka")
    db.add(student)
    db.commit()
    return student


@pytest.fixture
def other_student(db) -> Student:
    student = Student(email="yuna@example.com", name="Yuna Park")
    db.add(student)
    db.commit()
    return student


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(role=ActorRole.ADMIN, id="admin-1")


@pytest.fixture
def teacher_actor(teacher) -> Actor:
    return Actor(role=ActorRole.TEACHER, id=teacher.id)


@pytest.fixture
def student_actor(student) -> Actor:
    return Actor(role=ActorRole.STUDENT, id=student.id)


@pytest.fixture
def open_slot(db, teacher) -> Slot:
    slot = Slot(teacher_id=teacher.id, slot_date=CLASS_DATE, start_time=CLASS_TIME, available=True)
    db.add(slot)
    db.commit()
    return slot


@pytest.fixture
def notifications(db):
    """Return a callable listing notifications, optionally for one recipient."""

    def _list(recipient_id=None):
        db.expire_all()
        query = db.query(Notification)
        if recipient_id is not None:
            query = query.filter(Notification.recipient_id == recipient_id)
        return query.order_by(Notification.created_at).all()

    return _list


@pytest.fixture
def client(session_factory, notifier):
    """TestClient bound to the per-test database."""

    def _get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[dependency_get_db] = _get_db
    app.dependency_overrides[get_notification_service] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
