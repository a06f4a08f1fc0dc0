"""
Registration portal - test configuration and fixtures
"""
import os
from typing import Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["MAIL_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"

from portal.main import app
from portal.database.config.db import Base, get_db
from portal.database.immutability import register_immutability_listeners
from portal.database.models import Faculty, Program, User, UserRole
from portal.utils.auth import get_password_hash
from portal.utils.documents import LocalDocumentStore, get_document_store
from portal.utils.mailer import RegistrationMailer
from portal.workflow.dispatcher import NotificationDispatcher, get_dispatcher
from factories import TEST_PASSWORD

fake = Faker()

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

register_immutability_listeners()


class RecordingMailer(RegistrationMailer):
    """Mailer that records every email instead of talking to SMTP."""

    def __init__(self):
        self.sent = []

    async def send_submission_received_email(self, recipient, context):
        self.sent.append(("submission_received", recipient, context))
        return True

    async def send_approval_email(self, stage, recipient, context):
        self.sent.append(("approval", recipient, context))
        return True

    async def send_final_approval_email(self, recipient, context):
        self.sent.append(("final_approval", recipient, context))
        return True

    async def send_rejection_email(self, recipient, reason, context):
        self.sent.append(("rejection", recipient, context))
        return True

    def kinds(self):
        return [kind for kind, _, _ in self.sent]


@pytest.fixture(scope="session")
def password_hash() -> str:
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def dispatcher(mailer: RecordingMailer) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory=TestSessionLocal, mailer=mailer)


@pytest.fixture
def document_store(tmp_path) -> LocalDocumentStore:
    return LocalDocumentStore(root=str(tmp_path / "documents"))


@pytest.fixture
def client(db, dispatcher, document_store) -> Generator[TestClient, None, None]:
    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_document_store] = lambda: document_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Opens extra sessions on the test database, one per concurrent actor."""
    return TestSessionLocal


@pytest.fixture
def database_outage(client):
    """Every flush made while serving a request fails as if the database went away."""
    def fail_flush(session, flush_context, instances):
        raise OperationalError("INSERT", {}, Exception("server closed the connection unexpectedly"))

    def unavailable_get_db():
        session = TestSessionLocal()
        event.listen(session, "before_flush", fail_flush)
        try:
            yield session
        finally:
            session.close()

    working_get_db = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = unavailable_get_db
    yield
    app.dependency_overrides[get_db] = working_get_db


# ==================== ORGANISATION ====================

@pytest.fixture
def faculty(db) -> Faculty:
    faculty = Faculty(name="Faculty of Information & Communication Technology", code="FICT")
    db.add(faculty)
    db.commit()
    return faculty


@pytest.fixture
def other_faculty(db) -> Faculty:
    faculty = Faculty(name="Faculty of Design Innovation", code="FDI")
    db.add(faculty)
    db.commit()
    return faculty


@pytest.fixture
def program(db, faculty) -> Program:
    program = Program(faculty_id=faculty.id, name="BSc Software Engineering", code="BSE")
    db.add(program)
    db.commit()
    return program


# ==================== USERS ====================

@pytest.fixture
def make_user(db, password_hash):
    def _make_user(role: UserRole, faculty=None, program=None, **kwargs) -> User:
        user = User(
            email=kwargs.pop("email", fake.unique.email()),
            full_name=kwargs.pop("full_name", fake.name()),
            password_hash=password_hash,
            verified=kwargs.pop("verified", True),
            role=role.value,
            faculty_id=faculty.id if faculty else None,
            program_id=program.id if program else None,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def student(make_user, faculty, program) -> User:
    return make_user(UserRole.STUDENT, faculty, program, student_number="110001", current_year=2)


@pytest.fixture
def year_leader(make_user, faculty) -> User:
    return make_user(UserRole.YEAR_LEADER, faculty)


@pytest.fixture
def other_year_leader(make_user, other_faculty) -> User:
    return make_user(UserRole.YEAR_LEADER, other_faculty)


@pytest.fixture
def finance_officer(make_user) -> User:
    return make_user(UserRole.FINANCE_OFFICER)


@pytest.fixture
def registrar(make_user) -> User:
    return make_user(UserRole.REGISTRAR)


@pytest.fixture
def system_admin(make_user) -> User:
    return make_user(UserRole.SYSTEM_ADMIN)
