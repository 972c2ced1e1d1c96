"""
Shared fixtures.

Everything runs against an in-memory SQLite database shared through a
StaticPool, so API requests, background AI tasks and direct service calls all
see the same data.
"""
import os
import tempfile

# must be set before assignment_eval.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["TASK_QUEUE_BACKEND"] = "inline"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="assignment-eval-uploads-"))
os.environ.pop("HF_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assignment_eval.core.config import settings
from assignment_eval.core.security import ActorContext, create_access_token
from assignment_eval.db import session as db_session_module
from assignment_eval.db.base import Base
from assignment_eval.db.session import get_db
from assignment_eval.main import app
from assignment_eval.models.enums import UserRole
from assignment_eval.models.rubric import Rubric
from assignment_eval.models.submission import Submission, SubmissionVersion
from assignment_eval.models.user import User
from assignment_eval.services import feedback_engine

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def TestingSessionLocal(engine, monkeypatch):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    # the AI worker task opens its own session through this name
    monkeypatch.setattr(db_session_module, "SessionLocal", factory)
    return factory


@pytest.fixture(scope="function")
def db_session(TestingSessionLocal):
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """The engine never reaches Hugging Face in tests."""
    def _offline(model, inputs, parameters=None):
        raise feedback_engine.EngineFailure("network disabled in tests")

    monkeypatch.setattr(feedback_engine, "call_inference_api", _offline)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(target))
    return target


def _make_user(db, *, email, name, role):
    user = User(
        email=email,
        password_hash="$2b$12$hashed_password_001",
        name=name,
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def student(db_session):
    return _make_user(db_session, email="student@example.com", name="Sam Student", role=UserRole.STUDENT)


@pytest.fixture
def other_student(db_session):
    return _make_user(db_session, email="student2@example.com", name="Riley Student", role=UserRole.STUDENT)


@pytest.fixture
def teacher(db_session):
    return _make_user(db_session, email="teacher@example.com", name="Tao Teacher", role=UserRole.TEACHER)


@pytest.fixture
def other_teacher(db_session):
    return _make_user(db_session, email="teacher2@example.com", name="Kim Teacher", role=UserRole.TEACHER)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)


@pytest.fixture
def actor_of():
    return ActorContext.from_user


@pytest.fixture
def make_rubric(db_session):
    def _make(owner, *, is_public=True, title="Essay rubric"):
        rubric = Rubric(
            teacher_id=owner.id,
            teacher_name=owner.name,
            title=title,
            description="",
            criteria=[
                {"id": "c1", "name": "Argument", "description": "Strength of argument", "max_score": 60, "weight": 60},
                {"id": "c2", "name": "Style", "description": "Writing style", "max_score": 40, "weight": 40},
            ],
            max_total_score=100,
            is_public=is_public,
        )
        db_session.add(rubric)
        db_session.commit()
        db_session.refresh(rubric)
        return rubric

    return _make


@pytest.fixture
def make_submission(db_session):
    def _make(owner, *, status="draft", content="First draft of my essay.", rubric_id=None, title="My essay"):
        submission = Submission(
            student_id=owner.id,
            student_name=owner.name,
            title=title,
            description="",
            content=content,
            status=status,
            current_version=1,
            rubric_id=rubric_id,
        )
        submission.versions.append(
            SubmissionVersion(version=1, content=content, created_by=owner.id)
        )
        db_session.add(submission)
        db_session.commit()
        db_session.refresh(submission)
        return submission

    return _make


@pytest.fixture
def client(TestingSessionLocal):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
