import os

# must be set before portal.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from portal.auth.jwt_handler import token_for
from portal.database import Base, get_db
from portal.faculty.models import User, ROLE_ADMIN, ROLE_FACULTY
from portal.main import app
import portal.salary.models  # noqa: F401


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine, tmp_path, monkeypatch):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr("portal.faculty.router.UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr("portal.salary.router.UPLOAD_DIR", tmp_path / "uploads")
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username, password="secret", role=ROLE_FACULTY, name=None, **extra):
        user = User(
            username=username,
            name=name or username.title(),
            role=role,
            password_hash=generate_password_hash(password) if password else None,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", password="adminpass", role=ROLE_ADMIN, name="Alice Admin")


@pytest.fixture
def faculty_user(make_user):
    return make_user("F001", password="facpass", name="Ravi Kumar", department="CSE", designation="Professor")


def _headers(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def faculty_headers(faculty_user):
    return _headers(faculty_user)
