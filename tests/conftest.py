import uuid

import mongomock
import pytest
from fastapi.testclient import TestClient

from lms.config.database import ensure_indexes
from lms.repositories.user_repository import UserRepository
from lms.services.course_service import CourseService
from lms.services.enrollment_service import EnrollmentService
from lms.utils.permissions import Caller, Role


class InMemorySessions:
    """Mismo contrato que SessionRepository, sin Redis."""

    ttl_seconds = 3600

    def __init__(self):
        self.tokens = {}

    def create(self, user_id: str) -> str:
        token = uuid.uuid4().hex
        self.tokens[token] = user_id
        return token

    def resolve(self, token: str):
        return self.tokens.get(token)

    def delete(self, token: str) -> None:
        self.tokens.pop(token, None)


@pytest.fixture
def db():
    database = mongomock.MongoClient()["lms_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def service(db) -> EnrollmentService:
    return EnrollmentService(db)


@pytest.fixture
def courses(db) -> CourseService:
    return CourseService(db)


@pytest.fixture
def make_user(db):
    users = UserRepository(db)

    def _make_user(email: str = "student@example.edu", role: Role = Role.STUDENT) -> Caller:
        user = users.create_user(email.split("@")[0], email, "not-a-real-hash", role.value)
        return Caller(user["id"], role)

    return _make_user


@pytest.fixture
def make_course(courses):
    def _make_course(title: str = "Intro to Python", level: str = "Beginner", price: float = 49.99) -> str:
        course = courses.create(
            {
                "title": title,
                "description": f"{title} course",
                "instructor": "Ada Lovelace",
                "thumbnail": None,
                "duration": "4 weeks",
                "level": level,
                "price": price,
            }
        )
        return course["id"]

    return _make_course


@pytest.fixture
def sessions() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def client(db, sessions, monkeypatch: pytest.MonkeyPatch):
    from main import app
    from lms.api import dependencies
    from lms.services.auth_service import AuthService

    monkeypatch.setattr("lms.api.middleware.session_middleware.get_session_repository", lambda: sessions)
    app.dependency_overrides[dependencies.get_enrollment_service] = lambda: EnrollmentService(db)
    app.dependency_overrides[dependencies.get_course_service] = lambda: CourseService(db)
    app.dependency_overrides[dependencies.get_auth_service] = lambda: AuthService(db, sessions)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(sessions):
    def _auth_headers(caller: Caller) -> dict:
        return {"Authorization": f"Bearer {sessions.create(caller.user_id)}"}

    return _auth_headers
