import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.services.data_sources import FeeSummary


class FakeAcademySources:
    """In-memory stand-in for every registry; records how often each one is read."""

    def __init__(self):
        self.students = []
        self.enrollments = []
        self.fees = {}
        self.orientation = {}
        self.assignments = []
        self.calls = {}
        self.failing = set()

    def _record(self, name):
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.failing:
            raise ConnectionError(f"{name} is down")

    def list_students(self, statuses):
        self._record("list_students")
        return [student for student in self.students if student.status in set(statuses)]

    def enrollments_for_students(self, student_ids, date_range):
        self._record("enrollments_for_students")
        wanted = set(student_ids)
        return [item for item in self.enrollments if item.student_id in wanted and item.date_range.overlaps(date_range)]

    def fee_summaries(self, student_ids, today):
        self._record("fee_summaries")
        return {student_id: self.fees[student_id] for student_id in student_ids if student_id in self.fees}

    def orientation_acceptance(self, student_ids):
        self._record("orientation_acceptance")
        return {student_id: self.orientation[student_id] for student_id in student_ids if student_id in self.orientation}

    def assignments_for_faculty(self, faculty_ids, date_range):
        self._record("assignments_for_faculty")
        wanted = set(faculty_ids)
        return [item for item in self.assignments if item.faculty_id in wanted]

    def accept_orientation(self, *student_ids, language="english"):
        for student_id in student_ids:
            self.orientation[student_id] = {language: True}

    def clear_fees(self, *student_ids):
        for student_id in student_ids:
            self.fees[student_id] = FeeSummary()


@pytest.fixture()
def fake_sources():
    return FakeAcademySources()


@pytest.fixture()
def session_factory():
    engine = create_engine( #create isolate DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture() #test client
def client(session_factory): #fake http client
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
