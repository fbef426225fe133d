"""Shared fixtures: in-memory database, fake SMTP and S3 backends, API client."""

from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.routes.auth import create_access_token
from app import app
from core.database import get_db
from core.dependencies import get_mailer, get_storage
from core.exceptions import MailDeliveryError
from models.assignment import AssignmentModel
from models.base import Base
from models.submission import SubmissionModel
from schemas.user import Role
from utils import user_manager as user_manager_module
from utils.mailer import Mailer
from utils.storage import S3Storage
from utils.user_manager import UserManager

DEFAULT_PASSWORD = "correct-horse-battery"


class FakeMailer(Mailer):
    """Renders the real templates but records messages instead of sending."""

    def __init__(self):
        super().__init__(
            host="localhost",
            port=25,
            sender="portal@example.com",
            frontend_url="http://frontend.test",
        )
        self.sent = []
        self.failing_recipients = set()

    def send(self, to, subject, html, text="Hello"):
        if to in self.failing_recipients:
            raise MailDeliveryError(f"Mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "html": html})

    def sent_to(self, address):
        return [m for m in self.sent if m["to"] == address]


class FakeS3Client:
    def __init__(self):
        self.put_calls = []

    def put_object(self, **params):
        self.put_calls.append(params)
        return {"ETag": '"etag"'}


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(user_manager_module, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def storage(s3_client):
    return S3Storage(bucket="test-bucket", client=s3_client)


@pytest.fixture
def client(session_factory, mailer, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, mailer):
    manager = UserManager(db, mailer)
    counters = {}

    def _make_user(
        role: Role,
        email: Optional[str] = None,
        staff_id: Optional[str] = None,
        first_name: str = "Ama",
        last_name: str = "Mensah",
        password: str = DEFAULT_PASSWORD,
        change_password: bool = True,
    ):
        prefix = {Role.ADMIN: "ADM", Role.LECTURER: "LEC", Role.STUDENT: "STU"}[role]
        counters[prefix] = counters.get(prefix, 0) + 1
        staff_id = staff_id or f"{prefix}-{counters[prefix]:05d}"
        email = email or f"{staff_id.lower()}@example.com"
        return manager.create_user(
            email=email,
            password=password,
            role=role,
            staff_id=staff_id,
            first_name=first_name,
            last_name=last_name,
            change_password=change_password,
        )

    return _make_user


@pytest.fixture
def make_assignment(db):
    def _make_assignment(lecturer_id: str, code: Optional[str] = "ASS-001", title="Lab Report"):
        now = datetime.utcnow().isoformat()
        model = AssignmentModel(
            assignment_code=code,
            title=title,
            course="Physics",
            description="Write it up",
            deadline=datetime(2030, 3, 5, 12, 0),
            lecturer_id=lecturer_id,
            is_published=code is not None,
            created_at=now,
            updated_at=now,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        return model

    return _make_assignment


@pytest.fixture
def make_submission(db):
    def _make_submission(student_id, assignment_code, email_sent=False, url=None):
        now = datetime.utcnow().isoformat()
        model = SubmissionModel(
            url=url or f"https://test-bucket.s3.amazonaws.com/{student_id}-{assignment_code}",
            student_id=student_id,
            assignment_code=assignment_code,
            email_sent=email_sent,
            created_at=now,
            updated_at=now,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        return model

    return _make_submission


def auth_header(user, expires_delta: Optional[timedelta] = None) -> dict:
    token = create_access_token(
        {"sub": str(user.id), "role": user.role}, expires_delta=expires_delta
    )
    return {"Authorization": f"Bearer {token}"}
