import os

# Must be set before the application modules are imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test_medicare.db")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from medicare.main import app
from medicare.api.deps import get_email_channel, get_media_service
from medicare.core.database import Base, SessionLocal, engine, get_db, redis_client
from medicare.core.exceptions import MediaUploadError
from medicare.core.security import get_password_hash
from medicare.models.appointment import Appointment, AppointmentStatus
from medicare.models.doctor import Doctor, DoctorStatus
from medicare.services.email_service import DeliveryResult

TEST_PASSWORD = "TestPassword123"


class FakeEmailChannel:
    """Records messages instead of talking to a mail server."""

    def __init__(self):
        self.sent = []
        self.result = None
        self.error = None

    def send(self, to, subject, html_body, text_body):
        if self.error is not None:
            raise self.error
        self.sent.append({
            "to": to,
            "subject": subject,
            "html_body": html_body,
            "text_body": text_body,
        })
        return self.result or DeliveryResult(delivered=True, message_id="<test@medicare>")


class FakeMediaService:
    def __init__(self):
        self.uploads = []
        self.error = None

    def upload_image(self, content, filename, folder):
        if self.error is not None:
            raise MediaUploadError(self.error)
        self.uploads.append({"filename": filename, "folder": folder, "size": len(content)})
        return f"https://media.example.com/{folder}/{filename}"


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    redis_client.flushdb()
    yield
    Base.metadata.drop_all(bind=engine)
    redis_client.flushdb()


@pytest.fixture
def db_session(test_db):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def email_channel():
    return FakeEmailChannel()


@pytest.fixture
def media_service():
    return FakeMediaService()


@pytest.fixture
def client(test_db, email_channel, media_service):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_channel] = lambda: email_channel
    app.dependency_overrides[get_media_service] = lambda: media_service
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_doctor(db, doctor_id="d1", name="Smith", email="smith@example.com",
                  specialization="Cardiology", status=DoctorStatus.APPROVED):
    doctor = Doctor(
        doctor_id=doctor_id,
        name=name,
        email=email,
        password_hash=get_password_hash(TEST_PASSWORD),
        phone="555-0100",
        gender="female",
        specialization=specialization,
        location="springfield",
        status=status,
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def create_appointment(db, appointment_id="a1", doctor_id="d1", patient_email="p@x.com",
                       patient_name="Jane Doe", description="Chest pain", created_at=None):
    appointment = Appointment(
        id=appointment_id,
        doctor_id=doctor_id,
        patient_name=patient_name,
        patient_email=patient_email,
        description=description,
        status=AppointmentStatus.REQUESTED,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


@pytest.fixture
def doctor(db_session):
    return create_doctor(db_session)


@pytest.fixture
def appointment(db_session, doctor):
    return create_appointment(db_session)


def login(client, email="smith@example.com", password=TEST_PASSWORD):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


@pytest.fixture
def logged_in_client(client, doctor):
    response = login(client)
    assert response.status_code == 200
    return client


def days_ago(days):
    return datetime.utcnow() - timedelta(days=days)
