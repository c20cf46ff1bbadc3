import pytest

from medicare.core.config import settings
from medicare.core.database import redis_client
from medicare.core.exceptions import EmailConfigurationError
from medicare.models.doctor import Doctor, DoctorStatus
from medicare.services.email_service import DeliveryErrorKind, DeliveryResult

from .conftest import TEST_PASSWORD, create_doctor, login

# Test data
test_doctor_data = {
    "name": "Alice Grey",
    "email": "alice@example.com",
    "password": "TestPassword123",
    "phone": "555-0111",
    "gender": "female",
    "specialization": "Cardiology",
    "location": "Seattle"
}


class TestRegistration:

    def test_register_doctor(self, client, db_session):
        """New doctors are stored as pending with normalized fields."""
        response = client.post("/api/v1/auth/register", json=test_doctor_data)
        assert response.status_code == 201

        data = response.json()
        assert data["success"] is True
        assert data["doctorId"].startswith("DOC")
        assert "password" not in data

        doctor = db_session.query(Doctor).filter(Doctor.email == "alice@example.com").one()
        assert doctor.status == DoctorStatus.PENDING
        assert doctor.doctor_id == data["doctorId"]
        assert doctor.specialization == "cardiology"
        assert doctor.location == "seattle"
        assert doctor.password_hash != test_doctor_data["password"]

    def test_register_duplicate_email(self, client):
        client.post("/api/v1/auth/register", json=test_doctor_data)

        response = client.post("/api/v1/auth/register", json=test_doctor_data)
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Doctor with this email already exists"
        }

    def test_register_invalid_password(self, client):
        invalid_data = test_doctor_data.copy()
        invalid_data["password"] = "weak"

        response = client.post("/api/v1/auth/register", json=invalid_data)
        assert response.status_code == 422

    def test_register_rate_limited(self, client):
        for i in range(settings.RATE_LIMIT_REQUESTS):
            data = test_doctor_data.copy()
            data["email"] = f"doctor{i}@example.com"
            assert client.post("/api/v1/auth/register", json=data).status_code == 201

        data = test_doctor_data.copy()
        data["email"] = "one-too-many@example.com"
        response = client.post("/api/v1/auth/register", json=data)
        assert response.status_code == 429


class TestLogin:

    def test_login_success_sets_session_cookie(self, client, doctor):
        response = login(client)
        assert response.status_code == 200

        data = response.json()
        assert data["doctorId"] == "d1"
        assert data["redirectUrl"] == "/doctor/dashboard"
        assert settings.SESSION_COOKIE_NAME in response.cookies

    def test_login_pending_doctor(self, client, db_session):
        """Registered doctors cannot log in until approved."""
        create_doctor(db_session, doctor_id="d9", email="pending@example.com",
                      status=DoctorStatus.PENDING)

        response = login(client, email="pending@example.com")
        assert response.status_code == 403
        assert "pending approval" in response.json()["message"]

    def test_login_rejected_doctor(self, client, db_session):
        create_doctor(db_session, doctor_id="d8", email="rejected@example.com",
                      status=DoctorStatus.REJECTED)

        response = login(client, email="rejected@example.com")
        assert response.status_code == 403
        assert "rejected" in response.json()["message"]

    def test_login_wrong_password(self, client, doctor):
        response = login(client, password="wrongpassword")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_login_unknown_email(self, client, test_db):
        response = login(client, email="nobody@example.com")
        assert response.status_code == 401


class TestSession:

    def test_get_current_doctor(self, logged_in_client):
        response = logged_in_client.get("/api/v1/auth/me")
        assert response.status_code == 200

        doctor = response.json()["doctor"]
        assert doctor["doctorId"] == "d1"
        assert doctor["email"] == "smith@example.com"
        assert "passwordHash" not in doctor

    def test_requires_session(self, client, test_db):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_forged_cookie_rejected(self, client, doctor):
        client.cookies.set(settings.SESSION_COOKIE_NAME, "not-a-real-session")
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_logout_destroys_session(self, logged_in_client):
        cookie = logged_in_client.cookies.get(settings.SESSION_COOKIE_NAME)

        response = logged_in_client.post("/api/v1/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert not any(key.startswith("session:") for key in redis_client.data)

        # Replaying the old cookie must not work either
        logged_in_client.cookies.set(settings.SESSION_COOKIE_NAME, cookie)
        assert logged_in_client.get("/api/v1/auth/me").status_code == 401

    def test_session_revoked_when_doctor_no_longer_approved(self, logged_in_client, db_session, doctor):
        doctor.status = DoctorStatus.REJECTED
        db_session.commit()

        response = logged_in_client.get("/api/v1/auth/me")
        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Doctor account is not approved"
        }


class TestOTP:

    def test_verify_locks_out_after_repeated_wrong_guesses(self, client, test_db):
        """Repeated wrong guesses revoke the OTP so it cannot be brute forced."""
        client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        otp = redis_client.get("otp:new@example.com")
        wrong = "000000" if otp != "000000" else "111111"

        for _ in range(settings.OTP_MAX_ATTEMPTS - 1):
            response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": wrong})
            assert response.status_code == 400

        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": wrong})
        assert response.status_code == 429
        assert redis_client.get("otp:new@example.com") is None

        # The real OTP is no longer accepted either
        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 400

    def test_new_otp_resets_failed_attempts(self, client, test_db):
        client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        otp = redis_client.get("otp:new@example.com")
        wrong = "000000" if otp != "000000" else "111111"
        for _ in range(settings.OTP_MAX_ATTEMPTS - 1):
            client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": wrong})

        client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        otp = redis_client.get("otp:new@example.com")

        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 200
        assert redis_client.get("otp_attempts:new@example.com") is None

    def test_send_and_verify_otp(self, client, email_channel, test_db):
        response = client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        assert response.status_code == 200

        otp = redis_client.get("otp:new@example.com")
        assert otp is not None and len(otp) == 6
        assert len(email_channel.sent) == 1
        sent = email_channel.sent[0]
        assert sent["to"] == "new@example.com"
        assert otp in sent["html_body"]
        assert otp in sent["text_body"]

        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 200

        # OTPs are single use
        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 400

    def test_verify_wrong_otp(self, client, test_db):
        client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        stored = redis_client.get("otp:new@example.com")
        wrong = "000000" if stored != "000000" else "111111"

        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": wrong})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired OTP"

    def test_send_otp_without_mail_configuration(self, client, email_channel, test_db):
        email_channel.error = EmailConfigurationError("SMTP_USER is not set in environment variables")

        response = client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        assert response.status_code == 503
        assert redis_client.get("otp:new@example.com") is None

    def test_send_otp_delivery_failure(self, client, email_channel, test_db):
        email_channel.result = DeliveryResult(
            delivered=False,
            error_kind=DeliveryErrorKind.AUTHENTICATION_FAILURE,
            error="Email authentication failed. Please check SMTP_USER and SMTP_PASSWORD."
        )

        response = client.post("/api/v1/auth/otp/send", json={"email": "new@example.com"})
        assert response.status_code == 502
        assert "authentication failed" in response.json()["message"]

    @pytest.mark.parametrize("otp", ["12345", "abcdef", "1234567"])
    def test_verify_rejects_malformed_otp(self, client, test_db, otp):
        response = client.post("/api/v1/auth/otp/verify", json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 422
