from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
import logging

from ..models.doctor import Doctor, DoctorStatus
from ..core.config import settings
from ..core.exceptions import EmailConfigurationError
from ..core.security import (
    verify_password, get_password_hash, generate_doctor_id,
    generate_otp, verify_otp
)
from ..core.session import SessionStore
from ..schemas.auth import DoctorRegister, DoctorLogin
from .email_service import DeliveryResult, SMTPEmailChannel
from .email_templates import render_otp

logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "otp:"
OTP_ATTEMPTS_KEY_PREFIX = "otp_attempts:"
MAX_DOCTOR_ID_ATTEMPTS = 5

class AuthService:
    def __init__(self, db: Session, redis_client=None):
        self.db = db
        self.redis = redis_client

    def register_doctor(self, doctor_data: DoctorRegister) -> Doctor:
        """Register a new doctor awaiting admin approval."""
        # Check if doctor already exists
        existing_doctor = self.db.query(Doctor).filter(
            Doctor.email == doctor_data.email
        ).first()

        if existing_doctor:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Doctor with this email already exists"
            )

        new_doctor = Doctor(
            doctor_id=self._unique_doctor_id(),
            name=doctor_data.name,
            email=doctor_data.email,
            password_hash=get_password_hash(doctor_data.password),
            phone=doctor_data.phone,
            gender=doctor_data.gender,
            specialization=doctor_data.specialization,
            location=doctor_data.location,
            status=DoctorStatus.PENDING
        )

        self.db.add(new_doctor)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Doctor with this email already exists"
            )
        self.db.refresh(new_doctor)

        logger.info(f"Registered doctor {new_doctor.doctor_id} (pending approval)")
        return new_doctor

    def authenticate_doctor(self, login_data: DoctorLogin) -> Doctor:
        """Check credentials and approval status."""
        doctor = self.db.query(Doctor).filter(
            Doctor.email == login_data.email
        ).first()

        if not doctor or not verify_password(login_data.password, doctor.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if doctor.status == DoctorStatus.REJECTED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your registration has been rejected. Please contact the administrator."
            )

        if doctor.status != DoctorStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your account is pending approval. Please wait for admin approval."
            )

        return doctor

    def start_session(self, doctor: Doctor) -> str:
        """Create a server-side session and return the signed cookie value."""
        return SessionStore(self.redis).create(doctor.doctor_id, doctor.email)

    def end_session(self, session_id: str) -> bool:
        return SessionStore(self.redis).destroy(session_id)

    def request_otp(self, email: str, email_channel: SMTPEmailChannel) -> DeliveryResult:
        """Generate an OTP for ``email``, store it and mail it."""
        otp = generate_otp()
        self.redis.setex(f"{OTP_KEY_PREFIX}{email}", settings.OTP_EXPIRE_SECONDS, otp)
        self.redis.delete(f"{OTP_ATTEMPTS_KEY_PREFIX}{email}")

        rendered = render_otp(otp, valid_minutes=settings.OTP_EXPIRE_SECONDS // 60)
        try:
            result = email_channel.send(email, rendered.subject, rendered.html_body, rendered.text_body)
        except EmailConfigurationError as exc:
            logger.error(f"Email configuration error: {exc}")
            self.redis.delete(f"{OTP_KEY_PREFIX}{email}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Email service is not configured"
            )

        if not result.delivered:
            self.redis.delete(f"{OTP_KEY_PREFIX}{email}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=result.error or "Failed to send OTP email."
            )

        logger.info(f"OTP email sent to {email}")
        return result

    def verify_otp(self, email: str, otp: str) -> bool:
        """Check an OTP; a matching OTP is consumed."""
        key = f"{OTP_KEY_PREFIX}{email}"
        attempts_key = f"{OTP_ATTEMPTS_KEY_PREFIX}{email}"
        stored_otp = self.redis.get(key)

        if stored_otp is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired OTP"
            )

        if not verify_otp(otp, stored_otp):
            attempts = self._record_failed_otp_attempt(attempts_key)
            if attempts >= settings.OTP_MAX_ATTEMPTS:
                # Burn the OTP so the remaining guesses are worthless
                self.redis.delete(key)
                self.redis.delete(attempts_key)
                logger.warning(f"Too many incorrect OTP attempts for {email}; OTP revoked")
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Too many incorrect attempts. Please request a new OTP."
                )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired OTP"
            )

        self.redis.delete(key)
        self.redis.delete(attempts_key)
        return True

    def _record_failed_otp_attempt(self, attempts_key: str) -> int:
        current = self.redis.get(attempts_key)
        if current is None:
            self.redis.setex(attempts_key, settings.OTP_EXPIRE_SECONDS, 1)
            return 1
        return self.redis.incr(attempts_key)

    def _unique_doctor_id(self) -> str:
        for _ in range(MAX_DOCTOR_ID_ATTEMPTS):
            candidate = generate_doctor_id()
            taken = self.db.query(Doctor.id).filter(
                Doctor.doctor_id == candidate
            ).first()
            if not taken:
                return candidate
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not allocate a doctor ID"
        )
