from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.database import get_db, get_redis
from ...core.session import SessionStore
from ...api.deps import get_current_doctor, get_email_channel, rate_limit_check
from ...services.auth_service import AuthService
from ...services.email_service import SMTPEmailChannel
from ...schemas.auth import (
    DoctorRegister, DoctorLogin, RegisterResponse, LoginResponse,
    OTPRequest, OTPVerify
)
from ...schemas.base import MessageResponse
from ...schemas.doctor import DoctorResponse, ProfileResponse
from ...models.doctor import Doctor

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    doctor_data: DoctorRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new doctor. The account stays pending until an admin approves it."""
    auth_service = AuthService(db)
    doctor = auth_service.register_doctor(doctor_data)

    return RegisterResponse(
        message="Doctor registered successfully! Please wait for admin approval.",
        doctor_id=doctor.doctor_id
    )

@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: DoctorLogin,
    response: Response,
    db: Session = Depends(get_db),
    redis_client = Depends(get_redis)
):
    """Authenticate an approved doctor and start a session."""
    auth_service = AuthService(db, redis_client)
    doctor = auth_service.authenticate_doctor(login_data)
    cookie_value = auth_service.start_session(doctor)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=cookie_value,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax"
    )

    return LoginResponse(message="Login successful", doctor_id=doctor.doctor_id)

@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    redis_client = Depends(get_redis)
):
    """End the current session, if any."""
    session = SessionStore(redis_client).resolve(
        request.cookies.get(settings.SESSION_COOKIE_NAME)
    )
    if session:
        AuthService(db, redis_client).end_session(session.session_id)

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")

@router.get("/me", response_model=ProfileResponse)
async def get_current_doctor_info(
    current_doctor: Doctor = Depends(get_current_doctor)
):
    """Get the logged-in doctor's profile."""
    return ProfileResponse(doctor=DoctorResponse.model_validate(current_doctor))

@router.post("/otp/send", response_model=MessageResponse)
async def send_otp(
    otp_request: OTPRequest,
    db: Session = Depends(get_db),
    redis_client = Depends(get_redis),
    email_channel: SMTPEmailChannel = Depends(get_email_channel),
    _: None = Depends(rate_limit_check)
):
    """Email a one-time password for address verification."""
    auth_service = AuthService(db, redis_client)
    await run_in_threadpool(auth_service.request_otp, otp_request.email, email_channel)

    return MessageResponse(message="OTP sent to your email")

@router.post("/otp/verify", response_model=MessageResponse)
async def verify_otp(
    otp_data: OTPVerify,
    db: Session = Depends(get_db),
    redis_client = Depends(get_redis)
):
    """Check a one-time password."""
    AuthService(db, redis_client).verify_otp(otp_data.email, otp_data.otp)

    return MessageResponse(message="Email verified successfully")
