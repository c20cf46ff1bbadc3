from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import AuthenticationError, AuthorizationError
from ..core.session import SessionData, SessionStore
from ..models.doctor import Doctor, DoctorStatus
from ..services.email_service import SMTPEmailChannel
from ..services.media_service import CloudinaryMediaService

async def get_current_session(
    request: Request,
    redis_client = Depends(get_redis)
) -> SessionData:
    """Resolve the session cookie to a logged-in doctor."""
    cookie_value = request.cookies.get(settings.SESSION_COOKIE_NAME)
    session = SessionStore(redis_client).resolve(cookie_value)
    if not session:
        raise AuthenticationError()
    return session

async def get_current_doctor(
    session: SessionData = Depends(get_current_session),
    db: Session = Depends(get_db)
) -> Doctor:
    """Load the logged-in doctor; the account must still be approved."""
    doctor = db.query(Doctor).filter(Doctor.doctor_id == session.doctor_id).first()
    if not doctor:
        raise AuthenticationError("Doctor account not found")

    if doctor.status != DoctorStatus.APPROVED:
        raise AuthorizationError("Doctor account is not approved")

    return doctor

def get_email_channel(request: Request) -> SMTPEmailChannel:
    """Shared email channel built at startup."""
    channel = getattr(request.app.state, "email_channel", None)
    if channel is None:
        channel = SMTPEmailChannel.from_settings(settings)
        request.app.state.email_channel = channel
    return channel

def get_media_service() -> CloudinaryMediaService:
    return CloudinaryMediaService.from_settings(settings)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic per-IP rate limiting for registration and OTP endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
