from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from pydantic import BaseModel
import secrets
import string

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DOCTOR_ID_PREFIX = "DOC"
DOCTOR_ID_ALPHABET = string.ascii_uppercase + string.digits

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    sid: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None  # always "session" for cookies we issue

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# Identifier utilities
def generate_doctor_id(length: int = 6) -> str:
    """Generate a public doctor identifier such as ``DOC7K2Q9A``."""
    suffix = "".join(secrets.choice(DOCTOR_ID_ALPHABET) for _ in range(length))
    return f"{DOCTOR_ID_PREFIX}{suffix}"

def generate_session_id() -> str:
    return secrets.token_urlsafe(32)

def generate_otp(digits: int = 6) -> str:
    """Generate a zero-padded numeric one-time password."""
    return str(secrets.randbelow(10 ** digits)).zfill(digits)

def verify_otp(otp: str, stored_otp: str) -> bool:
    return secrets.compare_digest(otp, stored_otp)

# Session cookie utilities
def create_session_token(
    session_id: str,
    doctor_id: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Sign the session cookie value."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.SESSION_EXPIRE_MINUTES
        )

    to_encode = {
        "sub": doctor_id,
        "sid": session_id,
        "exp": expire,
        "token_type": "session"
    }

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode a session cookie."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )

        return TokenPayload(**payload)

    except JWTError:
        return None

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Please log in to continue"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
