"""Server-side doctor sessions stored in Redis.

The browser only holds a signed cookie naming the session; the doctor
identity lives under ``session:{sid}`` until logout or expiry.
"""
import json
import logging
from typing import Optional

from pydantic import BaseModel

from .config import settings
from .security import create_session_token, generate_session_id, verify_token

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionData(BaseModel):
    session_id: str
    doctor_id: str
    email: str


class SessionStore:
    def __init__(self, redis_client, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.SESSION_EXPIRE_MINUTES * 60

    def create(self, doctor_id: str, email: str) -> str:
        """Start a session and return the signed cookie value."""
        session_id = generate_session_id()
        self.redis.setex(
            f"{SESSION_KEY_PREFIX}{session_id}",
            self.ttl_seconds,
            json.dumps({"doctor_id": doctor_id, "email": email}),
        )
        logger.info(f"Session started for doctor {doctor_id}")
        return create_session_token(session_id, doctor_id)

    def resolve(self, cookie_value: Optional[str]) -> Optional[SessionData]:
        """Return the live session behind a cookie, or None."""
        if not cookie_value:
            return None

        payload = verify_token(cookie_value)
        if not payload or payload.token_type != "session" or not payload.sid:
            return None

        raw = self.redis.get(f"{SESSION_KEY_PREFIX}{payload.sid}")
        if raw is None:
            return None

        data = json.loads(raw)
        if data.get("doctor_id") != payload.sub:
            return None

        return SessionData(
            session_id=payload.sid,
            doctor_id=data["doctor_id"],
            email=data["email"],
        )

    def destroy(self, session_id: str) -> bool:
        return bool(self.redis.delete(f"{SESSION_KEY_PREFIX}{session_id}"))
