import secrets
from datetime import datetime, timedelta
from sqlalchemy import Column, String, DateTime, Boolean
from database.base import Base

class UserSession(Base):
    """
    Server-side login session.
    Access tokens carry the session id, so revoking the row logs the token out.
    """
    __tablename__ = "user_sessions"

    session_id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, default=False, nullable=False)

    def __init__(self, user_id: str, session_lifetime_hours: int = 24):
        now = datetime.utcnow()
        # 32 random bytes, URL-safe base64
        self.session_id = secrets.token_urlsafe(32)
        self.user_id = user_id
        self.created_at = now
        self.expires_at = now + timedelta(hours=session_lifetime_hours)
        self.is_revoked = False

    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

    def revoke(self):
        self.is_revoked = True

    def is_valid(self) -> bool:
        return not self.is_revoked and not self.is_expired()
