"""
Session Management

Handles session creation, validation, and invalidation.
Sessions are stored in memory, per process, and carry a snapshot of the
authenticated user so request authentication needs no database call.
"""

import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

# Session storage (in-memory)
_sessions: Dict[str, "SessionData"] = {}

SESSION_COOKIE_NAME = "quillpress_session"


def session_expiry_hours() -> int:
    return int(os.getenv("SESSION_EXPIRY_HOURS", "24"))


@dataclass
class AuthUser:
    """The authenticated identity attached to a session and a request."""

    id: int
    email: str
    name: str
    role: str

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}


@dataclass
class SessionData:
    """Session data stored server-side."""

    session_id: str
    user: AuthUser
    created_at: datetime
    expires_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def is_expired(self) -> bool:
        """Check if the session has expired."""
        return datetime.now(timezone.utc) > self.expires_at

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "user": self.user.to_dict(),
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "ip_address": self.ip_address,
        }


def generate_session_id() -> str:
    """Generate a secure session ID."""
    return secrets.token_urlsafe(32)


def create_session(
    user: AuthUser,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SessionData:
    """
    Create a new session for a user.

    Args:
        user: The authenticated user
        ip_address: Client IP address (for audit)
        user_agent: Client user agent (for audit)

    Returns:
        SessionData with session_id to be set as cookie
    """
    now = datetime.now(timezone.utc)
    session = SessionData(
        session_id=generate_session_id(),
        user=user,
        created_at=now,
        expires_at=now + timedelta(hours=session_expiry_hours()),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    _sessions[session.session_id] = session
    return session


def validate_session(session_id: str) -> Optional[SessionData]:
    """
    Validate a session ID and return session data.

    Returns:
        SessionData if valid, None if unknown or expired
    """
    session = _sessions.get(session_id)
    if session is None:
        return None

    if session.is_expired():
        del _sessions[session_id]
        return None

    return session


def invalidate_session(session_id: str) -> bool:
    """Invalidate (logout) a session; True if it existed."""
    return _sessions.pop(session_id, None) is not None


def get_active_sessions(user_id: int) -> List[SessionData]:
    """Get all active sessions for a user."""
    return [
        s for s in _sessions.values()
        if s.user.id == user_id and not s.is_expired()
    ]


def invalidate_all_sessions(user_id: int, keep: Optional[str] = None) -> int:
    """
    Invalidate all sessions for a user (logout everywhere).

    Args:
        user_id: Account whose sessions end
        keep: Session id left alive (the caller's own)

    Returns:
        Number of sessions invalidated
    """
    to_remove = [sid for sid, s in _sessions.items() if s.user.id == user_id and sid != keep]
    for sid in to_remove:
        del _sessions[sid]
    return len(to_remove)


def cleanup_expired_sessions() -> int:
    """Remove all expired sessions; returns how many were removed."""
    expired = [sid for sid, s in _sessions.items() if s.is_expired()]
    for sid in expired:
        del _sessions[sid]
    return len(expired)
