import secrets
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import Depends, Request, Response

from aurora.core.config import settings
from aurora.core.logger import get_logger
from aurora.models.session import VisitorSession

logger = get_logger("sessions")


def generate_session_id() -> str:
    return f"sess_{int(time.time() * 1000)}_{secrets.token_urlsafe(18)}"


class SessionStore:
    """Process-wide map of session id to visitor state. No expiry."""

    def __init__(self):
        self._sessions: Dict[str, VisitorSession] = {}
        self._lock = threading.Lock()

    def resolve(self, token: Optional[str]) -> Tuple[str, VisitorSession]:
        """Return the live session for ``token`` or mint a fresh one."""
        with self._lock:
            if token and token in self._sessions:
                return token, self._sessions[token]

            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()
            session = VisitorSession(session_id)
            self._sessions[session_id] = session

        logger.debug("Created session %s", session_id)
        return session_id, session

    def get(self, session_id: str) -> Optional[VisitorSession]:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def set_session_cookie(response: Response, session_id: str):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )


def get_visitor_session(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store)
) -> VisitorSession:
    """Resolve the visitor from the session cookie and hand the id back as an HTTP-only cookie."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    session_id, session = store.resolve(token)
    request.state.session_id = session_id
    set_session_cookie(response, session_id)
    return session
