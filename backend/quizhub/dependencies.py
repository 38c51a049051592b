"""
FastAPI dependencies: caller identity, role checks and service wiring.

Sign-in happens at the external auth provider; the gateway in front of
this service forwards the authenticated user as X-User-Id / X-User-Email
headers. Roles come from configuration, never from the email string itself.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from pydantic import BaseModel

from quizhub import config
from quizhub.database import get_session_factory
from quizhub.services.question_repository import QuestionRepository
from quizhub.services.result_recorder import ResultRecorder
from quizhub.services.session_engine import SessionRegistry


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: str = "student"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def resolve_role(email: Optional[str]) -> str:
    """Map an account email to its role using QUIZHUB_ADMIN_EMAILS."""
    if email and email.strip().lower() in config.ADMIN_EMAILS:
        return "admin"
    return "student"


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return CurrentUser(id=x_user_id, email=x_user_email, role=resolve_role(x_user_email))


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def get_repository(session_factory=Depends(get_session_factory)) -> QuestionRepository:
    return QuestionRepository(session_factory)


def get_recorder(session_factory=Depends(get_session_factory)) -> ResultRecorder:
    return ResultRecorder(session_factory)


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions
