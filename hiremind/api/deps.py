"""Request-scoped dependencies: DB session, current user, admin gate."""

from __future__ import annotations

from typing import Iterator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from hiremind.config import admin_emails, is_production
from hiremind.db import User, session_scope
from hiremind.errors import AuthenticationError, PermissionDenied
from hiremind.orchestrator import RecommendationService
from hiremind.security import verify_token
from hiremind.stores import ResumeStore, UserStore


def get_session() -> Iterator[Session]:
    with session_scope() as session:
        yield session


def get_current_user(
    authorization: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> User:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Access token required")

    user = UserStore(session).get(verify_token(token.strip()))
    if user is None:
        raise AuthenticationError("User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Maintenance endpoints are open to any user outside production."""
    if is_production() and user.email.lower() not in admin_emails():
        raise PermissionDenied("Admin access required")
    return user


def get_resumes(session: Session = Depends(get_session)) -> ResumeStore:
    return ResumeStore(session)


def get_service(request: Request) -> RecommendationService:
    return request.app.state.service
