"""Signup, login and profile endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hiremind.db import User
from hiremind.security import issue_token
from hiremind.stores import UserStore
from hiremind.api.deps import get_current_user, get_session
from hiremind.api.schemas import LoginIn, SignupIn

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_for(request: Request, user: User) -> str:
    return issue_token(user.id, ttl_hours=request.app.state.settings["token_ttl_hours"])


@router.post("/signup", status_code=201)
def signup(body: SignupIn, request: Request, session: Session = Depends(get_session)) -> Dict[str, Any]:
    user = UserStore(session).create(body.name, body.email, body.password, body.llm_api_key)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": user.to_dict(), "token": _token_for(request, user)},
    }


@router.post("/login")
def login(body: LoginIn, request: Request, session: Session = Depends(get_session)) -> Dict[str, Any]:
    user = UserStore(session).authenticate(body.email, body.password)
    return {
        "success": True,
        "message": "Logged in successfully",
        "data": {"user": user.to_dict(), "token": _token_for(request, user)},
    }


@router.get("/profile")
def profile(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    data = user.to_dict()
    data["resumes"] = [r.to_dict(with_data=False) for r in user.resumes]
    return {"success": True, "data": data}
