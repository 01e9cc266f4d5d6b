"""
Authentication endpoints: register, login, current user, logout and refresh.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from sqlmodel import Session

from todo_api import users
from todo_api.auth import get_bearer_token, get_current_user
from todo_api.database import get_session
from todo_api.models import User
from todo_api.schemas import (
    AuthResponse,
    Authorization,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    UserRead,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_session)):
    """
    Create an account and return it with a bearer token.

    The body is validated as a RegisterRequest inside users.register so that
    the email uniqueness check is reported together with the other fields.
    """
    user, token = users.register(db, payload)
    return AuthResponse(
        message="User successfully registered",
        user=UserRead.model_validate(user),
        authorization=Authorization(token=token),
    )


@router.post("/login", response_model=AuthResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_session)):
    user, token = users.login(db, credentials)
    return AuthResponse(
        message="Login successful",
        user=UserRead.model_validate(user),
        authorization=Authorization(token=token),
    )


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return UserResponse(user=UserRead.model_validate(current_user))


@router.post("/logout", response_model=MessageResponse, dependencies=[Depends(get_current_user)])
def logout(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_session),
):
    users.logout(db, token)
    return MessageResponse(message="Successfully logged out")


@router.post("/refresh", response_model=RefreshResponse, dependencies=[Depends(get_current_user)])
def refresh(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_session),
):
    user, new_token = users.refresh(db, token)
    return RefreshResponse(user=UserRead.model_validate(user), authorization=Authorization(token=new_token))
