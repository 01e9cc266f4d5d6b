"""
Account operations behind the /auth routes: registration, password login,
logout and token refresh. Every function takes the database session and
the caller's data explicitly.
"""

import logging
from typing import Any, Mapping, Optional, Tuple

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from todo_api.auth import create_access_token, invalidate_token, refresh_token
from todo_api.errors import InvalidCredentials, Unauthenticated, ValidationError, validation_error_from_pydantic
from todo_api.models import User
from todo_api.schemas import EMAIL_TAKEN, LoginRequest, RegisterRequest
from todo_api.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email.lower())).first()


def email_taken(session: Session, email: str) -> bool:
    return get_user_by_email(session, email) is not None


def register(session: Session, payload: Mapping[str, Any]) -> Tuple[User, str]:
    """
    Validates a registration body, stores the new user and issues a token.

    Field problems, including an email that is already registered, are
    reported together and nothing is written.
    """
    try:
        data = RegisterRequest.model_validate(
            payload, context={"email_taken": lambda email: email_taken(session, email)}
        )
    except pydantic.ValidationError as e:
        raise validation_error_from_pydantic(e) from e

    user = User(
        name=data.name,
        email=data.email,
        hashed_password=get_password_hash(data.password),
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same email
        session.rollback()
        raise ValidationError({"email": [EMAIL_TAKEN]}) from e
    session.refresh(user)

    logger.info("Registered user %s", user.id)
    return user, create_access_token(user.id)


def login(session: Session, credentials: LoginRequest) -> Tuple[User, str]:
    """
    Checks an email/password pair and issues a token. Unknown emails and wrong
    passwords fail the same way.
    """
    user = get_user_by_email(session, credentials.email)
    if not verify_password(credentials.password, user.hashed_password if user else None):
        logger.warning("Failed login attempt")
        raise InvalidCredentials()

    logger.info("User %s logged in", user.id)
    return user, create_access_token(user.id)


def logout(session: Session, token: str) -> None:
    invalidate_token(session, token)
    logger.info("Token revoked on logout")


def refresh(session: Session, token: str) -> Tuple[User, str]:
    user_id, new_token = refresh_token(session, token)
    user = session.get(User, user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    logger.info("Refreshed token for user %s", user_id)
    return user, new_token
