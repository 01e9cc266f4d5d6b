"""
Bearer token handling: issuing, verifying, revoking and refreshing JWTs, plus
the FastAPI dependencies that resolve the caller from the Authorization header.

Tokens are stateless except for revocation. Each token carries a random
``jti``; logging out or refreshing writes that ``jti`` to the RevokedToken
table, and verification rejects any token found there. Revocation rows are
purged once the token they block has expired on its own.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import uuid4

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session, select

from todo_api.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from todo_api.database import get_session
from todo_api.errors import Unauthenticated
from todo_api.models import RevokedToken, User, utc_now

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


# ==================== Token Functions ====================

def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "jti": uuid4().hex,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Checks signature and expiry and returns the claims.

    Raises:
        Unauthenticated: if the token is malformed, forged, expired or is
            missing the subject or token id.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        raise Unauthenticated("Invalid or expired token") from e

    if not payload.get("sub") or not payload.get("jti") or "exp" not in payload:
        raise Unauthenticated("Token is missing required claims")
    return payload


def _user_id_from(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise Unauthenticated("Token subject is not a user id") from e


def is_revoked(session: Session, jti: str) -> bool:
    return session.get(RevokedToken, jti) is not None


def verify_token(session: Session, token: str) -> int:
    """
    Returns the user id the token was issued for.
    """
    payload = decode_token(token)
    if is_revoked(session, payload["jti"]):
        logger.debug("Rejected revoked token %s", payload["jti"])
        raise Unauthenticated("Token has been revoked")
    return _user_id_from(payload)


def purge_expired_revocations(session: Session) -> int:
    expired = session.exec(select(RevokedToken).where(RevokedToken.expires_at < utc_now())).all()
    for row in expired:
        session.delete(row)
    return len(expired)


def invalidate_token(session: Session, token: str) -> None:
    """
    Revokes a token until its natural expiry. Revoking the same token twice
    is a no-op.
    """
    payload = decode_token(token)
    purge_expired_revocations(session)
    if not is_revoked(session, payload["jti"]):
        session.add(RevokedToken(
            jti=payload["jti"],
            user_id=_user_id_from(payload),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        ))
    session.commit()


def refresh_token(session: Session, token: str) -> Tuple[int, str]:
    """
    Swaps a valid token for a new one with a fresh expiry. The old token is
    revoked. Returns the user id and the new token.
    """
    user_id = verify_token(session, token)
    invalidate_token(session, token)
    return user_id, create_access_token(user_id)


# ==================== Authentication Dependencies ====================

def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Missing bearer token")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    session: Session = Depends(get_session),
) -> User:
    user_id = verify_token(session, token)
    user = session.get(User, user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    return user
