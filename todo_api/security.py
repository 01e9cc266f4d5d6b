from typing import Optional

from passlib.context import CryptContext

from todo_api.config import BCRYPT_ROUNDS

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

_dummy_hash: Optional[str] = None


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def get_password_hash(password: str) -> str:
    """
    Hashes a plain-text password for storage on the user record.
    """
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verifies a plain-text password against a stored hash.

    When there is no stored hash (unknown email) a throwaway hash is checked
    instead, so a failed login costs the same whether or not the account
    exists.
    """
    global _dummy_hash
    if hashed_password is None:
        if _dummy_hash is None:
            _dummy_hash = pwd_context.hash("not-a-real-password")
        pwd_context.verify(_truncate(plain_password), _dummy_hash)
        return False
    return pwd_context.verify(_truncate(plain_password), hashed_password)
