import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Configuration for JWT
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    raise ValueError("SECRET_KEY environment variable not set.")

ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_ECHO = _env_bool("DATABASE_ECHO")

# Password hashing cost; tests lower it to keep bcrypt fast
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

# Todo listing
DEFAULT_PER_PAGE = int(os.getenv("DEFAULT_PER_PAGE", 15))
MAX_PER_PAGE = int(os.getenv("MAX_PER_PAGE", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
