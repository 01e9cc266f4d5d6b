import logging
from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import create_engine, Session, SQLModel

from todo_api import config

# Make sure to import models to register them with SQLModel.metadata
from todo_api.models import User, Todo, RevokedToken  # noqa: F401

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """
    Returns the process-wide engine, creating it from DATABASE_URL on first use.
    """
    global _engine
    if _engine is None:
        if not config.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable not set for production/development.")
        connect_args = {}
        if config.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        # Log only the scheme so credentials never reach the log
        logger.info("Creating database engine for %s", config.DATABASE_URL.split(":", 1)[0])
        _engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO, connect_args=connect_args)
    return _engine


def create_db_and_tables(engine: Optional[Engine] = None) -> None:
    SQLModel.metadata.create_all(engine or get_engine())


def get_session() -> Generator[Session, None, None]:
    with Session(get_engine()) as session:
        yield session
