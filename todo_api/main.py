import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todo_api import config
from todo_api.database import create_db_and_tables
from todo_api.errors import register_exception_handlers
from todo_api.routes import auth, todos

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Todo API starting up...")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("Todo API shutting down")


def create_app() -> FastAPI:
    """
    Creates and configures the FastAPI application.
    """
    configure_logging()

    app = FastAPI(
        title="Todo API",
        description="Token-authenticated API for managing personal todo lists.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # --- Middleware Configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Todo API!"}

    app.include_router(auth.router)
    app.include_router(todos.router)

    return app


# Create the FastAPI app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
