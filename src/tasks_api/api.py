"""
FastAPI application for the Tasks API.

Exposes a liveness root and CRUD endpoints for task records. The application is
built by ``create_app``, which opens the task database and installs the API key
gate using an explicitly passed ``Settings`` value.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Path, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.encoders import jsonable_encoder

from .config import Settings, load_settings
from .database import TaskDatabase
from .models import Task, TaskInput
from .security import ApiKeyMiddleware, DOCS_ROOT

logger = logging.getLogger(__name__)

LIVENESS_MESSAGE = "Tasks API is Live and Secure!"

# SQLite INTEGER range
SQLITE_INT_MIN = -2**63
SQLITE_INT_MAX = 2**63 - 1


# Database dependency for FastAPI dependency injection
def get_database(request: Request) -> TaskDatabase:
    """Provide the TaskDatabase owned by the running application."""
    return request.app.state.db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database if a previous shutdown closed it; close it on shutdown."""
    app.state.db.ensure_open()
    logger.info("Tasks API starting up...")
    logger.info("Available endpoints:")
    logger.info("  GET / - Liveness check")
    logger.info("  GET /tasks - List tasks")
    logger.info("  POST /tasks - Create task")
    logger.info("  PUT /tasks/{id} - Update task")
    logger.info("  DELETE /tasks/{id} - Delete task")

    yield

    app.state.db.close()
    logger.info("Database connection closed")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as a plain 400 Bad Request."""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())}
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


def liveness():
    """Constant liveness text, reachable without an API key."""
    return LIVENESS_MESSAGE


def list_tasks(db: TaskDatabase = Depends(get_database)):
    """Return every task in the store's natural order."""
    return [Task.from_row(row) for row in db.get_all_tasks()]


def create_task(
    task_input: TaskInput,
    response: Response,
    db: TaskDatabase = Depends(get_database)
):
    """Insert a task and point ``Location`` at its new resource path."""
    row = db.create_task(task_input.title, task_input.is_completed)
    response.headers["Location"] = f"/tasks/{row['id']}"
    return Task.from_row(row)


def update_task(
    task_input: TaskInput,
    task_id: int = Path(..., ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX),
    db: TaskDatabase = Depends(get_database)
):
    """Overwrite title and completion flag; 404 if the task doesn't exist."""
    if db.update_task(task_id, task_input.title, task_input.is_completed) is None:
        return Response(status_code=404)
    return Response(status_code=204)


def delete_task(
    task_id: int = Path(..., ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX),
    db: TaskDatabase = Depends(get_database)
):
    """Delete a task and return its last known state; 404 if it doesn't exist."""
    row = db.delete_task(task_id)
    if row is None:
        return Response(status_code=404)
    return Task.from_row(row)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the Tasks API application.

    Opens (and if needed creates) the task database before returning, so a
    store that cannot be initialized fails application construction.

    Args:
        settings: Process configuration; loaded from the environment if omitted

    Raises:
        RuntimeError: If the database cannot be initialized
        ConfigurationError: If settings are loaded here and are invalid
    """
    if settings is None:
        settings = load_settings()

    db = TaskDatabase(settings.database_path)

    app = FastAPI(
        title="Tasks API",
        description="Minimal CRUD API for task records, secured by an API key",
        version="1.0.0",
        docs_url=DOCS_ROOT,
        openapi_url=f"{DOCS_ROOT}/v1/swagger.json",
        redoc_url=None,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(ApiKeyMiddleware, api_key=settings.api_key, docs_root=DOCS_ROOT)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_api_route("/", liveness, methods=["GET"], response_class=PlainTextResponse)
    app.add_api_route("/tasks", list_tasks, methods=["GET"], response_model=List[Task])
    app.add_api_route("/tasks", create_task, methods=["POST"], response_model=Task, status_code=201)
    app.add_api_route("/tasks/{task_id}", update_task, methods=["PUT"], status_code=204)
    app.add_api_route("/tasks/{task_id}", delete_task, methods=["DELETE"], response_model=Task)

    return app
