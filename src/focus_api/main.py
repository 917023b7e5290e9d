import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import (
    FocusError,
    NotFound,
    PriorityLimitExceeded,
    StoreUnavailable,
    Unauthorized,
    ValidationError,
)
from .logging_setup import setup_logging
from .routers import sessions as sessions_router
from .routers import tasks as tasks_router
from .routers import timer as timer_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Daily task list with at most 3 active priority tasks per user.",
    },
    {"name": "sessions", "description": "Per-day focus minutes and completed Pomodoro cycles."},
    {"name": "timer", "description": "Focus/break countdown driven by one-second ticks."},
]

_settings = get_settings()
setup_logging(_settings.log_level)

app = FastAPI(
    title="Focus Backend",
    description="Backend API for a daily task list with priority limits and Pomodoro focus tracking.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR = {
    Unauthorized: 401,
    ValidationError: 422,
    NotFound: 404,
    PriorityLimitExceeded: 409,
    StoreUnavailable: 503,
}


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(FocusError)
async def focus_error_handler(request: Request, exc: FocusError) -> JSONResponse:
    """
    Map core errors to HTTP responses.

    Response format:
        {"error": "<kind>", "message": "<human readable text>"}
    """
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    headers = None
    if isinstance(exc, Unauthorized) and get_settings().enable_basic_auth:
        headers = {"WWW-Authenticate": "Basic"}
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "message": exc.message},
        headers=headers,
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(tasks_router.router)
app.include_router(sessions_router.router)
app.include_router(timer_router.router)
