"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.domain.errors import (
    MamaCareError, InvalidInputError, NotFoundError, NotOwnedError, InvalidStateError,
    UnauthenticatedError, GatewayError, ConflictError,
)
from app.infrastructure.db.session import check_db_connection
from app.api.v1 import auth, profile, reminders, contacts, symptoms, content, payments, dashboard

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Most specific class wins (lookup walks the MRO)
ERROR_STATUS = {
    InvalidInputError: 422,
    NotFoundError: 404,
    NotOwnedError: 403,
    InvalidStateError: 409,
    UnauthenticatedError: 401,
    GatewayError: 502,
    ConflictError: 409,
}


def status_for_error(exc: MamaCareError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not (sync routes included)"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="MamaCare",
        debug=settings.DEBUG,
    )

    @app.exception_handler(MamaCareError)
    async def mamacare_error_handler(request: Request, exc: MamaCareError):
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        else:
            logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__, "retryable": exc.retryable},
        )

    app.add_middleware(ErrorLoggingMiddleware)

    # Middleware
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(profile.router)
    app.include_router(reminders.router)
    app.include_router(contacts.router)
    app.include_router(symptoms.router)
    app.include_router(content.router)
    app.include_router(payments.router)
    app.include_router(dashboard.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks the database)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
