import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from questionnaire_api.api.routes import api_router
from questionnaire_api.core.config import Settings, get_settings
from questionnaire_api.core.exceptions import BaseAPIException
from questionnaire_api.core.logging import setup_logging
from questionnaire_api.db.init_db import init_db
from questionnaire_api.db.session import Database


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose accepted preflights carry no body"""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != status.HTTP_200_OK:
            return response
        headers = {
            key: value for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all requests"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        # Generate a unique request ID
        request_id = uuid.uuid4().hex

        # Add request ID to request state
        request.state.request_id = request_id

        logger.info(f"Request {request_id}: {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(f"Response {request_id}: {response.status_code} completed in {process_time:.3f}s")

            # Add custom headers
            response.headers["X-Process-Time"] = f"{process_time:.3f}"
            response.headers["X-Request-ID"] = request_id

            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"Error {request_id}: {str(e)} after {process_time:.3f}s")
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.
    Opens the store handle on startup and releases it on shutdown.
    """
    settings: Settings = app.state.settings

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    app.state.database = database

    try:
        await init_db(database, settings)
        logger.info(f"Application startup complete: {settings.as_log_context()}")
        yield
    finally:
        await database.dispose()
        logger.info("Application shutdown")


def error_response(status_code: int, message: str, code: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "code": code},
        headers=headers or {},
    )


def describe_validation_error(exc: RequestValidationError) -> str:
    """First request-shape problem as one readable line"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"message", "code"}"""

    @app.exception_handler(BaseAPIException)
    async def api_exception_handler(request: Request, exc: BaseAPIException):
        """Handle custom API exceptions"""
        return error_response(exc.status_code, exc.detail, exc.code, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies and parameters"""
        message = describe_validation_error(exc)
        logger.warning(f"Rejected request to {request.url.path}: {message}")
        return error_response(status.HTTP_400_BAD_REQUEST, message, "validation_error")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle routing errors such as unknown paths"""
        return error_response(exc.status_code, str(exc.detail), "http_error", getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Handle anything unexpected"""
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "internal_error")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings, the environment-derived ones when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for authoring questionnaires and collecting responses",
        version=settings.VERSION,
        lifespan=lifespan,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        openapi_url=settings.OPENAPI_URL,
    )
    app.state.settings = settings

    # Configure CORS middleware
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Process-Time", "X-Request-ID"],
        max_age=600,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        """Liveness message"""
        return {"message": "Server is running!"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "timestamp": time.time(),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("questionnaire_api.main:create_app", factory=True, host="0.0.0.0", port=8000,
                reload=get_settings().DEBUG)
