"""Main application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from database import create_db_engine, create_session_factory, init_db
from exceptions import StoreError
from logging_config import setup_logging
from monitoring import init_metrics, init_tracing
from routers import admin, items, users

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as an {"error": ...} envelope."""

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        if exc.status_code >= 500:
            logger.error("Request failed", extra={
                "path": request.url.path,
                "error": exc.message
            })
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Storage failure", extra={
            "path": request.url.path,
            "error": str(exc)
        })
        return error_response(400, "Storage failure")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the store application.

    Args:
        settings: Explicit configuration; loaded from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    setup_logging(settings.service_name, settings.otel_exporter_otlp_endpoint)

    if settings.otel_exporter_otlp_endpoint:
        init_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
        init_metrics(settings.service_name, settings.otel_exporter_otlp_endpoint)

    if not settings.jwt_secret:
        logger.warning("STORE_JWT_SECRET is not set; logins and authenticated routes will fail")

    engine = create_db_engine(settings.database_url)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Handles startup and shutdown events.
        """
        logger.info("Starting application...")

        init_db(engine, session_factory, settings)

        logger.info("Application startup complete")

        yield

        logger.info("Shutting down application...")
        engine.dispose()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Store Service",
        version=settings.api_version,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Instrument FastAPI and SQLAlchemy
    FastAPIInstrumentor.instrument_app(app)
    sqlalchemy_instrumentor = SQLAlchemyInstrumentor()
    if not sqlalchemy_instrumentor.is_instrumented_by_opentelemetry:
        sqlalchemy_instrumentor.instrument(engine=engine)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(items.router)
    app.include_router(users.router)
    app.include_router(admin.router)

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
