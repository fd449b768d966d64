"""
CareTrack Backend
Main FastAPI application
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import include_routers
from config import Settings, get_settings
from database import DatabaseHealthCheck
from services.insight_service import create_insight_engine
from services.notification_service import LoggingDispatcher, NotificationDispatcher
from services.transcription_service import PlaceholderTranscriber, Transcriber
from storage import ConflictError, DatabaseStorage, NotFoundError, Storage, create_storage


logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


def _error_body(status_code: int, message, **extra) -> dict:
    return {
        "error": True,
        "message": message,
        "status_code": status_code,
        "timestamp": datetime.utcnow().isoformat(),
        **extra,
    }


# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown"""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENV}")

    if app.state.storage is None:
        try:
            app.state.storage = create_storage(settings)
        except Exception as e:
            logger.error(f"Storage initialization failed: {e}")
            raise

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


# ==================== APP FACTORY ====================

def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    insight_engine=None,
    transcriber: Optional[Transcriber] = None,
    dispatcher: Optional[NotificationDispatcher] = None
) -> FastAPI:
    """
    Build the application. Anything not passed in is built from settings;
    storage is created at startup when not supplied.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Patient and provider health tracking API",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.insight_engine = insight_engine or create_insight_engine(settings)
    app.state.transcriber = transcriber or PlaceholderTranscriber(settings)
    app.state.dispatcher = dispatcher or LoggingDispatcher()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app, settings)
    include_routers(app, prefix=settings.API_PREFIX)
    _register_health_routes(app, settings)

    return app


# ==================== EXCEPTION HANDLERS ====================

def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_body(400, "Invalid request data", errors=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body(404, str(exc)))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return JSONResponse(status_code=409, content=_error_body(409, str(exc)))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(500, "An unexpected error occurred" if not settings.DEBUG else str(exc)),
        )


# ==================== HEALTH CHECK ENDPOINTS ====================

def _register_health_routes(app: FastAPI, settings: Settings) -> None:

    @app.get("/", tags=["Health"])
    async def root():
        """Basic health check"""
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.utcnow().isoformat()
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Detailed health check endpoint"""
        storage = request.app.state.storage
        storage_check = {"backend": settings.STORAGE_BACKEND, "status": "up"}
        if isinstance(storage, DatabaseStorage):
            storage_check["status"] = "up" if DatabaseHealthCheck.is_connected(storage.engine) else "down"
        elif storage is None:
            storage_check["status"] = "down"

        return {
            "status": "healthy" if storage_check["status"] == "up" else "degraded",
            "timestamp": datetime.utcnow().isoformat(),
            "checks": {
                "storage": storage_check,
                "llm": {
                    "provider": settings.LLM_PROVIDER,
                    "model": settings.LLM_MODEL,
                    "configured": settings.LLM_PROVIDER == "placeholder" or bool(settings.OPENAI_API_KEY),
                },
            },
            "version": settings.APP_VERSION,
            "environment": settings.ENV,
        }


configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
