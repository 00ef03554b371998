"""
FastAPI application entry point
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docvault.api.router import router
from docvault.core.config import settings
from docvault.core.database import SessionLocal, init_db
from docvault.integrations.storage_client import FileStorage
from docvault.modules.scanner import ExpiryScanner
from docvault.pipelines.ingestion import IngestionPipeline
from docvault.services.document_service import DocumentService
from docvault.services.reminder_service import ReminderService
from docvault.storage.sql_storage import SQLStorage

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(
    store=None,
    scanner: Optional[ExpiryScanner] = None,
    file_storage: Optional[FileStorage] = None,
    scanning_enabled: Optional[bool] = None
) -> FastAPI:
    """
    Build the application and wire its collaborators.

    Anything not passed in comes from settings: a SQL store on DATABASE_URL,
    files under UPLOAD_DIR and a Gemini scanner gated by ENABLE_REMOTE_OCR.
    """
    if scanning_enabled is None:
        scanning_enabled = settings.ENABLE_REMOTE_OCR

    if store is None:
        init_db()
        store = SQLStorage(SessionLocal)

    if scanner is None:
        scanner = ExpiryScanner(
            api_key=settings.VISION_API_KEY,
            model_name=settings.VISION_MODEL,
            timeout=settings.VISION_TIMEOUT,
            enabled=scanning_enabled,
            max_image_size=settings.VISION_MAX_IMAGE_SIZE,
        )

    file_storage = file_storage or FileStorage(settings.UPLOAD_DIR)

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.document_service = DocumentService(store, file_storage)
    app.state.reminder_service = ReminderService(store)
    app.state.ingestion_pipeline = IngestionPipeline(
        store=store,
        scanner=scanner,
        file_storage=file_storage,
        scanning_enabled=scanning_enabled,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed input is a 400, matching the errors raised by the services"""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request data", "errors": jsonable_errors(exc)}
        )

    app.include_router(router, prefix="/api")

    @app.get("/", tags=["root"])
    def root():
        """Root endpoint"""
        return {
            "service": settings.API_TITLE,
            "version": settings.API_VERSION,
            "status": "running"
        }

    @app.get("/health", tags=["health"])
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "remote_scanning": "enabled" if scanning_enabled else "disabled"
        }

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


settings.log_config_summary()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
