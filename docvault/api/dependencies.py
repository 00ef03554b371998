"""Shared API dependencies."""

from fastapi import Header, Request

from docvault.pipelines.ingestion import IngestionPipeline
from docvault.services.document_service import DocumentService
from docvault.services.reminder_service import ReminderService


def get_user_id(x_user_id: str = Header(..., alias="X-User-ID", min_length=1)) -> str:
    """Extract user ID from gateway headers."""
    return x_user_id


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def get_reminder_service(request: Request) -> ReminderService:
    return request.app.state.reminder_service


def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.ingestion_pipeline
