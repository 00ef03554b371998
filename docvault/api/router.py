"""
DocVault HTTP API

Every endpoint is scoped to the user named in the X-User-ID header.
Missing and foreign resources both come back as 404.
"""
import json
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

from docvault.api.dependencies import (
    get_document_service,
    get_ingestion_pipeline,
    get_reminder_service,
    get_user_id,
)
from docvault.core.config import settings
from docvault.integrations.storage_client import StorageException
from docvault.pipelines.ingestion import IngestionPipeline
from docvault.schemas.category import CategoryWithCount
from docvault.schemas.document import DocumentResponse, DocumentStats, DocumentUpdate
from docvault.schemas.reminder import ReminderRequest, ReminderResponse, ReminderUpdate
from docvault.services.document_service import DocumentNotFoundError, DocumentService
from docvault.services.reminder_service import ReminderNotFoundError, ReminderService
from docvault.storage.base import PersistenceError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["docvault"])


def _not_found(e: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"{action} failed: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action.lower()}"
    )


def _parse_tags(raw: Optional[str]) -> List[str]:
    """Tags arrive as a JSON array in a form field."""
    if raw is None or not raw.strip():
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError("tags must be a JSON array of strings")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValueError("tags must be a JSON array of strings")
    return tags


# ============================================================
# Dashboard
# ============================================================

@router.get("/dashboard/stats", response_model=DocumentStats)
def get_dashboard_stats(
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    """Document counts, storage usage and documents expiring within three months"""
    try:
        return service.get_stats(user_id)
    except PersistenceError as e:
        raise _server_error("Get dashboard stats", e)


# ============================================================
# Documents
# ============================================================

@router.get("/documents", response_model=List[DocumentResponse])
def list_documents(
    category: Optional[str] = Query(None, description="Category name, or 'all'"),
    search: Optional[str] = Query(None, description="Text matched against names, category and tags"),
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    try:
        return service.list_documents(user_id, category=category, search=search)
    except PersistenceError as e:
        raise _server_error("Get documents", e)


@router.get("/documents/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    try:
        return service.get_document(document_id, user_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error("Get document", e)


@router.post(
    "/documents/upload",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
    description="""
    Store the file, classify it and, for eligible identity documents,
    scan it for an expiry date. Reminders are scheduled when the document
    ends up with an expiry date.
    """
)
async def upload_document(
    file: Optional[UploadFile] = File(None, description="Document file"),
    category: Optional[str] = Form(None, description="Category name; classified from the filename when absent"),
    expiry_date: Optional[str] = Form(None, description="Expiry date, YYYY-MM-DD"),
    tags: Optional[str] = Form(None, description="JSON array of tags"),
    user_id: str = Depends(get_user_id),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)
):
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    mime_type = (file.content_type or "").lower()
    if mime_type not in settings.ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed: {file.content_type}"
        )

    content = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.MAX_UPLOAD_SIZE} bytes"
        )

    try:
        return await pipeline.run(
            file_bytes=content,
            original_filename=file.filename,
            mime_type=mime_type,
            size=len(content),
            user_id=user_id,
            declared_category=category or None,
            declared_expiry=expiry_date or None,
            tags=_parse_tags(tags),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (PersistenceError, StorageException) as e:
        raise _server_error("Upload document", e)


@router.patch("/documents/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: str,
    update: DocumentUpdate,
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    try:
        return service.update_document(document_id, user_id, update)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _server_error("Update document", e)


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: str,
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    """Delete a document together with its reminders and stored file"""
    try:
        service.delete_document(document_id, user_id)
        return {"success": True}
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error("Delete document", e)


@router.get("/documents/{document_id}/file")
def get_document_file(
    document_id: str,
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    try:
        document, content = service.get_file(document_id, user_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except (PersistenceError, StorageException) as e:
        raise _server_error("Get file", e)

    return Response(
        content=content,
        media_type=document.mime_type,
        headers={"Content-Disposition": f'inline; filename="{document.original_name}"'}
    )


@router.get("/documents/{document_id}/reminders", response_model=List[ReminderResponse])
def get_document_reminders(
    document_id: str,
    user_id: str = Depends(get_user_id),
    service: ReminderService = Depends(get_reminder_service)
):
    try:
        return service.get_document_reminders(document_id, user_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error("Get reminders", e)


# ============================================================
# Reminders
# ============================================================

@router.get("/reminders", response_model=List[ReminderResponse])
def list_reminders(
    upcoming: Optional[int] = Query(None, ge=0, description="Only active reminders due within this many days"),
    user_id: str = Depends(get_user_id),
    service: ReminderService = Depends(get_reminder_service)
):
    try:
        return service.list_reminders(user_id, upcoming_days=upcoming)
    except PersistenceError as e:
        raise _server_error("Get reminders", e)


@router.post("/reminders", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def create_reminder(
    request: ReminderRequest,
    user_id: str = Depends(get_user_id),
    service: ReminderService = Depends(get_reminder_service)
):
    try:
        return service.create_reminder(user_id, request)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error("Create reminder", e)


@router.patch("/reminders/{reminder_id}", response_model=ReminderResponse)
def update_reminder(
    reminder_id: str,
    update: ReminderUpdate,
    user_id: str = Depends(get_user_id),
    service: ReminderService = Depends(get_reminder_service)
):
    """Dismiss (is_active=false) or reactivate a reminder"""
    try:
        return service.update_reminder(reminder_id, user_id, update.is_active)
    except ReminderNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _server_error("Update reminder", e)


# ============================================================
# Categories
# ============================================================

@router.get("/categories", response_model=List[CategoryWithCount])
def get_categories(
    user_id: str = Depends(get_user_id),
    service: DocumentService = Depends(get_document_service)
):
    """All categories with the number of documents the user filed under each"""
    try:
        return service.get_categories(user_id)
    except PersistenceError as e:
        raise _server_error("Get categories", e)
