from typing import Dict, Any, Optional, Callable, List
import logging
from datetime import datetime
from dataclasses import dataclass, field

from docvault.modules.classifier import classify_document
from docvault.modules.eligibility import should_scan_document
from docvault.modules.reminders import schedule_expiry_reminders
from docvault.modules.scanner import ExpiryScanner, ScanResult
from docvault.integrations.storage_client import FileStorage, StorageException
from docvault.schemas.document import DocumentCreate, DocumentResponse, coerce_calendar_date

logger = logging.getLogger(__name__)

# A scanned expiry date is accepted only above this confidence (strictly greater)
CONFIDENCE_THRESHOLD = 0.7


@dataclass
class PipelineState:
    """State container for one upload moving through the pipeline."""
    file_bytes: bytes
    original_filename: str
    mime_type: str
    size: int
    user_id: str
    declared_category: Optional[str] = None
    declared_expiry: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)

    # Processing results
    category: Optional[str] = None
    stored_filename: Optional[str] = None
    document: Optional[DocumentResponse] = None
    scan_result: Optional[ScanResult] = None
    expiry_accepted: bool = False
    reminders_created: int = 0

    # Pipeline metadata
    processing_steps: list = field(default_factory=list)
    status: str = "initialized"
    errors: list = field(default_factory=list)

    def to_output_dict(self) -> Dict[str, Any]:
        """Summary of the run, for logging and diagnostics."""
        return {
            "status": self.status,
            "user_id": self.user_id,
            "document_id": self.document.id if self.document else None,
            "category": self.category,
            "processing_steps": self.processing_steps.copy(),
            "scan": self.scan_result.to_dict() if self.scan_result else None,
            "expiry_accepted": self.expiry_accepted,
            "reminders_created": self.reminders_created,
            "errors": self.errors.copy(),
        }


class IngestionPipeline:
    """
    Ingestion pipeline for uploaded documents.

    This class orchestrates the upload flow:
    Classify -> Persist -> Scan -> Confidence gate -> Schedule reminders

    Collaborators are injected via constructor. The scanning-enabled flag is
    passed in here rather than read from settings, so tests can flip it per
    pipeline instance.
    """

    def __init__(
        self,
        store,
        scanner: Optional[ExpiryScanner] = None,
        file_storage: Optional[FileStorage] = None,
        scanning_enabled: bool = False,
        classifier: Optional[Callable] = None,
        eligibility: Optional[Callable] = None,
        scheduler: Optional[Callable] = None,
    ):
        """
        Initialize the ingestion pipeline with module dependencies.

        :param store: DocumentStore used for documents and reminders.
        :param scanner: ExpiryScanner instance. Defaults to a disabled scanner.
        :param file_storage: Where uploaded bytes go. Defaults to FileStorage("uploads").
        :param scanning_enabled: Global scanning-enabled flag.
        :param classifier: Category classifier. Defaults to classify_document.
        :param eligibility: Scan eligibility policy. Defaults to should_scan_document.
        :param scheduler: Reminder scheduler. Defaults to schedule_expiry_reminders.
        """
        self.store = store
        self.scanner = scanner or ExpiryScanner(enabled=False)
        self.file_storage = file_storage or FileStorage()
        self.scanning_enabled = scanning_enabled
        self.classifier = classifier or classify_document
        self.eligibility = eligibility or should_scan_document
        self.scheduler = scheduler or schedule_expiry_reminders

        logger.info(f"IngestionPipeline initialized (scanning enabled: {scanning_enabled})")

    def step_classify(self, state: PipelineState) -> None:
        """
        Step 1: Resolve the effective category.

        :param state: Pipeline state to update.
        """
        if state.declared_category:
            state.category = state.declared_category
            logger.info(f"STEP 1 (Classify): Using declared category '{state.category}'")
        else:
            state.category = self.classifier(state.original_filename, state.mime_type)
            logger.info(f"STEP 1 (Classify): '{state.original_filename}' classified as '{state.category}'")

        state.processing_steps.append("Classify")

    def step_persist(self, state: PipelineState) -> None:
        """
        Step 2: Store the file bytes and persist the document row.

        Failures propagate. If the row cannot be written the stored file is
        removed again so no orphan is left behind.

        :param state: Pipeline state to update.
        """
        logger.info("STEP 2 (Persistence): Storing file and creating document record...")

        state.stored_filename = self.file_storage.save_file(state.file_bytes, state.original_filename)

        try:
            extension = state.stored_filename.rsplit(".", 1)[-1] if "." in state.stored_filename else ""
            document = DocumentCreate(
                user_id=state.user_id,
                filename=state.stored_filename,
                original_name=state.original_filename,
                mime_type=state.mime_type,
                size=state.size,
                category=state.category,
                tags=state.tags,
                metadata={
                    "uploadDate": datetime.now().isoformat(),
                    "fileExtension": f".{extension}" if extension else "",
                    "size": state.size,
                },
                expiry_date=state.declared_expiry,
            )
            state.document = self.store.create_document(document)

        except Exception as e:
            state.status = "persistence_failed"
            logger.error(f"STEP 2 (Persistence) Failed: {e}", exc_info=True)
            try:
                self.file_storage.delete_file(state.stored_filename)
            except StorageException as cleanup_error:
                logger.warning(f"Could not remove stored file {state.stored_filename}: {cleanup_error}")
            raise

        state.processing_steps.append("Persistence")
        state.status = "persisted"
        logger.info(f"STEP 2 (Persistence) Complete. Document ID: {state.document.id}")

    async def step_scan(self, state: PipelineState) -> None:
        """
        Step 3: Ask the scanner for an expiry date, when allowed.

        Skipped when an expiry was declared, scanning is disabled or the
        eligibility policy rejects the file. Never raises.

        :param state: Pipeline state to update.
        """
        if state.document.expiry_date is not None:
            logger.info("STEP 3 (Scan): Skipped, expiry date was declared")
            return

        if not self.scanning_enabled:
            logger.info("STEP 3 (Scan): Skipped, remote scanning disabled")
            return

        if not self.eligibility(state.original_filename, state.category):
            logger.info(f"STEP 3 (Scan): Skipped, '{state.original_filename}' not eligible in '{state.category}'")
            return

        logger.info(f"STEP 3 (Scan): Scanning '{state.original_filename}' for an expiry date...")
        try:
            state.scan_result = await self.scanner.scan(state.file_bytes, state.mime_type, enabled=True)
        except Exception as e:
            state.errors.append(f"Scan failed: {str(e)}")
            logger.warning(f"STEP 3 (Scan) Failed, continuing without scan data: {e}", exc_info=True)
            state.scan_result = ScanResult.empty()

        state.processing_steps.append("Scan")
        logger.info(
            f"STEP 3 (Scan) Complete. Expiry: {state.scan_result.expiry_date}, "
            f"Confidence: {state.scan_result.confidence:.2f}"
        )

    def step_confidence_gate(self, state: PipelineState) -> None:
        """
        Step 4: Accept the scanned expiry date only above CONFIDENCE_THRESHOLD.

        A rejected scan is discarded entirely. An accepted date is written to
        the document together with a short scan summary in its metadata.

        :param state: Pipeline state to update.
        """
        result = state.scan_result
        if result is None:
            return

        if not result.has_expiry_date or result.confidence <= CONFIDENCE_THRESHOLD:
            logger.info(
                f"STEP 4 (Confidence gate): Scan discarded "
                f"(expiry={result.expiry_date}, confidence={result.confidence:.2f})"
            )
            state.processing_steps.append("ConfidenceGate")
            return

        metadata = dict(state.document.metadata)
        metadata["scan"] = {
            "documentType": result.document_type,
            "confidence": result.confidence,
            "documentNumber": result.document_number,
        }

        try:
            updated = self.store.update_document(
                state.document.id,
                state.user_id,
                {"expiry_date": coerce_calendar_date(result.expiry_date), "metadata": metadata},
            )
        except Exception as e:
            state.errors.append(f"Expiry update failed: {str(e)}")
            logger.error(f"STEP 4 (Confidence gate) Failed to write expiry date: {e}", exc_info=True)
            return

        if updated is None:
            state.errors.append("Document disappeared before expiry update")
            logger.warning(f"STEP 4 (Confidence gate): Document {state.document.id} no longer exists")
            return

        state.document = updated
        state.expiry_accepted = True
        state.processing_steps.append("ConfidenceGate")
        logger.info(f"STEP 4 (Confidence gate) Complete. Expiry date set to {result.expiry_date}")

    def step_schedule(self, state: PipelineState) -> None:
        """
        Step 5: Schedule expiry reminders once, if the document has an expiry date.

        Errors are logged and recorded; the document write stands.

        :param state: Pipeline state to update.
        """
        if state.document.expiry_date is None:
            logger.info("STEP 5 (Reminders): Skipped, document has no expiry date")
            return

        try:
            reminders = self.scheduler(self.store, state.document)
            state.reminders_created = len(reminders)
            state.processing_steps.append("Reminders")
            logger.info(f"STEP 5 (Reminders) Complete. {state.reminders_created} reminder(s) created")
        except Exception as e:
            state.errors.append(f"Reminder scheduling failed: {str(e)}")
            logger.error(f"STEP 5 (Reminders) Failed: {e}", exc_info=True)

    async def run(
        self,
        file_bytes: bytes,
        original_filename: str,
        mime_type: str,
        size: int,
        user_id: str,
        declared_category: Optional[str] = None,
        declared_expiry: Any = None,
        tags: Optional[List[str]] = None,
    ) -> DocumentResponse:
        """
        Execute the complete ingestion pipeline.

        :param file_bytes: Uploaded file content.
        :param original_filename: Filename supplied by the user.
        :param mime_type: Declared MIME type.
        :param size: Size in bytes.
        :param user_id: Owning user.
        :param declared_category: Category chosen by the user, if any.
        :param declared_expiry: Expiry date supplied by the user (date, datetime or ISO string).
        :param tags: Free-text tags.
        :return: The final document state.
        :raises ValueError: If the declared expiry date is invalid.
        :raises PersistenceError: If the document could not be stored.
        """
        state = PipelineState(
            file_bytes=file_bytes,
            original_filename=original_filename,
            mime_type=mime_type,
            size=size,
            user_id=user_id,
            declared_category=declared_category,
            declared_expiry=coerce_calendar_date(declared_expiry),
            tags=list(tags or []),
        )

        logger.info(f"Pipeline started for '{original_filename}' (user {user_id}, {size} bytes)")

        self.step_classify(state)
        self.step_persist(state)
        await self.step_scan(state)
        self.step_confidence_gate(state)
        self.step_schedule(state)

        state.status = "completed_with_errors" if state.errors else "completed"
        logger.info(f"Pipeline completed with status: {state.status} {state.to_output_dict()}")
        return state.document
