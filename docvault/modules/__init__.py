from docvault.modules.classifier import classify_document
from docvault.modules.eligibility import should_scan_document
from docvault.modules.scanner import ExpiryScanner, ScanResult
from docvault.modules.reminders import (
    REMINDER_LEAD_TIMES,
    build_expiry_reminders,
    schedule_expiry_reminders,
)

__all__ = [
    "classify_document",
    "should_scan_document",
    "ExpiryScanner",
    "ScanResult",
    "REMINDER_LEAD_TIMES",
    "build_expiry_reminders",
    "schedule_expiry_reminders",
]
