import logging
from typing import Optional

from docvault.core.category_config import (
    ALWAYS_SCAN_CATEGORIES,
    SCAN_PRIORITY_KEYWORDS,
    is_scan_eligible_category,
)

logger = logging.getLogger(__name__)


def should_scan_document(filename: Optional[str], category: Optional[str]) -> bool:
    """
    Decide whether a document is a candidate for expiry scanning.

    Only identity and legal documents are considered. Within those, a filename
    keyword (passport, brp, permit, ...) selects the document, and every file in
    an ALWAYS_SCAN_CATEGORIES category is selected even without one.

    :param filename: Original filename
    :param category: Resolved category name
    :return: True if the document should be scanned
    """
    if not is_scan_eligible_category(category):
        logger.debug(f"Skipping scan - category {category} not eligible")
        return False

    name = (filename or "").lower()
    keyword_match = any(keyword in name for keyword in SCAN_PRIORITY_KEYWORDS)

    if not keyword_match and category in ALWAYS_SCAN_CATEGORIES:
        logger.debug(f"Scanning '{filename}' anyway - {category} category")
        return True

    logger.debug(f"Should scan '{filename}': {keyword_match}")
    return keyword_match
