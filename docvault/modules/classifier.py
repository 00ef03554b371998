"""
Filename-based document categorization.
"""
import logging
from typing import Optional

from docvault.core.category_config import CATEGORY_FILENAME_KEYWORDS, DEFAULT_CATEGORY

logger = logging.getLogger(__name__)


def classify_document(filename: Optional[str], mime_type: Optional[str] = None) -> str:
    """
    Map a filename to a category name using ordered keyword groups.

    The first group with a keyword contained in the lower-cased filename wins.
    Filenames matching nothing fall back to DEFAULT_CATEGORY.

    :param filename: Original filename supplied by the user
    :param mime_type: Declared MIME type (reserved, not used by the heuristic)
    :return: Category name
    """
    name = (filename or "").lower()

    for category, keywords in CATEGORY_FILENAME_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            logger.debug(f"Classified '{filename}' as {category}")
            return category

    logger.debug(f"No keyword match for '{filename}', using default category {DEFAULT_CATEGORY}")
    return DEFAULT_CATEGORY
