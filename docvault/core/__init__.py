from docvault.core.category_config import (
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY,
    CATEGORY_FILENAME_KEYWORDS,
    SCAN_ELIGIBLE_CATEGORIES,
    ALWAYS_SCAN_CATEGORIES,
    SCAN_PRIORITY_KEYWORDS,
    is_scan_eligible_category,
)

__all__ = [
    # Category config
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY",
    "CATEGORY_FILENAME_KEYWORDS",
    "SCAN_ELIGIBLE_CATEGORIES",
    "ALWAYS_SCAN_CATEGORIES",
    "SCAN_PRIORITY_KEYWORDS",
    "is_scan_eligible_category",
]
