from typing import Dict, List, Set, Tuple

# ============================================================================
# Built-in Categories
# ============================================================================
# Seeded into every store on first use. Documents reference categories by
# name, so the list can grow without touching existing documents.
IDENTITY_DOCUMENTS = "Identity Documents"
BILLS_AND_UTILITIES = "Bills & Utilities"
MEDICAL_RECORDS = "Medical Records"
RECEIPTS = "Receipts"
TRAVEL_DOCUMENTS = "Travel Documents"
INSURANCE = "Insurance"
LEGAL_DOCUMENTS = "Legal Documents"

DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": IDENTITY_DOCUMENTS, "icon": "fas fa-id-card", "color": "#3b82f6", "description": "Passports, licenses, ID cards"},
    {"name": BILLS_AND_UTILITIES, "icon": "fas fa-file-invoice", "color": "#ef4444", "description": "Utility bills, invoices"},
    {"name": MEDICAL_RECORDS, "icon": "fas fa-heartbeat", "color": "#10b981", "description": "Health records, prescriptions"},
    {"name": RECEIPTS, "icon": "fas fa-receipt", "color": "#f59e0b", "description": "Purchase receipts, warranties"},
    {"name": TRAVEL_DOCUMENTS, "icon": "fas fa-plane", "color": "#8b5cf6", "description": "Tickets, visas, itineraries"},
    {"name": INSURANCE, "icon": "fas fa-shield-alt", "color": "#06b6d4", "description": "Insurance policies, claims"},
]

# Fallback when no filename keyword matches
DEFAULT_CATEGORY = RECEIPTS

# ============================================================================
# Filename Keyword Mappings (order matters: first matching group wins)
# ============================================================================
CATEGORY_FILENAME_KEYWORDS: List[Tuple[str, List[str]]] = [
    (IDENTITY_DOCUMENTS, ["passport", "license", "licence", "id", "brp", "biometric", "residence permit"]),
    (BILLS_AND_UTILITIES, ["bill", "utility", "invoice"]),
    (MEDICAL_RECORDS, ["medical", "health", "doctor"]),
    (RECEIPTS, ["receipt", "purchase"]),
    (TRAVEL_DOCUMENTS, ["ticket", "visa", "travel"]),
    (INSURANCE, ["insurance", "policy"]),
]

# ============================================================================
# Expiry Scan Eligibility
# ============================================================================
SCAN_ELIGIBLE_CATEGORIES: Set[str] = {
    IDENTITY_DOCUMENTS,
    LEGAL_DOCUMENTS,
}

# Categories where every file is scanned, keyword or not
ALWAYS_SCAN_CATEGORIES: Set[str] = {
    IDENTITY_DOCUMENTS,
}

SCAN_PRIORITY_KEYWORDS: List[str] = [
    "passport", "brp", "biometric", "residence", "permit",
    "license", "licence", "driving", "id", "identity",
    "visa", "work", "student", "tier",
]

# ============================================================================
# Helper Functions
# ============================================================================

def is_scan_eligible_category(category_name: str) -> bool:
    """
    Check if documents in a category may be scanned for an expiry date.

    :param category_name: Category name
    :return: True if the category is eligible
    """
    return category_name in SCAN_ELIGIBLE_CATEGORIES
