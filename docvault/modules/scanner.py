"""
Expiry Scanner Module

Uses the Gemini Vision API (multimodal) to read identity documents and pull
out the expiry date. It extracts:
- The expiry date, normalized to YYYY-MM-DD
- The document type (passport, brp, driving_license, id_card, other)
- A confidence estimate between 0 and 1
- The document number, when visible

Failure Semantics:
    - Scanning is a best-effort enrichment of an upload and never raises
    - Disabled scanning, unsupported files, PDFs, service errors and malformed
      responses all come back as ScanResult.empty()
    - One round trip per scan, no retries
"""

import io
import json
import math
import base64
import logging
from datetime import date, datetime
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Tuple

import httpx
from PIL import Image

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("passport", "brp", "driving_license", "id_card", "other")

DOCUMENT_TYPE_ALIASES = {
    "biometric_residence_permit": "brp",
    "residence_permit": "brp",
    "driving_licence": "driving_license",
    "drivers_license": "driving_license",
    "driver_license": "driving_license",
    "identity_card": "id_card",
    "national_id": "id_card",
}

# Printed date layouts seen on identity documents; day-first wins over month-first
EXPIRY_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%m/%d/%Y",
)


@dataclass
class ScanResult:
    """Result from expiry scanning"""
    expiry_date: Optional[str] = None  # YYYY-MM-DD
    document_type: Optional[str] = None  # One of DOCUMENT_TYPES
    confidence: float = 0.0  # Model confidence (0.0-1.0)
    document_number: Optional[str] = None

    @classmethod
    def empty(cls) -> "ScanResult":
        """No information found"""
        return cls()

    @property
    def has_expiry_date(self) -> bool:
        return self.expiry_date is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for serialization"""
        return asdict(self)


def normalize_expiry_date(value: Any) -> Optional[str]:
    """
    Parse a date returned by the vision model and re-serialize it as YYYY-MM-DD.

    :param value: Raw value from the model response
    :return: Canonical date string, or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    text = " ".join(value.replace(",", " ").split())
    if not text:
        return None

    for fmt in EXPIRY_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    # Full ISO timestamps, e.g. "2026-03-01T00:00:00Z"
    try:
        iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
        return datetime.fromisoformat(iso_text).date().isoformat()
    except ValueError:
        logger.warning(f"Discarding unparseable expiry date from scanner: {value!r}")
        return None


def normalize_document_type(value: Any) -> Optional[str]:
    """Map a model-supplied document type onto DOCUMENT_TYPES."""
    if not isinstance(value, str) or not value.strip():
        return None
    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    key = DOCUMENT_TYPE_ALIASES.get(key, key)
    return key if key in DOCUMENT_TYPES else "other"


def clamp_confidence(value: Any) -> float:
    """Coerce a confidence value to float and clamp it to [0, 1]."""
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return max(0.0, min(1.0, confidence))


class ExpiryScanner:
    """
    Gemini Vision API client for expiry date extraction.

    Only images are sent. The request asks for a JSON object matching
    RESPONSE_SCHEMA so the reply can be parsed without free-text heuristics.
    """

    RESPONSE_SCHEMA = {
        "type": "OBJECT",
        "properties": {
            "expiryDate": {
                "type": "STRING",
                "nullable": True,
                "description": "Expiry date in ISO format YYYY-MM-DD, or null if not found."
            },
            "documentType": {
                "type": "STRING",
                "nullable": True,
                "enum": list(DOCUMENT_TYPES),
                "description": "Kind of identity document."
            },
            "confidence": {
                "type": "NUMBER",
                "description": "How confident you are in the extracted expiry date, from 0 to 1."
            },
            "documentNumber": {
                "type": "STRING",
                "nullable": True,
                "description": "Document number if visible (passport or permit number)."
            }
        },
        "required": ["expiryDate", "documentType", "confidence"]
    }

    SYSTEM_PROMPT = (
        "You are a specialized document scanner for identity documents (biometric residence permits, "
        "passports, driving licences, ID cards). Extract expiry dates with high accuracy.\n\n"
        "SPECIFIC PATTERNS TO LOOK FOR:\n"
        "- Residence permit: 'Date of expiry' or 'Valid until' (usually DD MMM YYYY, e.g. '15 JAN 2025')\n"
        "- Passport: 'Date of expiry' (usually DD MMM YYYY)\n"
        "- Driving licence: field '4b' holds the expiry date\n"
        "- Any document: 'Expires', 'Expiry', 'Valid to'\n\n"
        "Common date formats: DD/MM/YYYY, DD-MM-YYYY, DD MMM YYYY, MM/DD/YYYY. "
        "DD/MM/YYYY is the most common on UK documents.\n"
        "Documents often show several dates. Make sure you return the EXPIRY date, not the issue date "
        "or date of birth.\n"
        "Respond only with a JSON object that strictly adheres to the provided schema."
    )

    USER_PROMPT = (
        "Please carefully scan this identity document and extract the expiry date. Look for phrases like "
        "'Date of expiry', 'Valid until', 'Expires', or similar. Return expiryDate as YYYY-MM-DD, "
        "the documentType, your confidence, and the documentNumber if visible."
    )

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.0-flash",
        timeout: float = 30.0,
        enabled: bool = False,
        max_image_size: int = 2048,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Expiry Scanner.

        Args:
            api_key: Gemini API key
            model_name: Gemini model to use (must support vision)
            timeout: Request timeout in seconds
            enabled: Default for the scanning-enabled flag when scan() is not told explicitly
            max_image_size: Longest image side sent to the API, larger images are downscaled
            transport: Optional httpx transport (used to stub the service in tests)
        """
        self.api_key = api_key or ""
        self.model_name = model_name
        self.timeout = timeout
        self.enabled = enabled
        self.max_image_size = max_image_size
        self.transport = transport

        self.api_url = f"https://generativelanguage.googleapis.com/v1beta/models/{model_name}:generateContent"

        logger.info(f"ExpiryScanner initialized with model: {model_name}, enabled: {enabled}")

    async def scan(
        self,
        file_bytes: Optional[bytes],
        mime_type: Optional[str],
        enabled: Optional[bool] = None
    ) -> ScanResult:
        """
        Scan a document for its expiry date.

        Args:
            file_bytes: Raw file content
            mime_type: Declared MIME type of the file
            enabled: Scanning-enabled flag; falls back to the constructor value

        Returns:
            ScanResult, empty when nothing could be extracted
        """
        if enabled is None:
            enabled = self.enabled

        if not enabled:
            logger.info("Remote expiry scanning disabled, no data sent")
            return ScanResult.empty()

        mime = (mime_type or "").lower()
        if "image" not in mime and "pdf" not in mime:
            logger.info(f"File type {mime_type} not supported for expiry scanning")
            return ScanResult.empty()

        if "pdf" in mime:
            logger.info("PDF document detected. Expiry scanning only reads images (JPG/PNG).")
            return ScanResult.empty()

        if not self.api_key:
            logger.error("VISION_API_KEY not configured, expiry scanning skipped")
            return ScanResult.empty()

        if not file_bytes:
            logger.warning("Empty file passed to expiry scanner")
            return ScanResult.empty()

        try:
            base64_image, upload_mime = self._encode_image(file_bytes, mime)
            response = await self._call_gemini_vision(base64_image, upload_mime)
            result = self._parse_response(response)

            logger.info(
                f"Expiry scan completed: expiry={result.expiry_date}, "
                f"type={result.document_type}, confidence={result.confidence:.2f}"
            )
            return result

        except Exception as e:
            logger.warning(f"Expiry scan failed, continuing without scan data: {str(e)}", exc_info=True)
            return ScanResult.empty()

    def _encode_image(self, image_data: bytes, mime_type: str) -> Tuple[str, str]:
        """Encode image to base64 for the API, downscaling large images first"""
        try:
            image = Image.open(io.BytesIO(image_data))
            image_format = image.format or "PNG"

            if image.width > self.max_image_size or image.height > self.max_image_size:
                image.thumbnail((self.max_image_size, self.max_image_size), Image.Resampling.LANCZOS)

                buffer = io.BytesIO()
                image.save(buffer, format=image_format)
                image_data = buffer.getvalue()
                mime_type = Image.MIME.get(image_format, mime_type)
        except Exception as e:
            logger.warning(f"Image resize failed, using original: {str(e)}")

        return base64.b64encode(image_data).decode('utf-8'), mime_type

    async def _call_gemini_vision(self, base64_image: str, mime_type: str) -> Dict[str, Any]:
        """Single generateContent round trip. Raises on transport or HTTP errors."""
        headers = {
            "Content-Type": "application/json"
        }

        payload = {
            "systemInstruction": {"parts": [{"text": self.SYSTEM_PROMPT}]},
            "contents": [{
                "parts": [
                    {"text": self.USER_PROMPT},
                    {
                        "inline_data": {
                            "mime_type": mime_type,
                            "data": base64_image
                        }
                    }
                ]
            }],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": self.RESPONSE_SCHEMA,
                "temperature": 0.1,
                "maxOutputTokens": 1000,
            }
        }

        url_with_key = f"{self.api_url}?key={self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url_with_key, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    def _parse_response(self, response: Dict[str, Any]) -> ScanResult:
        """Parse Gemini API response into ScanResult"""
        try:
            candidates = response.get("candidates", [])
            if not candidates:
                raise ValueError("No candidates in response")

            parts = candidates[0].get("content", {}).get("parts", [])
            if not parts:
                raise ValueError("No parts in response")

            json_string = parts[0].get("text")
            if not json_string:
                raise ValueError("Response part has no text content")

            parsed = json.loads(json_string)
            if not isinstance(parsed, dict):
                raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

            document_number = parsed.get("documentNumber")

            return ScanResult(
                expiry_date=normalize_expiry_date(parsed.get("expiryDate")),
                document_type=normalize_document_type(parsed.get("documentType")),
                confidence=clamp_confidence(parsed.get("confidence")),
                document_number=str(document_number).strip() or None if document_number else None,
            )

        except Exception as e:
            logger.warning(f"Failed to parse scanner response: {str(e)}")
            return ScanResult.empty()
