"""
PDPA (Singapore Personal Data Protection Act) sanitizer.

Every text field of a scraped posting goes through strip_personal_data()
before it is stored: emails, Singapore phone numbers, NRIC/FIN numbers,
named contact persons and "contact: ..." fragments are redacted.
"""
import re
from typing import Optional

REDACTED = "[REDACTED]"

PERSONAL_DATA_PATTERNS = [
    # Email
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.IGNORECASE),
    # Singapore phone, optionally with country code
    re.compile(r"(?:\+65|\b65)[\s-]?[689]\d{3}[\s-]?\d{4}\b|\b[689]\d{3}[\s-]?\d{4}\b"),
    # NRIC / FIN
    re.compile(r"\b[STFG]\d{7}[A-Z]\b", re.IGNORECASE),
    # Honorific followed by a capitalised name
    re.compile(r"\b(?:Mr|Ms|Mrs|Miss|Dr)\.?\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"),
    # Contact-person fragments
    re.compile(r"\b(?:contact|email|call|reach|phone|tel|mobile)[\s:]+[^\n,]+", re.IGNORECASE),
]

_REPEATED_REDACTIONS = re.compile(r"(?:\[REDACTED\]\s*)+")


def strip_personal_data(text: Optional[str]) -> Optional[str]:
    """Redact personal data from text. Empty or None input is returned as-is."""
    if not text:
        return text

    cleaned = text
    for pattern in PERSONAL_DATA_PATTERNS:
        cleaned = pattern.sub(REDACTED, cleaned)

    cleaned = _REPEATED_REDACTIONS.sub(f"{REDACTED} ", cleaned)
    return cleaned.strip()


def contains_personal_data(text: Optional[str]) -> bool:
    """True if any personal data pattern matches."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in PERSONAL_DATA_PATTERNS)
