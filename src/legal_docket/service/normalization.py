"""
Text normalization for mixed Nepali/English OCR output.
"""
import hashlib
import re
import unicodedata

DEVANAGARI_DIGITS = "\u0966\u0967\u0968\u0969\u096a\u096b\u096c\u096d\u096e\u096f"
_ASCII_DIGITS = str.maketrans({d: str(i) for i, d in enumerate(DEVANAGARI_DIGITS)})

# Zero-width space/non-joiner/joiner and soft hyphen
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\u00ad]")
_QUOTES = str.maketrans({"\u201c": '"', "\u201d": '"', "\u2018": "'", "\u2019": "'"})

NORMALIZATION_VERSION = "v1"
REVIEW_CONFIDENCE_THRESHOLD = 0.85

SECTION_BY_DOCUMENT_TYPE = {
    "POA": "poa",
    "Petition": "petition",
    "Reply": "reply",
    "Evidence": "evidence",
    "Interim Order": "order",
    "Testimonial": "other",
    "District Judgment": "judgment",
    "High Court Appeal": "appeal",
    "High Court Judgment": "judgment",
    "Supreme Court Appeal": "appeal",
    "Supreme Court Judgment": "judgment",
}


def normalize_nepali(text: str) -> str:
    """NFC-compose, drop invisible joiners and soft hyphens, straighten quotes, trim."""
    text = unicodedata.normalize("NFC", text or "")
    text = _INVISIBLE_RE.sub("", text)
    return text.translate(_QUOTES).strip()


def to_ascii_digits(text: str) -> str:
    """Replace the ten Devanagari digits with ASCII numerals; everything else is kept."""
    return (text or "").translate(_ASCII_DIGITS)


def sha256_text(text: str) -> str:
    return hashlib.sha256((text or "").encode("utf-8")).hexdigest()


def section_for(document_type: str | None) -> str:
    return SECTION_BY_DOCUMENT_TYPE.get(document_type or "", "other")


def needs_review_for(avg_confidence: float) -> bool:
    return avg_confidence < REVIEW_CONFIDENCE_THRESHOLD


def script_ratio(text: str) -> dict:
    """Share of Devanagari and Latin letters among all letters of ``text``."""
    devanagari = latin = total = 0
    for ch in text or "":
        if not ch.isalpha() and not unicodedata.category(ch).startswith("M"):
            continue
        total += 1
        if "\u0900" <= ch <= "\u097f":
            devanagari += 1
        elif ch.isascii():
            latin += 1
    if not total:
        return {"devanagari": 0.0, "latin": 0.0}
    return {"devanagari": round(devanagari / total, 4), "latin": round(latin / total, 4)}
