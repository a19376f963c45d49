"""
Document Extractor — Upload to Transcript Text

Turns an uploaded document into the plain text the engine consumes.
Supported: plain text, JSON, CSV, HTML, PDF.

The declared media type wins when it is supported; otherwise the file
extension decides. Extracted text has control characters collapsed to
spaces, is trimmed, and is cut to the configured character budget.
"""

from __future__ import annotations

import io
import json
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Callable, Optional

import pdfplumber
from bs4 import BeautifulSoup

from lieanalyzer.config import settings


class ExtractionError(ValueError):
    """Base class for documents that cannot be turned into text."""


class UnsupportedDocumentError(ExtractionError):
    """Neither the declared type nor the extension is supported."""


class EmptyDocumentError(ExtractionError):
    """The document produced no text after normalisation."""


@dataclass(frozen=True)
class ExtractedDocument:
    text: str
    media_type: str
    label: str
    file_name: str
    truncated: bool = False
    original_chars: int = 0


# ============================================================
# PER-TYPE EXTRACTORS
# ============================================================

def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _extract_plain(data: bytes) -> str:
    return _decode(data)


def _extract_json(data: bytes) -> str:
    raw = _decode(data)
    try:
        return json.dumps(json.loads(raw), indent=2, ensure_ascii=False)
    except json.JSONDecodeError:
        return raw


def _extract_html(data: bytes) -> str:
    soup = BeautifulSoup(_decode(data), "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(separator="\n", strip=True)


def _extract_pdf(data: bytes) -> str:
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages_text = []
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages_text.append(page_text)
    except Exception as e:
        raise ExtractionError(f"Could not read PDF: {e}") from e
    return "\n\n".join(pages_text)


SUPPORTED_TYPES: dict[str, tuple[str, Callable[[bytes], str]]] = {
    "text/plain": ("Plain Text", _extract_plain),
    "application/json": ("JSON", _extract_json),
    "text/csv": ("CSV", _extract_plain),
    "text/html": ("HTML", _extract_html),
    "application/pdf": ("PDF", _extract_pdf),
}

EXTENSION_TYPES: dict[str, str] = {
    ".txt": "text/plain",
    ".json": "application/json",
    ".csv": "text/csv",
    ".html": "text/html",
    ".htm": "text/html",
    ".pdf": "application/pdf",
}


# ============================================================
# NORMALISATION
# ============================================================

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]+")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_control_characters(text: str) -> str:
    return _CONTROL_CHARS_RE.sub(" ", text).strip()


def normalize_text(text: str, max_chars: Optional[int] = None) -> tuple[str, bool]:
    """
    Strip control characters and apply the character budget.

    Returns:
        (text, truncated)
    """
    limit = settings.MAX_CHARS if max_chars is None else max_chars
    cleaned = strip_control_characters(text)
    if len(cleaned) > limit:
        return cleaned[:limit], True
    return cleaned, False


def create_preview(text: str, limit: Optional[int] = None) -> str:
    """Single-line preview, cut with an ellipsis when longer than the limit."""
    limit = settings.PREVIEW_CHARS if limit is None else limit
    normalized = _WHITESPACE_RE.sub(" ", text).strip()
    if len(normalized) > limit:
        return f"{normalized[:limit]}…"
    return normalized


# ============================================================
# ENTRY POINT
# ============================================================

def resolve_media_type(file_name: str, declared_type: Optional[str] = None) -> Optional[str]:
    """Pick the extractor key: supported declared type first, then extension."""
    if declared_type:
        base_type = declared_type.split(";", 1)[0].strip().lower()
        if base_type in SUPPORTED_TYPES:
            return base_type
    extension = PurePath(file_name or "").suffix.lower()
    return EXTENSION_TYPES.get(extension)


def extract_document(
    data: bytes,
    file_name: str,
    declared_type: Optional[str] = None,
    max_chars: Optional[int] = None,
) -> ExtractedDocument:
    """
    Extract normalised transcript text from an uploaded document.

    Raises:
        UnsupportedDocumentError: type cannot be determined or is not supported.
        EmptyDocumentError: no text survives normalisation.
        ExtractionError: the document is corrupt.
    """
    media_type = resolve_media_type(file_name, declared_type)
    if media_type is None:
        raise UnsupportedDocumentError(
            "Unsupported file type. Only txt, json, csv, html and pdf are accepted."
        )

    label, extractor = SUPPORTED_TYPES[media_type]
    raw = extractor(data)
    cleaned = strip_control_characters(raw)
    if not cleaned:
        raise EmptyDocumentError("No text could be extracted from the file.")

    text, truncated = normalize_text(cleaned, max_chars=max_chars)
    return ExtractedDocument(
        text=text,
        media_type=media_type,
        label=label,
        file_name=file_name,
        truncated=truncated,
        original_chars=len(cleaned),
    )
