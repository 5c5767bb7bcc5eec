"""
Uploaded file → plain text for the import pipeline.
Accepts .txt, .md and .pdf; PDF pages are read with pdfplumber.
"""
import io
import logging
from pathlib import Path
import pdfplumber
from contentflow.errors import ValidationError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}
PDF_SUFFIX = ".pdf"
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | {PDF_SUFFIX}


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        # legacy exports from Word / Notepad
        return data.decode("latin-1")


def _pdf_text(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
    logger.debug("PDF upload: %d pages read", len(pages))
    # keep page breaks as section separators
    return "\n\n\n".join(pages)


def extract_upload_text(filename: str, data: bytes, max_bytes: int) -> str:
    """Raises ValidationError on unsupported type, oversize or unreadable file."""
    suffix = Path(filename or "").suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValidationError(f"Unsupported file type '{suffix or filename}'. Use .txt, .md or .pdf")
    if len(data) > max_bytes:
        raise ValidationError(f"File '{filename}' exceeds {max_bytes} bytes")
    if not data:
        raise ValidationError(f"File '{filename}' is empty")

    if suffix in TEXT_SUFFIXES:
        return _decode_text(data)

    try:
        return _pdf_text(data)
    except Exception as e:
        logger.warning("PDF upload '%s' could not be read: %s", filename, e)
        raise ValidationError(f"Could not read PDF '{filename}'") from e
