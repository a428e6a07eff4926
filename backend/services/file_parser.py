"""Resume upload checks and text extraction.

Plain text and PDF are accepted. Formats whose markup or binary content
would pollute keyword matching are rejected with a message telling the
user to paste their resume instead.
"""

import io
import logging
import re

import pdfplumber

from config import settings
from services.errors import UploadRejectedError

logger = logging.getLogger(__name__)

MIN_RESUME_CHARS = 100

_PDF_MAGIC = b"%PDF-"
_ZIP_MAGIC = b"PK\x03\x04"  # DOCX, ODT, ...
_OLE_MAGIC = b"\xd0\xcf\x11\xe0"  # legacy .doc

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\ufffd]")
_LATEX_RE = re.compile(r"\\(?:documentclass|begin\{document\}|usepackage)")
_HTML_RE = re.compile(r"<!doctype\s+html|<html[\s>]|<body[\s>]", re.IGNORECASE)


def extract_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF file."""
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n".join(pages).strip()


def _reject(message: str, filename: str) -> UploadRejectedError:
    logger.warning("Rejected upload %r: %s", filename, message)
    return UploadRejectedError(message)


def detect_format_problem(text: str) -> str | None:
    """Plain-language reason the decoded text is unusable, or None."""
    if text.startswith("{\\rtf") or "\\rtf1" in text:
        return "RTF format detected. Please copy and paste your resume text instead."
    if _LATEX_RE.search(text):
        return "LaTeX source detected. Please paste the compiled resume text instead."
    if _HTML_RE.search(text):
        return "HTML detected. Please paste your resume as plain text instead."
    if _CONTROL_CHARS_RE.search(text):
        return "This file contains binary content. Please paste your resume text instead."
    return None


def extract_resume_text(content: bytes, filename: str = "") -> str:
    """Validate an uploaded resume and return its trimmed text."""
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise _reject(f"File is too large. Maximum size is {settings.max_upload_size_mb}MB.", filename)

    lower_name = filename.lower()
    if content.startswith(_ZIP_MAGIC) or content.startswith(_OLE_MAGIC) or lower_name.endswith((".docx", ".doc")):
        raise _reject("Word documents are not supported. Please copy and paste your resume text instead.", filename)

    if content.startswith(_PDF_MAGIC) or lower_name.endswith(".pdf"):
        try:
            text = extract_text(content)
        except Exception:
            raise _reject("Could not parse PDF file. Please paste your resume text instead.", filename)
        if not text:
            raise _reject("No text could be extracted from PDF. Please paste your resume text instead.", filename)
    else:
        text = content.decode("utf-8", errors="replace")
        if text.startswith("\ufeff"):
            text = text[1:]

    problem = detect_format_problem(text)
    if problem:
        raise _reject(problem, filename)

    text = text.strip()
    if len(text) < MIN_RESUME_CHARS:
        raise _reject("Resume is too short. Please provide a complete resume.", filename)
    return text
