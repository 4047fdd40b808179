import io
import logging
import os
import re
from typing import List

import docx
import fitz  # PyMuPDF
from pdfminer.high_level import extract_text as pdfminer_extract_text

from .errors import ParseError, UnsupportedFormatError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"

SUPPORTED_MIME_TYPES = (PDF_MIME, DOCX_MIME, DOC_MIME, TEXT_MIME)

EXTENSION_MIME_TYPES = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".doc": DOC_MIME,
    ".txt": TEXT_MIME,
}

PDF_TEXT_MIN_LENGTH = 80  # below this, try the next PDF backend

CHAR_REPLACEMENTS = {
    "\u2022": "-",
    "\u2023": "-",
    "\u25e6": "-",
    "\u2043": "-",
    "\u2212": "-",
    "\u2013": "-",
    "\u2014": "-",
    "\u2010": "-",
    "\u2012": "-",
    "\u2015": "-",
    "\uf0b7": "-",
    "\uf0d8": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\ufb01": "fi",
    "\ufb02": "fl",
    "\u00ad": "-",
    "\u00b7": "-",
    "\u00a0": " ",
    "\u2024": ".",
}
TRANSLATION_TABLE = str.maketrans(CHAR_REPLACEMENTS)

NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n]")
SPACE_RUN_RE = re.compile(r"[ \t]+")


def guess_mime_type(filename: str, declared: str = "") -> str:
    """Prefer a supported declared type; otherwise infer from the file extension."""
    if declared in SUPPORTED_MIME_TYPES:
        return declared
    ext = os.path.splitext(filename or "")[1].lower()
    return EXTENSION_MIME_TYPES.get(ext, declared or "application/octet-stream")


def extract_text(file_bytes: bytes, mime_type: str) -> str:
    """Extract cleaned text from an uploaded PDF, Word or plain-text document."""
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedFormatError(mime_type)

    try:
        if mime_type == PDF_MIME:
            text = _extract_pdf_text(file_bytes)
        elif mime_type in (DOCX_MIME, DOC_MIME):
            text = _extract_docx_text(file_bytes)
        else:
            text = file_bytes.decode("utf-8", errors="replace")
    except ParseError:
        raise
    except Exception as exc:
        logger.warning("Text extraction failed for %s: %s", mime_type, exc)
        raise ParseError(f"Could not read {mime_type} document: {exc}") from exc

    return clean_text(text)


def _extract_pdf_text(file_bytes: bytes) -> str:
    """PyMuPDF page text, then PyMuPDF blocks, then pdfminer."""
    text = ""
    errors: List[str] = []

    try:
        with fitz.open(stream=file_bytes, filetype="pdf") as doc:
            text = "\n".join(page.get_text("text", sort=True) for page in doc)
            if len(text.strip()) < PDF_TEXT_MIN_LENGTH:
                block_chunks = [
                    block[4].strip() for page in doc for block in page.get_text("blocks") if block[4]
                ]
                alt_text = "\n".join(block_chunks)
                if len(alt_text.strip()) > len(text.strip()):
                    text = alt_text
    except Exception as exc:
        errors.append(f"PyMuPDF: {exc}")

    if len(text.strip()) < PDF_TEXT_MIN_LENGTH:
        try:
            text = pdfminer_extract_text(io.BytesIO(file_bytes)) or text
        except Exception as exc:
            errors.append(f"pdfminer: {exc}")

    if not text.strip():
        if errors:
            raise ParseError("; ".join(errors))
        logger.warning("PDF text extraction produced no text")
    return text


def _extract_docx_text(file_bytes: bytes) -> str:
    document = docx.Document(io.BytesIO(file_bytes))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def clean_text(text: str) -> str:
    """Normalise whitespace and unicode punctuation, keeping line breaks."""
    if not text:
        return ""

    cleaned = text.translate(TRANSLATION_TABLE)
    cleaned = re.sub(r"\r\n?", "\n", cleaned)
    cleaned = NON_PRINTABLE_RE.sub("", cleaned.replace("\t", " "))
    cleaned = SPACE_RUN_RE.sub(" ", cleaned)
    cleaned = re.sub(r" *\n *", "\n", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()
