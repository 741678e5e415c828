"""
Text extraction for uploaded resumes.

PDF, DOCX and TXT are supported. PDFs go through a chain of strategies
(layout-aware extraction first, then a plain pass with a lenient reader)
because resume PDFs come out of every word processor and design tool there
is, and each strategy fails on a different subset of them.
"""

import re
import zipfile
from io import BytesIO
from typing import Optional, Tuple

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import FileNotDecryptedError, PdfReadError

from resumezap.config import get_settings
from resumezap.core.logger import get_logger
from resumezap.schemas import ParseMetadata, ParseResult

logger = get_logger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TXT_TYPE = "text/plain"

ALLOWED_TYPES = (PDF_TYPE, DOCX_TYPE, TXT_TYPE)
ALLOWED_EXTENSIONS = (".pdf", ".docx", ".txt")

MIN_TEXT_CHARS = 50
METADATA_TEXT_CHARS = 500
METADATA_INDICATORS = (
    "PDF-1.",
    "obj",
    "endobj",
    "stream",
    "endstream",
    "xref",
    "trailer",
    "Creator (",
    "Producer (",
    "ModDate",
    "CreationDate",
)


class PdfExtractionError(Exception):
    pass


def _kind(filename: str, content_type: Optional[str]) -> Optional[str]:
    mime = (content_type or "").lower()
    name = (filename or "").lower()
    if mime == PDF_TYPE or name.endswith(".pdf"):
        return "pdf"
    if mime == DOCX_TYPE or name.endswith(".docx"):
        return "docx"
    if mime == TXT_TYPE or name.endswith(".txt"):
        return "txt"
    return None


def validate_file_type(filename: str, content_type: Optional[str]) -> Tuple[bool, Optional[str]]:
    mime = (content_type or "").lower()
    name = (filename or "").lower()
    if mime in ALLOWED_TYPES or name.endswith(ALLOWED_EXTENSIONS):
        return True, None
    return False, "Please upload a PDF, DOCX, or TXT file."


def file_type_display_name(filename: str, content_type: Optional[str]) -> str:
    return {"pdf": "PDF", "docx": "DOCX", "txt": "TXT"}.get(_kind(filename, content_type), "Unknown")


def media_type_for(filename: str, content_type: Optional[str]) -> str:
    mime = (content_type or "").lower()
    if mime in ALLOWED_TYPES:
        return mime
    return {"pdf": PDF_TYPE, "docx": DOCX_TYPE}.get(_kind(filename, None), TXT_TYPE)


def word_count(text: str) -> int:
    return len(text.split())


def clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [re.sub(r"[ \t\f\v\u00a0]+", " ", line).strip() for line in text.split("\n")]
    text = "\n".join(line for line in lines if line)
    # paragraph break after a sentence that ends a line
    return re.sub(r"([.!?])\n([A-Z])", r"\1\n\n\2", text).strip()


def _failure(error: str) -> ParseResult:
    return ParseResult(success=False, text="", error=error)


# =========================
# PDF
# =========================
def _open_pdf(data: bytes, strict: bool) -> PdfReader:
    reader = PdfReader(BytesIO(data), strict=strict)
    if reader.is_encrypted:
        # owner-password-only PDFs open with an empty user password
        try:
            if not reader.decrypt(""):
                raise PdfExtractionError("password protected")
        except (FileNotDecryptedError, NotImplementedError) as e:
            raise PdfExtractionError("password protected") from e
    return reader


def _looks_like_metadata(text: str) -> bool:
    return len(text) < METADATA_TEXT_CHARS and any(ind in text for ind in METADATA_INDICATORS)


def _parse_pdf_layout(data: bytes, filename: str) -> ParseResult:
    reader = _open_pdf(data, strict=False)
    pages = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            page_text = page.extract_text(extraction_mode="layout") or ""
        except Exception as e:
            logger.warning("Failed to extract text from page %d of %s: %s", page_num, filename, e)
            continue
        if page_text.strip():
            pages.append(page_text)
        logger.debug("Extracted %d characters from page %d", len(page_text), page_num)

    text = clean_text("\n\n".join(pages))
    if len(text) < MIN_TEXT_CHARS:
        raise PdfExtractionError("PDF text extraction resulted in insufficient content")
    if _looks_like_metadata(text):
        raise PdfExtractionError("PDF appears to contain mostly metadata rather than readable content")

    return ParseResult(
        success=True,
        text=text,
        metadata=ParseMetadata(
            page_count=len(reader.pages),
            word_count=word_count(text),
            file_size=len(data),
            file_name=filename,
            file_type="PDF",
        ),
    )


def _parse_pdf_plain(data: bytes, filename: str) -> ParseResult:
    logger.info("Trying alternative PDF parsing method for %s", filename)
    reader = _open_pdf(data, strict=False)
    chunks = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            page_text = page.extract_text() or ""
        except Exception as e:
            logger.warning("Alternative method failed on page %d: %s", page_num, e)
            continue
        items = [s for s in page_text.split() if s]
        if items:
            chunks.append(" ".join(items))

    text = re.sub(r"\s+", " ", " ".join(chunks)).strip()
    if len(text) < MIN_TEXT_CHARS:
        raise PdfExtractionError("Alternative PDF parsing also resulted in insufficient content")

    return ParseResult(
        success=True,
        text=text,
        metadata=ParseMetadata(
            page_count=len(reader.pages),
            word_count=word_count(text),
            file_size=len(data),
            file_name=filename,
            file_type="PDF (Alternative)",
        ),
    )


def _pdf_failure_message(error: Exception) -> str:
    msg = str(error).lower()
    if isinstance(error, PdfReadError) or "invalid pdf" in msg or "eof marker" in msg:
        return "Invalid or corrupted PDF file. Please ensure the file is a valid PDF."
    if "password" in msg:
        return "Password-protected PDFs are not supported. Please use an unprotected PDF."
    if "metadata" in msg:
        return (
            "This PDF appears to be image-based or has complex formatting. Please try converting it "
            "to text format first, or use a DOCX/TXT version of your resume."
        )
    if "insufficient content" in msg:
        return (
            "Could not extract sufficient text from PDF. The file may be image-based or have complex "
            "formatting. Please try a DOCX or TXT version."
        )
    return "Failed to extract readable text from PDF."


def parse_pdf(data: bytes, filename: str) -> ParseResult:
    logger.info("Starting PDF parsing for: %s", filename)
    try:
        result = _parse_pdf_layout(data, filename)
        logger.info("PDF parsing completed successfully")
        return result
    except Exception as primary:
        logger.warning("Layout PDF parsing failed for %s: %s", filename, primary)
        try:
            return _parse_pdf_plain(data, filename)
        except Exception as alternative:
            logger.error("Alternative PDF parsing also failed for %s: %s", filename, alternative)
            return _failure(_pdf_failure_message(primary))


# =========================
# DOCX / TXT
# =========================
def parse_docx(data: bytes, filename: str) -> ParseResult:
    logger.info("Starting DOCX parsing for: %s", filename)
    try:
        doc = Document(BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
        logger.error("DOCX parsing failed for %s: %s", filename, e)
        return _failure("Invalid or corrupted DOCX file. Please try a different file.")
    except Exception as e:
        logger.error("DOCX parsing failed for %s: %s", filename, e)
        return _failure(f"DOCX parsing error: {e}")

    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    text = clean_text("\n".join(parts))
    if not text:
        return _failure("DOCX file appears to be empty or contains no readable text.")

    logger.info("DOCX parsing completed successfully")
    return ParseResult(
        success=True,
        text=text,
        metadata=ParseMetadata(
            word_count=word_count(text),
            file_size=len(data),
            file_name=filename,
            file_type="DOCX",
        ),
    )


def decode_text(data: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


def parse_txt(data: bytes, filename: str) -> ParseResult:
    logger.info("Starting TXT parsing for: %s", filename)
    text = clean_text(decode_text(data))
    if not text:
        return _failure("Text file appears to be empty.")

    logger.info("TXT parsing completed successfully")
    return ParseResult(
        success=True,
        text=text,
        metadata=ParseMetadata(
            word_count=word_count(text),
            file_size=len(data),
            file_name=filename,
            file_type="TXT",
        ),
    )


def parse_file(filename: str, content_type: Optional[str], data: bytes) -> ParseResult:
    """Route an upload to the matching parser after size checks."""
    logger.info("Starting file parsing for: %s Type: %s", filename, file_type_display_name(filename, content_type))
    settings = get_settings()

    if len(data) > settings.max_upload_bytes:
        return _failure("File size exceeds 10MB limit. Please use a smaller file.")
    if len(data) < settings.min_upload_bytes:
        return _failure("File is too small. Please ensure your file contains resume content.")

    parsers = {"pdf": parse_pdf, "docx": parse_docx, "txt": parse_txt}
    parser = parsers.get(_kind(filename, content_type))
    if parser is None:
        return _failure("Unsupported file format. Please upload a PDF, DOCX, or TXT file.")

    try:
        return parser(data, filename)
    except Exception:
        logger.exception("Unexpected error during parsing of %s", filename)
        return _failure("An unexpected error occurred while parsing the file. Please try again.")
