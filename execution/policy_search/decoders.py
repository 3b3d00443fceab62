"""
Policy Document Decoders - PDF, Word and Markdown to normalized text

Uses PyMuPDF for PDF text and document properties, python-docx for Word
documents and PyYAML for Markdown front-matter. Each decoder returns plain
text plus whatever structured metadata the format carries; parse_document()
routes a file to its decoder and runs the structural extractor on the result.

Decode failures surface as DocumentDecodeError, never as empty text.
"""

import html
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import yaml

from .extractor import (
    DocumentMetadata,
    ExtractedDocument,
    Section,
    extract_document,
    extract_markdown_sections,
    extract_metadata,
    extract_title,
    merge_metadata,
)
from .heading_patterns import (
    FRONT_MATTER_PATTERN,
    HTML_COMMENT_CLOSE,
    HTML_COMMENT_OPEN,
    MARKDOWN_CLEANUP_PATTERNS,
    PDF_DATE_PATTERN,
)

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MARKDOWN_MIME_TYPES = ("text/markdown", "text/x-markdown")

SUPPORTED_MIME_TYPES = (PDF_MIME_TYPE, DOCX_MIME_TYPE, *MARKDOWN_MIME_TYPES)

EXTENSION_MIME_TYPES = {
    ".pdf": PDF_MIME_TYPE,
    ".docx": DOCX_MIME_TYPE,
    ".md": "text/markdown",
    ".markdown": "text/markdown",
}


class DocumentDecodeError(Exception):
    """The source file could not be turned into text (corrupt, encrypted, unreadable)."""


class UnsupportedDocumentTypeError(ValueError):
    """The file type or MIME type has no decoder."""


@dataclass
class DecodedText:
    """Normalized text produced by a format decoder."""
    text: str
    page_count: Optional[int] = None
    properties: DocumentMetadata = field(default_factory=DocumentMetadata)
    title: Optional[str] = None  # explicit title, e.g. from front-matter
    sections: Optional[list[Section]] = None  # format-native sections, if any


# =============================================================================
# MIME type routing
# =============================================================================

def get_mime_type_from_extension(file_path: str) -> str:
    """Detect MIME type from a file extension."""
    ext = Path(file_path).suffix.lower()
    try:
        return EXTENSION_MIME_TYPES[ext]
    except KeyError:
        raise UnsupportedDocumentTypeError(f"Unsupported file extension: {ext or file_path}") from None


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    return mime_type in SUPPORTED_MIME_TYPES


# =============================================================================
# PDF
# =============================================================================

def parse_pdf_date(pdf_date: Optional[str]) -> Optional[str]:
    """
    Convert a PDF date string (D:YYYYMMDDHHmmSS+HH'mm') to ISO 8601.

    Strings not in the expected format are returned unchanged.
    """
    if not pdf_date:
        return None

    match = PDF_DATE_PATTERN.match(pdf_date)
    if not match:
        return pdf_date

    try:
        return datetime(*(int(part) for part in match.groups())).isoformat()
    except ValueError:
        return pdf_date


def decode_pdf(file_path: str) -> DecodedText:
    """
    Extract text and document properties from a PDF with PyMuPDF.

    Raises:
        DocumentDecodeError: corrupt, encrypted or image-only PDF
    """
    import fitz  # PyMuPDF

    try:
        with fitz.open(file_path) as doc:
            if doc.needs_pass:
                raise DocumentDecodeError(f"PDF is encrypted: {Path(file_path).name}")

            page_count = len(doc)
            text = "\n".join(page.get_text() for page in doc)
            info = doc.metadata or {}
    except DocumentDecodeError:
        raise
    except Exception as e:
        raise DocumentDecodeError(f"Unreadable PDF {Path(file_path).name}: {e}") from e

    if page_count > 0 and not text.strip():
        # Scanned/image-only PDF; OCR is not supported
        raise DocumentDecodeError(f"No extractable text in PDF: {Path(file_path).name}")

    logger.debug(f"PyMuPDF extracted {len(text)} chars from {page_count} pages")

    properties = DocumentMetadata(
        author=info.get("author") or None,
        created_date=parse_pdf_date(info.get("creationDate")),
        modified_date=parse_pdf_date(info.get("modDate")),
    )
    return DecodedText(text=text, page_count=page_count, properties=properties)


# =============================================================================
# Word (.docx)
# =============================================================================

def _isoformat(value) -> Optional[str]:
    """Render dates as ISO strings; pass other scalars through as text."""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    return None


def decode_docx(file_path: str) -> DecodedText:
    """
    Extract paragraph text and core properties from a Word document.

    Raises:
        DocumentDecodeError: file is not a valid .docx package
    """
    import docx

    try:
        document = docx.Document(file_path)
        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
        core = document.core_properties
        properties = DocumentMetadata(
            author=core.author or None,
            created_date=_isoformat(core.created),
            modified_date=_isoformat(core.modified),
        )
    except Exception as e:
        raise DocumentDecodeError(f"Unreadable Word document {Path(file_path).name}: {e}") from e

    return DecodedText(text=text, properties=properties)


# =============================================================================
# Markdown
# =============================================================================

def split_front_matter(source: str) -> tuple[dict, str]:
    """
    Split YAML front-matter from a Markdown source.

    Returns:
        tuple: (front-matter mapping, remaining Markdown body)
    """
    match = FRONT_MATTER_PATTERN.match(source)
    if not match:
        return {}, source

    try:
        data = yaml.safe_load(match.group(1) or "") or {}
    except yaml.YAMLError as e:
        raise DocumentDecodeError(f"Invalid front-matter: {e}") from e

    if not isinstance(data, dict):
        raise DocumentDecodeError("Front-matter must be a mapping")
    return data, source[match.end():]


def strip_html_comments(markdown: str) -> str:
    """Remove <!-- ... --> comments in one pass. An unclosed comment is kept."""
    parts = []
    pos = 0
    while True:
        start = markdown.find(HTML_COMMENT_OPEN, pos)
        if start == -1:
            break
        end = markdown.find(HTML_COMMENT_CLOSE, start + len(HTML_COMMENT_OPEN))
        if end == -1:
            break
        parts.append(markdown[pos:start])
        pos = end + len(HTML_COMMENT_CLOSE)
    parts.append(markdown[pos:])
    return "".join(parts)


def markdown_to_text(markdown: str) -> str:
    """Convert Markdown to plain text."""
    text = strip_html_comments(markdown)
    for pattern, replacement in MARKDOWN_CLEANUP_PATTERNS:
        text = pattern.sub(replacement, text)

    # Unescape HTML entities (e.g. &amp; -> &)
    text = html.unescape(text)

    return text.strip()


def _first_present(front_matter: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = _isoformat(front_matter.get(key))
        if value:
            return value
    return None


def decode_markdown(file_path: str) -> DecodedText:
    """
    Read a Markdown file, parse its front-matter and strip Markdown syntax.

    Raises:
        DocumentDecodeError: unreadable, not UTF-8 or malformed front-matter
    """
    try:
        # utf-8-sig drops a leading byte-order mark before front-matter detection
        source = Path(file_path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentDecodeError(f"Unreadable Markdown file {Path(file_path).name}: {e}") from e

    front_matter, body = split_front_matter(source)

    properties = DocumentMetadata(
        effective_date=_first_present(front_matter, "effectiveDate", "effective_date", "date"),
        version=_first_present(front_matter, "version"),
        author=_first_present(front_matter, "author"),
        created_date=_first_present(front_matter, "date", "created"),
        modified_date=_first_present(front_matter, "updated", "modified"),
    )

    return DecodedText(
        text=markdown_to_text(body),
        properties=properties,
        title=_first_present(front_matter, "title"),
        sections=extract_markdown_sections(body),
    )


# =============================================================================
# Routing
# =============================================================================

_DECODERS = {
    PDF_MIME_TYPE: decode_pdf,
    DOCX_MIME_TYPE: decode_docx,
    "text/markdown": decode_markdown,
    "text/x-markdown": decode_markdown,
}


def decode_document(file_path: str, mime_type: Optional[str] = None) -> DecodedText:
    """Decode a file with the decoder for its MIME type (detected from the extension if omitted)."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {file_path}")

    mime_type = mime_type or get_mime_type_from_extension(file_path)
    decoder = _DECODERS.get(mime_type)
    if decoder is None:
        raise UnsupportedDocumentTypeError(f"Unsupported file type: {mime_type}")

    logger.info(f"Decoding {path.name} as {mime_type}")
    return decoder(str(path))


def parse_document(
    file_path: str,
    mime_type: Optional[str] = None,
    source_name: Optional[str] = None,
) -> ExtractedDocument:
    """
    Decode a policy document and extract its structure.

    Args:
        file_path: Path to the PDF, .docx or .md file
        mime_type: MIME type; detected from the extension when omitted
        source_name: Name used for the title fallback (defaults to file_path),
            useful when file_path is a temporary upload

    Returns:
        ExtractedDocument with title, content, sections and merged metadata
    """
    decoded = decode_document(file_path, mime_type)
    filename = source_name or file_path

    if decoded.sections is None:
        return extract_document(
            decoded.text,
            filename=filename,
            page_count=decoded.page_count,
            properties=decoded.properties,
        )

    # Formats with native headings keep their own sections
    heuristic = extract_metadata(decoded.text, decoded.page_count)
    return ExtractedDocument(
        title=decoded.title or extract_title(decoded.text, filename),
        content=decoded.text,
        sections=decoded.sections,
        metadata=merge_metadata(heuristic, decoded.properties),
    )
