"""
Policy Structure Extractor - Heuristic sections, title and metadata

Turns normalized plain text into a title, an ordered list of hierarchical
sections and best-effort metadata (effective date, version). Every input,
including empty text, produces a valid result: the heuristics degrade to
empty or fallback values instead of raising.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import PurePath
from typing import Optional

from .heading_patterns import (
    DEFAULT_TITLE,
    EFFECTIVE_DATE_PATTERNS,
    HEADING_PATTERNS,
    MARKDOWN_HEADING_PATTERN,
    MAX_HEADING_LENGTH,
    MIN_HEADING_LENGTH,
    PREFIX_PUNCTUATION,
    TITLE_FILENAME_EXTENSION,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    TITLE_SCAN_LINES,
    TITLE_SKIP_FRAGMENT,
    TITLE_SKIP_PREFIXES,
    VERSION_PATTERNS,
    HeadingKind,
)


@dataclass(frozen=True)
class Section:
    """A heading-delimited span of a policy document."""
    heading: str
    content: str
    level: int = 1  # 1 = top-level

    def to_dict(self) -> dict:
        return {
            "heading": self.heading,
            "content": self.content,
            "level": self.level,
        }


@dataclass
class DocumentMetadata:
    """Metadata found in document text or supplied by a format decoder."""
    effective_date: Optional[str] = None
    version: Optional[str] = None
    page_count: Optional[int] = None
    author: Optional[str] = None
    created_date: Optional[str] = None
    modified_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "effective_date": self.effective_date,
            "version": self.version,
            "page_count": self.page_count,
            "author": self.author,
            "created_date": self.created_date,
            "modified_date": self.modified_date,
        }


@dataclass
class ExtractedDocument:
    """Title, sections and metadata extracted from one document."""
    title: str
    content: str
    sections: list[Section] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "content": self.content,
            "sections": [s.to_dict() for s in self.sections],
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class HeadingMatch:
    """A line recognised as a heading candidate."""
    kind: HeadingKind
    heading: str
    level: int


# =============================================================================
# Heading classification
# =============================================================================

def classify_heading(line: str) -> Optional[HeadingMatch]:
    """
    Classify a trimmed line against HEADING_PATTERNS in priority order.

    Returns:
        HeadingMatch for the first pattern that matches, or None.
        The length bounds for a real section boundary are not applied here.
    """
    for kind, pattern in HEADING_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue

        prefix = match.group(1)
        label = match.group(2) if pattern.groups > 1 else None
        if label:
            heading = f"{prefix} {label}".strip()
            # Depth comes from the dots between numbers, not trailing punctuation
            number_part = PREFIX_PUNCTUATION.sub("", prefix)
            level = number_part.count(".") + 1
        else:
            heading = prefix.strip()
            level = 1
        return HeadingMatch(kind=kind, heading=heading, level=level)

    return None


def is_valid_heading(heading: str) -> bool:
    """Check the exclusive length bounds for a section heading."""
    return MIN_HEADING_LENGTH < len(heading) < MAX_HEADING_LENGTH


# =============================================================================
# Section extraction
# =============================================================================

class _SectionBuilder:
    """Accumulates lines into sections, dropping those left without content."""

    def __init__(self):
        self.sections: list[Section] = []
        self._heading: Optional[str] = None
        self._level = 1
        self._buffer: list[str] = []

    @property
    def is_open(self) -> bool:
        return self._heading is not None

    def open(self, heading: str, level: int) -> None:
        self.close()
        self._heading = heading
        self._level = level
        self._buffer = []

    def append(self, line: str) -> None:
        if self.is_open:
            self._buffer.append(line)

    def close(self) -> None:
        if not self.is_open:
            return
        content = "\n".join(self._buffer).strip()
        if content:
            self.sections.append(Section(heading=self._heading, content=content, level=self._level))
        self._heading = None
        self._buffer = []


def extract_sections(text: str) -> list[Section]:
    """
    Split plain text into sections using the heading heuristics.

    Blank lines are skipped, lines before the first heading are dropped and
    sections whose content trims to nothing are discarded.
    """
    builder = _SectionBuilder()

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        match = classify_heading(line)
        if match and is_valid_heading(match.heading):
            builder.open(match.heading, match.level)
        else:
            builder.append(line)

    builder.close()
    return builder.sections


def extract_markdown_sections(markdown: str) -> list[Section]:
    """Split Markdown source into sections on ATX headings (# .. ######)."""
    builder = _SectionBuilder()

    for raw_line in markdown.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        match = MARKDOWN_HEADING_PATTERN.match(line)
        if match:
            builder.open(match.group(2).strip(), len(match.group(1)))
        else:
            builder.append(line)

    builder.close()
    return builder.sections


# =============================================================================
# Title extraction
# =============================================================================

def _is_title_candidate(line: str) -> bool:
    lowered = line.lower()
    if TITLE_SKIP_FRAGMENT in lowered or lowered.startswith(TITLE_SKIP_PREFIXES):
        return False
    if not TITLE_MIN_LENGTH < len(line) < TITLE_MAX_LENGTH:
        return False
    if not (line[0].isalpha() and line[0].isupper()):
        return False
    return len(line.split()) >= 2


def title_from_filename(filename: Optional[str]) -> str:
    """Base name of the file with a .pdf/.docx/.md extension removed."""
    if not filename:
        return DEFAULT_TITLE
    name = PurePath(filename.replace("\\", "/")).name or filename
    return TITLE_FILENAME_EXTENSION.sub("", name) or DEFAULT_TITLE


def extract_title(text: str, filename: Optional[str] = None) -> str:
    """Extract a title-like line from the top of the text, else use the filename."""
    lines = [line.strip() for line in text.split("\n") if line.strip()]

    for line in lines[:TITLE_SCAN_LINES]:
        if _is_title_candidate(line):
            return line

    return title_from_filename(filename)


# =============================================================================
# Metadata extraction
# =============================================================================

def _first_match(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_metadata(text: str, page_count: Optional[int] = None) -> DocumentMetadata:
    """Find effective date and version in the text; page count is passed through."""
    return DocumentMetadata(
        effective_date=_first_match(EFFECTIVE_DATE_PATTERNS, text),
        version=_first_match(VERSION_PATTERNS, text),
        page_count=page_count,
    )


def merge_metadata(
    heuristic: DocumentMetadata,
    structured: Optional[DocumentMetadata],
) -> DocumentMetadata:
    """
    Merge structured metadata (document properties, front-matter) over
    heuristic metadata. Any field the structured source sets wins.
    """
    if structured is None:
        return replace(heuristic)

    overrides = {
        f.name: getattr(structured, f.name)
        for f in fields(DocumentMetadata)
        if getattr(structured, f.name) is not None
    }
    return replace(heuristic, **overrides)


def extract_document(
    text: str,
    filename: Optional[str] = None,
    page_count: Optional[int] = None,
    properties: Optional[DocumentMetadata] = None,
) -> ExtractedDocument:
    """
    Run title, section and metadata extraction over normalized text.

    Args:
        text: Normalized plain text of the document
        filename: Source filename, used when no title line is found
        page_count: Page count reported by the decoder, if any
        properties: Structured metadata that overrides heuristic values

    Returns:
        ExtractedDocument (never raises for any text input)
    """
    metadata = merge_metadata(extract_metadata(text, page_count), properties)
    return ExtractedDocument(
        title=extract_title(text, filename),
        content=text,
        sections=extract_sections(text),
        metadata=metadata,
    )
