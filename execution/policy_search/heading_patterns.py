"""
Pattern Definitions for Policy Structure Extraction

All regex patterns used to recognise section headings, titles and
metadata in policy documents. Modules import from here instead of
defining patterns inline.

Heading patterns are anchored to a single trimmed line with bounded
quantifiers. Markdown cleanup patterns stop each forward scan at the
token that would open another match. Both keep matching linear on
untrusted input.
"""

import re
from enum import Enum

# Longest label accepted after a heading prefix
MAX_LABEL_LENGTH = 200

# Heading length must be strictly between these bounds to open a section
MIN_HEADING_LENGTH = 2
MAX_HEADING_LENGTH = 200


class HeadingKind(str, Enum):
    """Heading styles, listed in the order they are tried."""
    NUMERIC = "numeric"
    ROMAN = "roman"
    LETTER = "letter"
    ABBREVIATION = "abbreviation"
    ALL_CAPS = "all_caps"


# =============================================================================
# Section Heading Patterns (first match wins)
# =============================================================================

# Group 1 is the prefix, group 2 (when present) the label.
HEADING_PATTERNS: tuple[tuple[HeadingKind, re.Pattern], ...] = (
    # "1", "1.2", "1.2.3:", up to six dot-separated groups
    (
        HeadingKind.NUMERIC,
        re.compile(r"^(\d{1,10}(?:\.\d{1,10}){0,5}[.:-]?)\s{0,20}(.{1,200})$"),
    ),
    # "I.", "IV:", "xii-"
    (
        HeadingKind.ROMAN,
        re.compile(r"^([IVXLC]{1,10}[.:-])\s{0,20}(.{1,200})$", re.IGNORECASE),
    ),
    # "A.", "B:", "C-"
    (
        HeadingKind.LETTER,
        re.compile(r"^([A-Z][.:-])\s{0,20}(.{1,200})$"),
    ),
    # "HR Leave Policy", "SEC Access Controls"
    (
        HeadingKind.ABBREVIATION,
        re.compile(r"^([A-Z]{2,4})\s{1,20}([A-Z].{0,199})$"),
    ),
    # "PURPOSE AND SCOPE"
    (
        HeadingKind.ALL_CAPS,
        re.compile(r"^([A-Z][A-Z ]{3,103})$"),
    ),
)

# Trailing punctuation stripped from a prefix before counting depth
PREFIX_PUNCTUATION = re.compile(r"[.:-]$")

# =============================================================================
# Markdown Heading Pattern (ATX style: "# Title" .. "###### Title")
# =============================================================================

MARKDOWN_HEADING_PATTERN = re.compile(r"^(#{1,6})\s{1,20}(.{1,200})$")

# =============================================================================
# Title Detection
# =============================================================================

TITLE_SCAN_LINES = 10
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 150

# Lines starting with these (lowercased) are metadata, not titles
TITLE_SKIP_PREFIXES = ("date", "version", "effective", "revision", "rev ")

# Lines containing this (lowercased) are page headers/footers
TITLE_SKIP_FRAGMENT = "page "

# Extensions removed when falling back to the filename
TITLE_FILENAME_EXTENSION = re.compile(r"\.(pdf|docx|md)$", re.IGNORECASE)

DEFAULT_TITLE = "Untitled"

# =============================================================================
# Date Patterns (for effective date metadata, tried in order)
# =============================================================================

_NUMERIC_DATE = r"(\d{1,2}[/-]\d{1,2}[/-]\d{2,4})"

EFFECTIVE_DATE_PATTERNS = (
    # "Effective Date: 01/15/2024", "effective 1-1-24"
    re.compile(r"effective\s{0,10}(?:date)?[:\s]{0,10}" + _NUMERIC_DATE, re.IGNORECASE),
    # "Dated: 3/4/2023", "Date 12-31-2022"
    re.compile(r"dated?[:\s]{0,10}" + _NUMERIC_DATE, re.IGNORECASE),
    # "January 15, 2024"
    re.compile(r"\b([A-Za-z]{3,20}\s{1,10}\d{1,2},?\s{1,10}\d{4})", re.IGNORECASE),
)

# =============================================================================
# Version Patterns (tried in order)
# =============================================================================

_DOTTED_NUMBER = r"(\d{1,10}(?:\.\d{1,10}){0,5})"

VERSION_PATTERNS = (
    # "Version: 2.1"
    re.compile(r"version[:\s]{0,10}" + _DOTTED_NUMBER, re.IGNORECASE),
    # "Rev 3", "Revision: 1.4"
    re.compile(r"rev(?:ision)?[:\s]{0,10}" + _DOTTED_NUMBER, re.IGNORECASE),
    # "v1.2.0"
    re.compile(r"\bv" + _DOTTED_NUMBER, re.IGNORECASE),
)

# =============================================================================
# Markdown-to-Text Cleanup (applied in order)
# =============================================================================

# A forward scan stops at the token that opens its next candidate match
# ("[", "(", "<", "*", "_", "`"), so scans from different start positions
# never overlap.
MARKDOWN_CLEANUP_PATTERNS = (
    (re.compile(r"^#{1,6}\s{0,20}", re.MULTILINE), ""),        # Headers
    (re.compile(r"!\[([^\[\]\n]{0,500})\]\([^()\n]{1,2000}\)"), ""),  # Images
    (re.compile(r"\[([^\[\]\n]{1,500})\]\([^()\n]{1,2000}\)"), r"\1"),  # Links
    (re.compile(r"\*\*([^*\n]{1,2000})\*\*"), r"\1"),          # Bold
    (re.compile(r"__([^_\n]{1,2000})__"), r"\1"),              # Bold (underscore)
    (re.compile(r"\*([^*\n]{1,2000})\*"), r"\1"),              # Italic
    (re.compile(r"`([^`\n]{1,2000})`"), r"\1"),                # Inline code
    (re.compile(r"^```[^\n]{0,100}$", re.MULTILINE), ""),      # Code fences
    (re.compile(r"^\s{0,3}>\s?", re.MULTILINE), ""),           # Blockquotes
    (re.compile(r"^\s{0,20}[-*+]\s{1,10}", re.MULTILINE), ""), # Bullets
    (re.compile(r"<[^<>\n]{1,500}>"), ""),                     # Inline HTML tags
    (re.compile(r"\n{3,}"), "\n\n"),                           # Blank runs
)

# HTML comments span lines and have no bounded length; they are removed
# with a str.find scan before the patterns above run.
HTML_COMMENT_OPEN = "<!--"
HTML_COMMENT_CLOSE = "-->"

# Front-matter block delimited by "---" lines at the top of the file.
# The block may be empty ("---\n---").
FRONT_MATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)

# =============================================================================
# PDF Date Format ("D:YYYYMMDDHHmmSS", optional timezone suffix)
# =============================================================================

PDF_DATE_PATTERN = re.compile(r"^D:(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})")
