"""Tests for extractor.py - heading classification, sections, title and metadata."""

import pytest

from execution.policy_search.extractor import (
    DocumentMetadata,
    ExtractedDocument,
    Section,
    classify_heading,
    extract_document,
    extract_markdown_sections,
    extract_metadata,
    extract_sections,
    extract_title,
    is_valid_heading,
    merge_metadata,
    title_from_filename,
)
from execution.policy_search.heading_patterns import HeadingKind


# =============================================================================
# Heading classification
# =============================================================================

class TestClassifyHeading:
    @pytest.mark.parametrize("line,level", [
        ("1 Foo", 1),
        ("1. Foo", 1),
        ("1.2 Foo", 2),
        ("1.2.3 Foo", 3),
        ("1.2.3.4. Foo", 4),
        ("1.2.3.4.5.6: Foo", 6),
    ])
    def test_numeric_level_is_dot_count_plus_one(self, line, level):
        match = classify_heading(line)
        assert match.kind == HeadingKind.NUMERIC
        assert match.level == level

    def test_numeric_heading_text(self):
        assert classify_heading("2.1 Password Rules").heading == "2.1 Password Rules"

    def test_roman(self):
        match = classify_heading("IV. Enforcement")
        assert match.kind == HeadingKind.ROMAN
        assert match.heading == "IV. Enforcement"
        assert match.level == 1

    def test_letter(self):
        match = classify_heading("B: Data Handling")
        assert match.kind == HeadingKind.LETTER
        assert match.heading == "B: Data Handling"

    def test_abbreviation(self):
        match = classify_heading("HR Leave Policy")
        assert match.kind == HeadingKind.ABBREVIATION
        assert match.heading == "HR Leave Policy"
        assert match.level == 1

    def test_all_caps(self):
        match = classify_heading("PURPOSE AND SCOPE")
        assert match.kind == HeadingKind.ALL_CAPS
        assert match.heading == "PURPOSE AND SCOPE"
        assert match.level == 1

    def test_first_match_wins(self):
        # "C." is both a roman numeral and a single letter; roman is tried first
        assert classify_heading("C. Controls").kind == HeadingKind.ROMAN

    def test_plain_sentence(self):
        assert classify_heading("Employees must lock their screens.") is None


class TestIsValidHeading:
    def test_boundaries(self):
        assert not is_valid_heading("ab")
        assert is_valid_heading("abc")
        assert is_valid_heading("x" * 199)
        assert not is_valid_heading("x" * 200)


# =============================================================================
# Section extraction
# =============================================================================

class TestExtractSections:
    def test_sample_policy(self, sample_policy_text):
        sections = extract_sections(sample_policy_text)
        assert [(s.heading, s.level) for s in sections] == [
            ("1. Purpose", 1),
            ("1.1 Scope", 2),
            ("1.1.1 Exclusions", 3),
            ("2. Password Requirements", 1),
            ("II. Encryption", 1),
            ("A. Incident Response", 1),
            ("HR Training Obligations", 1),
            ("ACCEPTABLE USE", 1),
            ("4. Enforcement", 1),
        ]

    def test_content_lines_joined_with_newline(self, sample_policy_text):
        purpose = extract_sections(sample_policy_text)[0]
        assert purpose.content == (
            "This policy defines how the organisation protects information assets.\n"
            "It applies to all employees and contractors."
        )

    def test_blank_lines_skipped(self):
        sections = extract_sections("1. Purpose\nLine one\n\n\nLine two")
        assert sections[0].content == "Line one\nLine two"

    def test_empty_section_discarded(self):
        sections = extract_sections("1. Alpha\n2. Beta\nBeta content")
        assert [s.heading for s in sections] == ["2. Beta"]

    def test_trailing_empty_section_discarded(self):
        sections = extract_sections("1. Alpha\nAlpha content\n2. Beta")
        assert [s.heading for s in sections] == ["1. Alpha"]

    def test_lines_before_first_heading_dropped(self):
        sections = extract_sections("Some preamble text\nMore preamble\n1. Purpose\nBody text")
        assert len(sections) == 1
        assert "preamble" not in sections[0].content

    def test_heading_of_200_chars_rejected(self):
        heading_line = "1 " + "x" * 198
        assert extract_sections(f"{heading_line}\nBody text") == []

    def test_heading_of_199_chars_accepted(self):
        heading_line = "1 " + "x" * 197
        sections = extract_sections(f"{heading_line}\nBody text")
        assert len(sections) == 1
        assert len(sections[0].heading) == 199

    def test_short_heading_accepted(self):
        sections = extract_sections("1 A\nBody text")
        assert sections[0].heading == "1 A"

    def test_rejected_heading_becomes_content(self):
        long_line = "2 " + "y" * 198
        sections = extract_sections(f"1. Purpose\n{long_line}")
        assert sections[0].content == long_line

    def test_no_headings(self):
        assert extract_sections("just some text\nwith no structure") == []

    def test_empty_text(self):
        assert extract_sections("") == []

    def test_adversarial_lines(self):
        text = "\n".join(["1" * 100_000, "A" * 100_000, "1." * 50_000, "HR " + "a" * 100_000])
        assert extract_sections(text) == []


class TestExtractMarkdownSections:
    def test_atx_levels(self):
        sections = extract_markdown_sections(
            "# Policy\nIntro text\n## Scope\nAll staff\n### Exceptions\nNone"
        )
        assert [(s.heading, s.level) for s in sections] == [
            ("Policy", 1),
            ("Scope", 2),
            ("Exceptions", 3),
        ]

    def test_heading_without_content_dropped(self):
        sections = extract_markdown_sections("# Title\n## Body\nText")
        assert [s.heading for s in sections] == ["Body"]


# =============================================================================
# Title extraction
# =============================================================================

class TestExtractTitle:
    def test_first_title_like_line(self, sample_policy_text):
        assert extract_title(sample_policy_text) == "Information Security Policy"

    def test_skips_metadata_and_page_lines(self):
        text = "\n".join([
            "Version 2.0 Draft",
            "Effective January 2024",
            "Date of issue 2024",
            "Revision history attached",
            "rev 3 notes",
            "Page 2 of 9",
            "short",
            "lowercase start line",
            "Singleword",
            "Employee Handbook",
        ])
        assert extract_title(text) == "Employee Handbook"

    def test_only_first_ten_lines_scanned(self):
        text = "\n".join(["x"] * 10 + ["Employee Handbook"])
        assert extract_title(text, "handbook.pdf") == "handbook"

    def test_filename_fallback(self):
        assert extract_title("", "reports/Leave Policy.PDF") == "Leave Policy"

    def test_no_filename(self):
        assert extract_title("") == "Untitled"


class TestTitleFromFilename:
    @pytest.mark.parametrize("filename,expected", [
        ("leave.pdf", "leave"),
        ("Code Of Conduct.docx", "Code Of Conduct"),
        ("remote.MD", "remote"),
        ("/srv/uploads/travel.pdf", "travel"),
        ("C:\\policies\\hr.docx", "hr"),
        ("notes.txt", "notes.txt"),
    ])
    def test_strips_extension(self, filename, expected):
        assert title_from_filename(filename) == expected


# =============================================================================
# Metadata extraction
# =============================================================================

class TestExtractMetadata:
    def test_sample_policy(self, sample_policy_text):
        metadata = extract_metadata(sample_policy_text)
        assert metadata.effective_date == "01/15/2024"
        assert metadata.version == "2.1"

    def test_effective_short_form(self):
        assert extract_metadata("effective 1-1-24").effective_date == "1-1-24"

    def test_dated(self):
        assert extract_metadata("Dated: 3/4/2023").effective_date == "3/4/2023"

    def test_textual_date(self):
        metadata = extract_metadata("Approved on January 15, 2024 by the board.")
        assert metadata.effective_date == "January 15, 2024"

    def test_first_family_wins(self):
        text = "Signed March 3, 2023\nEffective Date: 02/01/2024"
        assert extract_metadata(text).effective_date == "02/01/2024"

    def test_version_forms(self):
        assert extract_metadata("Revision: 1.4").version == "1.4"
        assert extract_metadata("Policy v1.2.0").version == "1.2.0"
        assert extract_metadata("Version 2 supersedes v9").version == "2"

    def test_page_count_passed_through(self):
        assert extract_metadata("text", page_count=7).page_count == 7

    def test_nothing_found(self):
        assert extract_metadata("nothing to see") == DocumentMetadata()


class TestMergeMetadata:
    def test_structured_overrides_heuristic(self):
        heuristic = DocumentMetadata(effective_date="01/01/2020", version="1.0", page_count=3)
        structured = DocumentMetadata(version="2.0", author="Jane Doe")
        merged = merge_metadata(heuristic, structured)
        assert merged.version == "2.0"
        assert merged.author == "Jane Doe"
        assert merged.effective_date == "01/01/2020"
        assert merged.page_count == 3

    def test_inputs_not_mutated(self):
        heuristic = DocumentMetadata(version="1.0")
        merge_metadata(heuristic, DocumentMetadata(version="2.0"))
        assert heuristic.version == "1.0"

    def test_no_structured_source(self):
        heuristic = DocumentMetadata(version="1.0")
        assert merge_metadata(heuristic, None) == heuristic


# =============================================================================
# Full extraction
# =============================================================================

class TestExtractDocument:
    def test_sample_policy(self, sample_policy_text):
        doc = extract_document(sample_policy_text, filename="infosec.pdf", page_count=4)
        assert isinstance(doc, ExtractedDocument)
        assert doc.title == "Information Security Policy"
        assert doc.content == sample_policy_text
        assert len(doc.sections) == 9
        assert doc.metadata.page_count == 4
        assert doc.metadata.version == "2.1"

    def test_properties_take_precedence(self, sample_policy_text):
        doc = extract_document(
            sample_policy_text,
            properties=DocumentMetadata(version="3.0", author="Security Office"),
        )
        assert doc.metadata.version == "3.0"
        assert doc.metadata.author == "Security Office"
        assert doc.metadata.effective_date == "01/15/2024"

    def test_empty_text_never_raises(self):
        doc = extract_document("")
        assert doc.title == "Untitled"
        assert doc.sections == []
        assert doc.metadata == DocumentMetadata()

    def test_to_dict(self):
        doc = extract_document("1. Purpose\nprotect data", filename="p.md")
        data = doc.to_dict()
        assert data["title"] == "p"
        assert data["sections"] == [{"heading": "1. Purpose", "content": "protect data", "level": 1}]
        assert data["metadata"]["version"] is None


class TestSection:
    def test_default_level(self):
        assert Section(heading="Scope", content="All staff").level == 1
