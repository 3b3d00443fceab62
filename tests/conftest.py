"""
Shared fixtures and test utilities for Policy Search tests.

Provides sample policy text, a deterministic policy index and generated
PDF / Word / Markdown files so all tests run without network access.
"""

import sys
import itertools
from pathlib import Path
from datetime import datetime, timezone

import pytest
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Path setup - ensure the execution package is importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

# ---------------------------------------------------------------------------
# Sample policy text
# ---------------------------------------------------------------------------
SAMPLE_POLICY = """
Page 1 of 4
Information Security Policy
Effective Date: 01/15/2024
Version: 2.1

1. Purpose
This policy defines how the organisation protects information assets.
It applies to all employees and contractors.

1.1 Scope
All systems that store or process customer data.

1.1.1 Exclusions
Public marketing content.

2. Password Requirements
Passwords must be at least 14 characters long.
Passwords must be rotated every 90 days.

II. Encryption
Customer data must be encrypted at rest and in transit.

A. Incident Response
Report incidents to the security team within 24 hours.

HR Training Obligations
Staff complete security awareness training annually.

ACCEPTABLE USE
Company equipment is for business use only.

3. Empty Section
4. Enforcement
Violations may result in disciplinary action.
"""

SAMPLE_MARKDOWN = """---
title: Remote Work Policy
effectiveDate: 2024-03-01
version: "3.0"
author: Jane Doe
updated: 2024-04-10
---

# Remote Work Policy

## Eligibility
Employees with manager approval may work remotely.

## Equipment
Use **company-issued** laptops only. See [the IT page](https://intranet.example.com/it).

## Security
Connect through the corporate VPN at all times.
"""


@pytest.fixture
def sample_policy_text():
    """Return the sample plain-text policy."""
    return SAMPLE_POLICY


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed UTC timestamp."""
    stamp = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    return lambda: stamp


@pytest.fixture
def sequential_ids():
    """Id factory yielding policy-1, policy-2, ..."""
    counter = itertools.count(1)
    return lambda: f"policy-{next(counter)}"


@pytest.fixture
def policy_index(fixed_clock, sequential_ids):
    """Return an empty PolicyIndex with deterministic ids and clock."""
    from execution.policy_search.policy_index import PolicyIndex
    return PolicyIndex(id_factory=sequential_ids, clock=fixed_clock)


@pytest.fixture
def encryption_document():
    """The 'Encryption Standards' document used for scoring checks.

    The body mentions "encryption" once; the title is not repeated in it.
    """
    from execution.policy_search.extractor import ExtractedDocument, Section, DocumentMetadata
    return ExtractedDocument(
        title="Encryption Standards",
        content=(
            "1. Purpose\nDefine encryption standards for sensitive data\n"
            "2. Scope\nApplies to all systems handling customer data"
        ),
        sections=[
            Section(heading="1. Purpose", content="Define encryption standards for sensitive data", level=1),
            Section(heading="2. Scope", content="Applies to all systems handling customer data", level=1),
        ],
        metadata=DocumentMetadata(version="1.0"),
    )


def _build_document(title, sections=(), content=None):
    from execution.policy_search.extractor import ExtractedDocument, Section
    section_objs = [Section(heading=h, content=c, level=1) for h, c in sections]
    if content is None:
        content = "\n".join([title] + [f"{h}\n{c}" for h, c in sections])
    return ExtractedDocument(title=title, content=content, sections=section_objs)


@pytest.fixture
def make_document():
    """Factory building an ExtractedDocument from (heading, content) pairs."""
    return _build_document


# ---------------------------------------------------------------------------
# Generated document files
# ---------------------------------------------------------------------------

@pytest.fixture
def markdown_file(tmp_path):
    path = tmp_path / "remote-work.md"
    path.write_text(SAMPLE_MARKDOWN, encoding="utf-8")
    return path


@pytest.fixture
def docx_file(tmp_path):
    """A Word document with headings, body text and core properties."""
    import docx

    document = docx.Document()
    for line in [
        "Acceptable Use Policy",
        "Version 1.3",
        "1. Purpose",
        "Describe acceptable use of company systems.",
        "2. Monitoring",
        "Network traffic may be monitored.",
    ]:
        document.add_paragraph(line)
    document.core_properties.author = "Jane Doe"
    document.core_properties.created = datetime(2023, 5, 2, 9, 30)

    path = tmp_path / "acceptable-use.docx"
    document.save(str(path))
    return path


@pytest.fixture
def pdf_file(tmp_path):
    """A two-page PDF with text and document properties."""
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Data Retention Policy\nRevision 4\n1. Purpose\nKeep records for seven years.")
    page = doc.new_page()
    page.insert_text((72, 72), "2. Disposal\nShred paper records after retention ends.")
    doc.set_metadata({
        "author": "Records Office",
        "creationDate": "D:20240115103000",
        "modDate": "D:20240220080000Z",
    })

    path = tmp_path / "retention.pdf"
    doc.save(str(path))
    doc.close()
    return path
