"""
Policy Search - Structural extraction and keyword search for policy documents

This module provides:
- Decoding of PDF, Word (.docx) and Markdown policy documents to plain text
- Heuristic extraction of title, hierarchical sections and metadata
- An in-memory policy index with category filtering and relevance-ranked search
- A FastAPI surface over the index (execution.policy_search.api)
"""

__version__ = "1.0.0"

from .extractor import (
    Section,
    DocumentMetadata,
    ExtractedDocument,
    extract_document,
    extract_sections,
    extract_title,
    extract_metadata,
)
from .decoders import DocumentDecodeError, UnsupportedDocumentTypeError, parse_document
from .policy_store import PolicyStorage, InMemoryPolicyStorage
from .policy_index import Policy, PolicySummary, PolicySearchResult, PolicyIndex

__all__ = [
    "Section",
    "DocumentMetadata",
    "ExtractedDocument",
    "extract_document",
    "extract_sections",
    "extract_title",
    "extract_metadata",
    "DocumentDecodeError",
    "UnsupportedDocumentTypeError",
    "parse_document",
    "PolicyStorage",
    "InMemoryPolicyStorage",
    "Policy",
    "PolicySummary",
    "PolicySearchResult",
    "PolicyIndex",
]
