"""
Pydantic models for the Policy Search FastAPI backend.
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class SectionInfo(BaseModel):
    """A section of a stored policy."""
    heading: str
    content: str
    level: int


class PolicySummaryInfo(BaseModel):
    """Listing view of a stored policy."""
    id: str
    title: str
    source_file: str
    category: Optional[str] = None
    section_count: int
    extracted_at: datetime


class PolicyListResponse(BaseModel):
    """Response body for the policy listing endpoint."""
    total: int
    policies: list[PolicySummaryInfo]


class PolicyDetail(BaseModel):
    """Full content of a stored policy."""
    id: str
    title: str
    content: str
    source_file: str
    category: Optional[str] = None
    effective_date: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None
    page_count: Optional[int] = None
    sections: list[SectionInfo]
    extracted_at: datetime


class UploadedPolicy(BaseModel):
    """Summary of a policy created by an upload."""
    id: str
    title: str
    source_file: str
    category: Optional[str] = None
    section_count: int
    effective_date: Optional[str] = None
    version: Optional[str] = None


class UploadResponse(BaseModel):
    """Response body for document upload."""
    success: bool = True
    policy: UploadedPolicy


class SearchResultInfo(BaseModel):
    """One ranked search hit."""
    id: str
    title: str
    category: Optional[str] = None
    matched_sections: list[str]
    relevance_score: float


class SearchResponse(BaseModel):
    """Response body for the search endpoint."""
    query: str
    total: int
    results: list[SearchResultInfo]


class DeleteResponse(BaseModel):
    """Response body for delete endpoints."""
    success: bool = True
    removed: Optional[int] = None


class HealthResponse(BaseModel):
    """Response body for health check."""
    status: str
    version: str
    policies: int


class StatusResponse(BaseModel):
    """Response body for readiness and liveness checks."""
    status: str
