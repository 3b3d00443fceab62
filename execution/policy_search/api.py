"""
FastAPI Backend for Policy Search

Provides REST API endpoints for uploading policy documents (PDF, Word,
Markdown), listing and fetching stored policies, keyword search and
removal. Policies live in memory for the lifetime of the process.

Run with: uvicorn execution.policy_search.api:app --host 0.0.0.0 --port 3000
"""

import os
import asyncio
import logging
import tempfile
from dataclasses import asdict
from typing import Optional
from pathlib import Path

from fastapi import FastAPI, HTTPException, UploadFile, File, Form, Depends, Header
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from . import __version__
from .api_models import (
    PolicyListResponse, PolicySummaryInfo, PolicyDetail, SectionInfo,
    UploadResponse, UploadedPolicy,
    SearchResponse, SearchResultInfo,
    DeleteResponse, HealthResponse, StatusResponse,
)
from .auth import AuthContext, AuthenticationError, authenticate
from .config import AuthConfig, ServerConfig
from .decoders import (
    MARKDOWN_MIME_TYPES,
    DocumentDecodeError,
    UnsupportedDocumentTypeError,
    get_mime_type_from_extension,
    is_supported_mime_type,
    parse_document,
)
from .policy_index import Policy, PolicyIndex

# Load environment variables
load_dotenv()
logger = logging.getLogger(__name__)


# =============================================================================
# Service Container - shared index and configuration
# =============================================================================

class ServiceContainer:
    """Holds the process-wide policy index and configuration."""

    def __init__(self):
        self._index = None
        self._server_config = None
        self._auth_config = None

    @property
    def index(self) -> PolicyIndex:
        if self._index is None:
            self._index = PolicyIndex()
        return self._index

    @property
    def server_config(self) -> ServerConfig:
        if self._server_config is None:
            self._server_config = ServerConfig.from_env()
        return self._server_config

    @property
    def auth_config(self) -> AuthConfig:
        if self._auth_config is None:
            self._auth_config = AuthConfig.from_env("WEB")
            logger.info(f"Web/API authentication mode: {self._auth_config.mode}")
        return self._auth_config


_container = ServiceContainer()

app = FastAPI(
    title="Policy Search API",
    description="REST API for scanning policy documents and searching their sections",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_container.server_config.cors_origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# =============================================================================
# Authentication dependency
# =============================================================================

async def require_auth(authorization: Optional[str] = Header(None)) -> AuthContext:
    """Authenticate the request against the configured web auth mode."""
    try:
        return authenticate(authorization, _container.auth_config)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None,
        )


# =============================================================================
# Response helpers
# =============================================================================

def _policy_detail(policy: Policy) -> PolicyDetail:
    return PolicyDetail(
        id=policy.id,
        title=policy.title,
        content=policy.content,
        source_file=policy.source_file,
        category=policy.category,
        effective_date=policy.effective_date,
        version=policy.version,
        author=policy.author,
        page_count=policy.page_count,
        sections=[SectionInfo(**s.to_dict()) for s in policy.sections],
        extracted_at=policy.extracted_at,
    )


def _content_type_agrees(content_type: Optional[str], mime_type: str) -> bool:
    """A supported client MIME type must name the same format as the extension."""
    if not is_supported_mime_type(content_type):
        # Generic types (application/octet-stream, text/plain) defer to the extension
        return True
    if content_type in MARKDOWN_MIME_TYPES:
        return mime_type in MARKDOWN_MIME_TYPES
    return content_type == mime_type


# =============================================================================
# Health endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=__version__,
        policies=_container.index.count,
    )


@app.get("/ready", response_model=StatusResponse)
async def readiness():
    return StatusResponse(status="ready")


@app.get("/live", response_model=StatusResponse)
async def liveness():
    return StatusResponse(status="live")


# =============================================================================
# Policy endpoints
# =============================================================================

@app.get("/api/policies", response_model=PolicyListResponse)
async def list_policies(
    category: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
):
    """List stored policies, optionally filtered by category."""
    summaries = _container.index.list_policies(category)
    return PolicyListResponse(
        total=len(summaries),
        policies=[PolicySummaryInfo(**asdict(s)) for s in summaries],
    )


@app.get("/api/policies/{policy_id}", response_model=PolicyDetail)
async def get_policy(
    policy_id: str,
    auth: AuthContext = Depends(require_auth),
):
    """Get the full content of a policy."""
    policy = _container.index.get(policy_id)
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")
    return _policy_detail(policy)


@app.post("/api/policies", response_model=UploadResponse)
async def upload_policy(
    file: Optional[UploadFile] = File(None),
    category: Optional[str] = Form(None),
    auth: AuthContext = Depends(require_auth),
):
    """Upload a PDF, Word or Markdown document and store the extracted policy."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    # The extension decides the decoder; the client content type is only checked
    try:
        mime_type = get_mime_type_from_extension(file.filename)
    except UnsupportedDocumentTypeError:
        raise HTTPException(
            status_code=400,
            detail="Only PDF, Word (.docx), and Markdown (.md) files are allowed",
        )
    if not _content_type_agrees(file.content_type, mime_type):
        raise HTTPException(
            status_code=400,
            detail=f"Content type {file.content_type} does not match the file extension",
        )

    server_config = _container.server_config
    content = await file.read()
    if len(content) > server_config.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {server_config.max_upload_mb}MB upload limit",
        )

    # Save to temp file, keeping the extension for the decoders
    server_config.upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=server_config.upload_dir) as tmp:
        tmp.write(content)
        tmp_path = tmp.name

    try:
        # Decoding is CPU-bound; run it off the event loop
        parsed = await asyncio.get_running_loop().run_in_executor(
            None, parse_document, tmp_path, mime_type, file.filename
        )
    except DocumentDecodeError as e:
        logger.warning(f"Failed to decode upload {file.filename}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        os.unlink(tmp_path)

    policy = _container.index.add(parsed, file.filename, category or None)
    logger.info(f"Stored policy {policy.id} ({policy.title!r}, {len(policy.sections)} sections)")

    return UploadResponse(
        policy=UploadedPolicy(
            id=policy.id,
            title=policy.title,
            source_file=policy.source_file,
            category=policy.category,
            section_count=len(policy.sections),
            effective_date=policy.effective_date,
            version=policy.version,
        ),
    )


@app.delete("/api/policies/{policy_id}", response_model=DeleteResponse)
async def delete_policy(
    policy_id: str,
    auth: AuthContext = Depends(require_auth),
):
    """Remove a policy."""
    if not _container.index.remove(policy_id):
        raise HTTPException(status_code=404, detail="Policy not found")
    logger.info(f"Removed policy {policy_id}")
    return DeleteResponse()


@app.delete("/api/policies", response_model=DeleteResponse)
async def clear_policies(auth: AuthContext = Depends(require_auth)):
    """Remove every stored policy."""
    removed = _container.index.clear()
    logger.info(f"Cleared {removed} policies")
    return DeleteResponse(removed=removed)


@app.get("/api/search", response_model=SearchResponse)
async def search_policies(
    query: Optional[str] = None,
    category: Optional[str] = None,
    auth: AuthContext = Depends(require_auth),
):
    """Keyword search across stored policies. An empty query matches nothing."""
    query = query or ""
    results = _container.index.search(query, category)
    return SearchResponse(
        query=query,
        total=len(results),
        results=[SearchResultInfo(**r.to_dict()) for r in results],
    )


@app.get("/api/categories", response_model=list[str])
async def list_categories(auth: AuthContext = Depends(require_auth)):
    """Distinct categories assigned to stored policies."""
    return _container.index.categories()


if __name__ == "__main__":
    import uvicorn

    config = _container.server_config
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(f"Policy Search API running at http://{config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
