"""Pydantic schemas for API requests and responses."""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pdfchat.utils.text_cleaner import clean_question


class UploadResponse(BaseModel):
    """Response schema for document upload."""

    success: bool = True
    document_id: str = Field(..., description="Identifier to use when asking questions")
    filename: str = Field(..., description="Original filename")
    total_pages: int = Field(..., description="Number of pages retained after segmentation")
    total_chunks: int = Field(..., description="Number of text chunks created")
    text_length: int = Field(..., description="Characters of extracted text")
    processing_time_seconds: Optional[float] = None


class ChatRequest(BaseModel):
    """Request schema for asking a question about a document."""

    message: str = Field(..., min_length=1, description="User's question")
    document_id: str = Field(..., min_length=1, description="Document to search")
    top_k: Optional[int] = Field(None, ge=1, le=50, description="Chunks to hand to the LLM")

    @field_validator("message")
    @classmethod
    def clean_message(cls, v: str) -> str:
        """Remove control characters and reject questions that end up empty."""
        cleaned = clean_question(v)
        if not cleaned:
            raise ValueError("Message cannot be empty after cleaning")
        return cleaned


class RelevantChunk(BaseModel):
    """Schema for a ranked chunk."""

    page_number: int
    chunk_index: int
    similarity: float = Field(..., ge=0.0, description="Lexical similarity (unbounded above)")
    preview: str


class ChatMetadata(BaseModel):
    """Retrieval statistics for an answered question."""

    chunks_analyzed: int
    relevant_chunks: int
    top_score: float
    token_usage: Optional[dict] = None
    response_time_ms: Optional[float] = None


class ChatResponse(BaseModel):
    """Response schema for question answering."""

    success: bool = True
    response: str = Field(..., description="LLM-generated answer or the no-information message")
    citations: List[int] = Field(default_factory=list, description="Cited page numbers, ascending")
    relevant_chunks: List[RelevantChunk] = Field(default_factory=list)
    metadata: Optional[ChatMetadata] = None


class PagePreview(BaseModel):
    """Short preview of one page."""

    page: int
    preview: str


class DocumentInfoResponse(BaseModel):
    """Response schema for document info."""

    success: bool = True
    name: Optional[str] = None
    pages: int
    chunks: int
    text_length: int
    sample_pages: List[PagePreview]


class HealthResponse(BaseModel):
    """Response schema for the health check."""

    status: str = "healthy"
    backend: str = "running"
    llm: str
    documents: int


class DocumentListResponse(BaseModel):
    """Response schema for listing indexed documents."""

    success: bool = True
    document_ids: List[str] = Field(default_factory=list, description="Least recently used first")
    count: int


class DocumentDeleteResponse(BaseModel):
    """Response schema for removing a document."""

    success: bool = True
    document_id: str
