"""Document info, listing and removal endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from pdfchat.api.routes.upload import get_document_index
from pdfchat.api.schemas import (
    DocumentDeleteResponse,
    DocumentInfoResponse,
    DocumentListResponse,
    PagePreview,
)
from pdfchat.services.document_index import DocumentIndex
from pdfchat.utils.logger import logger

router = APIRouter()

SAMPLE_PAGE_COUNT = 3
PREVIEW_CHARS = 150


@router.get("/document/{document_id}/info", response_model=DocumentInfoResponse)
async def document_info(
    document_id: str,
    document_index: DocumentIndex = Depends(get_document_index),
):
    """Describe an indexed document with previews of its first pages."""
    document = document_index.get(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return DocumentInfoResponse(
        name=document.filename,
        pages=document.page_count,
        chunks=document.chunk_count,
        text_length=document.full_text_length,
        sample_pages=[
            PagePreview(page=page.page_number, preview=page.content[:PREVIEW_CHARS] + "...")
            for page in document.pages[:SAMPLE_PAGE_COUNT]
        ],
    )


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(document_index: DocumentIndex = Depends(get_document_index)):
    """List the ids of indexed documents without touching their recency."""
    document_ids = document_index.document_ids()
    return DocumentListResponse(document_ids=document_ids, count=len(document_ids))


@router.delete("/document/{document_id}", response_model=DocumentDeleteResponse)
async def delete_document(
    document_id: str,
    document_index: DocumentIndex = Depends(get_document_index),
):
    """Remove a document from the index."""
    if not document_index.remove(document_id):
        raise HTTPException(status_code=404, detail="Document not found")

    logger.info(f"Document removed: {document_id}", extra={"document_id": document_id})
    return DocumentDeleteResponse(document_id=document_id)
