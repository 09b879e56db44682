"""Upload endpoint for document ingestion."""
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from pdfchat.api.schemas import UploadResponse
from pdfchat.exceptions import (
    DocumentQAError,
    ProcessingError,
    ValidationError,
)
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.document_processor import DocumentProcessor
from pdfchat.services.document_upload_service import DocumentUploadService
from pdfchat.utils.logger import logger

router = APIRouter()


def get_document_processor() -> DocumentProcessor:
    """Get document processor service."""
    from pdfchat.main import document_processor
    if document_processor is None:
        raise HTTPException(status_code=503, detail="Document processor not initialized")
    return document_processor


def get_document_index() -> DocumentIndex:
    """Get document index from main app."""
    from pdfchat.main import document_index
    if document_index is None:
        raise HTTPException(status_code=503, detail="Document index not initialized")
    return document_index


def get_app_settings():
    """Get application settings from main app."""
    from pdfchat.main import settings
    if settings is None:
        raise HTTPException(status_code=503, detail="Settings not initialized")
    return settings


def get_upload_service(
    document_processor: DocumentProcessor = Depends(get_document_processor),
    document_index: DocumentIndex = Depends(get_document_index),
    app_settings=Depends(get_app_settings),
) -> DocumentUploadService:
    """Get document upload service with dependencies."""
    return DocumentUploadService(
        document_processor=document_processor,
        document_index=document_index,
        settings=app_settings,
        upload_dir=app_settings.upload_dir,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    file: Annotated[UploadFile, File(...)],
    upload_service: DocumentUploadService = Depends(get_upload_service),
):
    """
    Upload and process a PDF.

    Args:
        file: PDF file to upload and process
        upload_service: Document upload service instance

    Returns:
        UploadResponse with document ID and page/chunk statistics
    """
    try:
        file_content = await file.read()
        result = upload_service.upload_and_process_document(file_content, file.filename or "")
        return UploadResponse(**result)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProcessingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DocumentQAError as e:
        raise HTTPException(status_code=500, detail=f"Document processing failed: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error uploading document: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")
