"""Document upload service for handling PDF uploads and ingestion."""
import os
import time
import uuid
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict

from pdfchat.exceptions import DocumentQAError, ProcessingError
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.document_processor import DocumentProcessor
from pdfchat.utils.logger import logger
from pdfchat.utils.metrics import CHUNKS_CREATED, DOCUMENTS_INGESTED
from pdfchat.validators import PDFValidator, validate_document


class DocumentUploadService:
    """Validates an uploaded PDF, processes it and stores it in the index."""

    def __init__(
        self,
        document_processor: DocumentProcessor,
        document_index: DocumentIndex,
        settings: Any,
        upload_dir: str = "./uploads",
    ):
        """
        Initialize upload service.

        Args:
            document_processor: Document processing service
            document_index: Index receiving processed documents
            settings: Application settings with upload limits
            upload_dir: Directory for temporary file storage
        """
        self.document_processor = document_processor
        self.document_index = document_index
        self.settings = settings
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def upload_and_process_document(self, file_content: bytes, filename: str) -> Dict[str, Any]:
        """
        Upload and process a PDF.

        Args:
            file_content: Raw file content as bytes
            filename: Original filename

        Returns:
            Dict with document_id, filename, page/chunk counts and timing

        Raises:
            ValidationError subclasses for rejected uploads
            ProcessingError subclasses when extraction fails
        """
        start_time = time.time()
        document_id = str(uuid.uuid4())
        tmp_file_path = None

        # Reject obviously wrong uploads before touching the disk
        PDFValidator.validate_file_type(filename)

        try:
            tmp_file_path = self._save_temporary_file(file_content, filename)

            validate_document(tmp_file_path, filename, len(file_content), self.settings)

            document = self._process_document(tmp_file_path, document_id, filename)
            self.document_index.put(document_id, document)

            DOCUMENTS_INGESTED.inc()
            CHUNKS_CREATED.inc(document.chunk_count)

            result = {
                "document_id": document_id,
                "filename": filename,
                "total_pages": document.page_count,
                "total_chunks": document.chunk_count,
                "text_length": document.full_text_length,
                "processing_time_seconds": time.time() - start_time,
            }

            logger.info(
                f"Document uploaded successfully: {document_id}",
                extra={
                    "document_id": document_id,
                    "uploaded_filename": filename,
                    "total_chunks": result["total_chunks"],
                    "total_pages": result["total_pages"],
                    "processing_time_seconds": result["processing_time_seconds"],
                },
            )

            return result

        except Exception as e:
            logger.error(f"Document upload failed for {filename}: {str(e)}", exc_info=True)
            raise
        finally:
            if tmp_file_path and os.path.exists(tmp_file_path):
                try:
                    os.unlink(tmp_file_path)
                except OSError as e:
                    logger.warning(f"Could not remove temporary file {tmp_file_path}: {str(e)}")

    def _save_temporary_file(self, file_content: bytes, filename: str) -> str:
        """Save uploaded file to temporary location."""
        file_extension = Path(filename).suffix or '.tmp'

        with NamedTemporaryFile(delete=False, suffix=file_extension, dir=self.upload_dir) as tmp_file:
            tmp_file.write(file_content)
            return tmp_file.name

    def _process_document(self, file_path: str, document_id: str, filename: str):
        """Extract and chunk the saved PDF."""
        start_time = time.time()

        try:
            return self.document_processor.process_document(file_path, document_id, filename)
        except DocumentQAError:
            raise
        except Exception as e:
            processing_time = time.time() - start_time
            logger.error(f"Document processing failed after {processing_time:.2f}s: {str(e)}")
            raise ProcessingError(f"Failed to process document: {str(e)}")
