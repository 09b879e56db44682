"""PDF upload validation utilities."""
from pathlib import Path
from typing import Any, Dict

import pdfplumber

from pdfchat.exceptions import (
    DocumentCorruptedError,
    DocumentEmptyError,
    FileSizeExceededError,
    FileTypeNotSupportedError,
    PageLimitExceededError,
)

PDF_MAGIC = b"%PDF-"


class PDFValidator:
    """Validator for uploaded PDF files."""

    SUPPORTED_EXTENSIONS = ['.pdf']

    @classmethod
    def validate_file_type(cls, filename: str) -> str:
        """Validate file type and return the lowercase extension."""
        if not filename:
            raise FileTypeNotSupportedError("File name is required.")

        extension = Path(filename).suffix.lower()
        if extension not in cls.SUPPORTED_EXTENSIONS:
            raise FileTypeNotSupportedError(
                f"Unsupported file type. Supported formats: {', '.join(cls.SUPPORTED_EXTENSIONS)}"
            )

        return extension

    @classmethod
    def validate_file_size(cls, file_size_bytes: int, max_size_mb: float) -> None:
        """Validate file size."""
        if file_size_bytes == 0:
            raise DocumentEmptyError("Uploaded file is empty.")

        file_size_mb = file_size_bytes / (1024 * 1024)
        if file_size_mb > max_size_mb:
            raise FileSizeExceededError(
                f"File size ({file_size_mb:.2f} MB) exceeds maximum allowed size ({max_size_mb} MB)."
            )

    @classmethod
    def validate_header(cls, file_path: str) -> None:
        """Check the PDF magic bytes before handing the file to the parser."""
        with open(file_path, 'rb') as f:
            header = f.read(len(PDF_MAGIC))

        if header != PDF_MAGIC:
            raise DocumentCorruptedError(
                "File is not a valid PDF. PDF files must start with '%PDF-' header."
            )

    @classmethod
    def validate_content(cls, file_path: str, max_pages: int) -> int:
        """
        Validate PDF content and return page count.

        Args:
            file_path: Path to PDF file
            max_pages: Maximum number of pages accepted

        Returns:
            Number of pages in the document

        Raises:
            DocumentCorruptedError: If PDF cannot be opened
            DocumentEmptyError: If PDF has no pages
            PageLimitExceededError: If PDF exceeds page limit
        """
        try:
            with pdfplumber.open(file_path) as pdf:
                total_pages = len(pdf.pages)
        except Exception as e:
            raise DocumentCorruptedError(f"Invalid or corrupted PDF file: {str(e)}")

        if total_pages == 0:
            raise DocumentEmptyError("PDF contains no pages. Please provide a valid PDF with content.")

        if total_pages > max_pages:
            raise PageLimitExceededError(
                f"PDF has {total_pages} pages, which exceeds the maximum of {max_pages} pages."
            )

        return total_pages


def validate_document(
    file_path: str, filename: str, file_size_bytes: int, settings: Any
) -> Dict[str, Any]:
    """
    Run every upload check against a saved PDF.

    Args:
        file_path: Path to the temporary copy of the upload
        filename: Original filename as sent by the client
        file_size_bytes: Size of the upload in bytes
        settings: Application settings with ``max_file_size_mb`` and ``max_pages``

    Returns:
        Dict with validation results including page_count

    Raises:
        ValidationError subclasses describing the first failed check
    """
    extension = PDFValidator.validate_file_type(filename)
    PDFValidator.validate_file_size(file_size_bytes, settings.max_file_size_mb)
    PDFValidator.validate_header(file_path)
    page_count = PDFValidator.validate_content(file_path, settings.max_pages)

    return {
        'file_extension': extension,
        'page_count': page_count,
        'filename': filename,
    }
