"""Document processing service: PDF text extraction, pagination and chunking."""
from pathlib import Path
from typing import List, Optional, Tuple

import pdfplumber

from pdfchat.exceptions import DocumentEmptyError, ExtractionError
from pdfchat.models.document import Chunk, Document, Page
from pdfchat.services.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, chunk_text
from pdfchat.services.page_segmenter import PAGE_BREAK, segment_pages
from pdfchat.utils.logger import logger
from pdfchat.utils.text_cleaner import clean_page_text


def extract_text_from_pdf(file_path: str) -> Tuple[str, int]:
    """
    Extract text from PDF using pdfplumber.

    Pages are joined with the form-feed page-break marker so the page
    segmenter can recover them.

    Args:
        file_path: Path to PDF file

    Returns:
        Tuple of (full text, number of pages in the PDF)

    Raises:
        ExtractionError: If the PDF cannot be read
    """
    page_texts = []

    try:
        with pdfplumber.open(file_path) as pdf:
            page_count = len(pdf.pages)
            for page_num, page in enumerate(pdf.pages, 1):
                try:
                    text = page.extract_text() or ""
                except Exception as e:
                    logger.warning(f"Error extracting text from PDF page {page_num}: {str(e)}")
                    text = ""
                page_texts.append(clean_page_text(text))
    except Exception as e:
        logger.error(f"Error opening PDF file {file_path}: {str(e)}")
        raise ExtractionError(f"Failed to process PDF file: {str(e)}")

    return PAGE_BREAK.join(page_texts), page_count


class DocumentProcessor:
    """Turns extracted text into an immutable, chunked Document."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        min_text_length: int = 50,
    ):
        """
        Initialize document processor.

        Args:
            chunk_size: Target size for text chunks (in characters)
            chunk_overlap: Overlap between chunks (in characters)
            min_text_length: Fewest extracted characters a PDF must yield
        """
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_text_length = min_text_length
        logger.info(
            f"DocumentProcessor initialized (chunk_size={chunk_size}, chunk_overlap={chunk_overlap})"
        )

    def chunk_pages(self, pages: List[Page]) -> List[Chunk]:
        """
        Chunk every page, numbering chunks from 0 within each page.

        Args:
            pages: Pages in document order

        Returns:
            Chunks in page order, then chunk order
        """
        chunks = []
        for page in pages:
            page_chunks = chunk_text(page.content, self.chunk_size, self.chunk_overlap)
            for chunk_index, content in enumerate(page_chunks):
                chunks.append(
                    Chunk(
                        content=content,
                        page_number=page.page_number,
                        chunk_index=chunk_index,
                    )
                )
        return chunks

    def build_document(
        self,
        document_id: str,
        raw_text: str,
        declared_page_count: int,
        filename: Optional[str] = None,
    ) -> Document:
        """
        Build a Document from raw extracted text.

        Args:
            document_id: Caller-assigned document identifier
            raw_text: Extracted text, optionally with form-feed page breaks
            declared_page_count: Page count reported by the PDF decoder
            filename: Original filename

        Returns:
            Document with its pages and chunks (both empty for blank text)
        """
        pages = segment_pages(raw_text, declared_page_count)
        chunks = self.chunk_pages(pages)

        document = Document(
            document_id=document_id,
            pages=pages,
            chunks=chunks,
            full_text_length=len(raw_text or ""),
            declared_page_count=declared_page_count,
            filename=filename,
        )

        logger.info(
            f"Created {document.chunk_count} chunks from {document.page_count} pages",
            extra={
                "document_id": document_id,
                "total_pages": document.page_count,
                "total_chunks": document.chunk_count,
            },
        )
        return document

    def process_document(self, file_path: str, document_id: str, filename: Optional[str] = None) -> Document:
        """
        Extract a PDF and build its Document.

        Args:
            file_path: Path to the PDF file
            document_id: Unique document identifier
            filename: Original filename (defaults to the file's name)

        Returns:
            Processed Document

        Raises:
            ExtractionError: If the PDF cannot be read
            DocumentEmptyError: If the PDF yields too little text
        """
        filename = filename or Path(file_path).name
        raw_text, declared_page_count = extract_text_from_pdf(file_path)

        text_length = len(raw_text.replace(PAGE_BREAK, "").strip())
        logger.info(
            f"Extracted text from {filename}: {declared_page_count} pages, "
            f"{text_length:,} total characters extracted"
        )

        if text_length < self.min_text_length:
            raise DocumentEmptyError("PDF is empty or unreadable")

        return self.build_document(document_id, raw_text, declared_page_count, filename)
