"""Custom exception classes for document ingestion and question answering."""


class DocumentQAError(Exception):
    """Base exception for the PDF chat assistant."""
    pass


class ValidationError(DocumentQAError):
    """Raised when an uploaded document fails validation."""
    pass


class FileTypeNotSupportedError(ValidationError):
    """Raised when an unsupported file type is uploaded."""
    pass


class FileSizeExceededError(ValidationError):
    """Raised when file size exceeds the maximum allowed."""
    pass


class DocumentCorruptedError(ValidationError):
    """Raised when a PDF cannot be opened."""
    pass


class DocumentEmptyError(ValidationError):
    """Raised when a document has no extractable text."""
    pass


class PageLimitExceededError(ValidationError):
    """Raised when a document exceeds the maximum page limit."""
    pass


class ProcessingError(DocumentQAError):
    """Raised when document processing fails."""
    pass


class ExtractionError(ProcessingError):
    """Raised when text extraction from a PDF fails."""
    pass


class DocumentNotFoundError(DocumentQAError):
    """Raised when a document id is not present in the index."""
    pass


class GenerationError(DocumentQAError):
    """Raised when the text-generation backend fails."""
    pass


class ServiceUnavailableError(DocumentQAError):
    """Raised when required services are not available."""
    pass


class IndexIntegrityError(DocumentQAError):
    """Raised when a document's chunks do not match its pages.

    This signals corrupted ingestion, not a normal "nothing relevant" outcome.
    """
    pass
