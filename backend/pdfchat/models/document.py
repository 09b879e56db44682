"""Document data models."""
from dataclasses import dataclass
from typing import Optional, Tuple

from pdfchat.exceptions import IndexIntegrityError


@dataclass(frozen=True)
class Page:
    """A logical page of extracted document text."""

    page_number: int
    content: str


@dataclass(frozen=True)
class Chunk:
    """Represents a text chunk with the page it was cut from."""

    content: str
    page_number: int
    chunk_index: int


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk paired with its relevance to a single query."""

    chunk: Chunk
    similarity: float

    @property
    def content(self) -> str:
        return self.chunk.content

    @property
    def page_number(self) -> int:
        return self.chunk.page_number

    @property
    def chunk_index(self) -> int:
        return self.chunk.chunk_index


@dataclass(frozen=True)
class Document:
    """Represents a processed document.

    Pages and chunks are stored as tuples so a document cannot be mutated
    once it has been placed in the index. Every chunk must point at one of
    the document's pages.
    """

    document_id: str
    pages: Tuple[Page, ...] = ()
    chunks: Tuple[Chunk, ...] = ()
    full_text_length: int = 0
    declared_page_count: int = 0
    filename: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "pages", tuple(self.pages))
        object.__setattr__(self, "chunks", tuple(self.chunks))

        page_numbers = {page.page_number for page in self.pages}
        for chunk in self.chunks:
            if chunk.page_number not in page_numbers:
                raise IndexIntegrityError(
                    f"Chunk {chunk.chunk_index} of document {self.document_id} "
                    f"references missing page {chunk.page_number}"
                )

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)
