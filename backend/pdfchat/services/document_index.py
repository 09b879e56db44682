"""In-memory store of processed documents."""
import threading
from collections import OrderedDict
from typing import List, Optional

from pdfchat.exceptions import IndexIntegrityError
from pdfchat.models.document import Document
from pdfchat.utils.logger import logger
from pdfchat.utils.metrics import DOCUMENTS_EVICTED, DOCUMENTS_INDEXED


class DocumentIndex:
    """Thread-safe mapping from document id to its processed Document."""

    def __init__(self, max_documents: int = 0):
        """
        Initialize document index.

        Args:
            max_documents: Capacity bound (0 = unbounded). When bounded, the
                least recently used document is evicted on insert.
        """
        if max_documents < 0:
            raise ValueError("max_documents must be zero or a positive integer")

        self.max_documents = max_documents
        self._documents: "OrderedDict[str, Document]" = OrderedDict()
        self._lock = threading.Lock()

    def put(self, document_id: str, document: Document) -> None:
        """
        Insert or replace the document stored under ``document_id``.

        Raises:
            IndexIntegrityError: If the id differs from the document's own id
        """
        if document_id != document.document_id:
            raise IndexIntegrityError(
                f"Cannot index document {document.document_id} under id {document_id}"
            )

        evicted = []
        with self._lock:
            self._documents[document_id] = document
            self._documents.move_to_end(document_id)

            if self.max_documents:
                while len(self._documents) > self.max_documents:
                    evicted_id, _ = self._documents.popitem(last=False)
                    evicted.append(evicted_id)

            size = len(self._documents)

        DOCUMENTS_INDEXED.set(size)
        for evicted_id in evicted:
            DOCUMENTS_EVICTED.inc()
            logger.info(
                f"Evicted document {evicted_id} from index",
                extra={"document_id": evicted_id, "max_documents": self.max_documents},
            )

    def get(self, document_id: str) -> Optional[Document]:
        """Return the document, or None if it is not indexed."""
        with self._lock:
            document = self._documents.get(document_id)
            if document is not None:
                self._documents.move_to_end(document_id)
            return document

    def remove(self, document_id: str) -> bool:
        """Drop a document; returns whether it was present."""
        with self._lock:
            removed = self._documents.pop(document_id, None) is not None
            size = len(self._documents)
        DOCUMENTS_INDEXED.set(size)
        return removed

    def document_ids(self) -> List[str]:
        """Ids of indexed documents, least recently used first."""
        with self._lock:
            return list(self._documents)

    def size(self) -> int:
        with self._lock:
            return len(self._documents)
