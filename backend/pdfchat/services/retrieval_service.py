"""Retrieval service orchestrating the question answering pipeline."""
import time
from typing import Any, Dict, List, Optional

from pdfchat.exceptions import DocumentNotFoundError
from pdfchat.models.document import ScoredChunk
from pdfchat.prompts import NO_INFORMATION_MESSAGE, is_no_information_answer
from pdfchat.services.citations import FALLBACK_COUNT, SIGNIFICANCE_THRESHOLD, extract_citations
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.llm_service import LLMService
from pdfchat.services.retrieval_ranker import DEFAULT_TOP_K, RetrievalRanker
from pdfchat.utils.logger import logger


class RetrievalService:
    """Orchestrates ranking, answer generation and citation selection."""

    def __init__(
        self,
        document_index: DocumentIndex,
        ranker: RetrievalRanker,
        llm_service: LLMService,
        top_k: int = DEFAULT_TOP_K,
        citation_significance_threshold: float = SIGNIFICANCE_THRESHOLD,
        citation_fallback_count: int = FALLBACK_COUNT,
    ):
        """
        Initialize retrieval service.

        Args:
            document_index: Index of processed documents
            ranker: Ranker applied to the requested document
            llm_service: Service for answer generation
            top_k: Maximum number of chunks handed to the LLM
            citation_significance_threshold: Similarity a chunk needs to be cited
            citation_fallback_count: Ranked chunks cited when none is significant
        """
        self.document_index = document_index
        self.ranker = ranker
        self.llm_service = llm_service
        self.top_k = top_k
        self.citation_significance_threshold = citation_significance_threshold
        self.citation_fallback_count = citation_fallback_count

    async def answer_question(
        self, question: str, document_id: str, top_k: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Answer a question about one indexed document.

        Args:
            question: User's question
            document_id: Id returned by the upload endpoint
            top_k: Override for the number of chunks to use

        Returns:
            Dictionary with response, citations and metadata

        Raises:
            DocumentNotFoundError: If the document is not indexed
            ServiceUnavailableError: If the LLM backend is unreachable
            GenerationError: If the LLM backend fails
        """
        start_time = time.time()

        document = self.document_index.get(document_id)
        if document is None:
            raise DocumentNotFoundError("Document not found. Please re-upload.")

        logger.info(
            f"Question: \"{question[:200]}\"",
            extra={"document_id": document_id, "chunks_analyzed": document.chunk_count},
        )

        relevant = self.ranker.rank_document(question, document, top_k=top_k or self.top_k)

        if not relevant:
            logger.info(
                "No relevant information found in document",
                extra={"document_id": document_id},
            )
            return self._no_information_result()

        llm_result = await self.llm_service.generate_answer(question, relevant)
        answer = llm_result["answer"]

        if is_no_information_answer(answer):
            logger.info(
                "LLM reported the excerpts do not answer the question",
                extra={"document_id": document_id},
            )
            return self._no_information_result()

        citations = extract_citations(
            relevant,
            significance_threshold=self.citation_significance_threshold,
            fallback_count=self.citation_fallback_count,
        )

        total_time_ms = (time.time() - start_time) * 1000

        logger.info(
            f"Response generated with {len(citations)} citations: {citations}",
            extra={
                "document_id": document_id,
                "citations": citations,
                "total_time_ms": total_time_ms,
                "token_usage": llm_result.get("token_usage"),
            },
        )

        return {
            "response": answer.strip(),
            "citations": citations,
            "relevant_chunks": self._serialize_chunks(relevant),
            "metadata": {
                "chunks_analyzed": document.chunk_count,
                "relevant_chunks": len(relevant),
                "top_score": round(relevant[0].similarity, 2),
                "token_usage": llm_result.get("token_usage"),
                "response_time_ms": total_time_ms,
            },
        }

    @staticmethod
    def _serialize_chunks(chunks: List[ScoredChunk]) -> List[Dict[str, Any]]:
        return [
            {
                "page_number": item.page_number,
                "chunk_index": item.chunk_index,
                "similarity": item.similarity,
                "preview": item.content[:200],
            }
            for item in chunks
        ]

    @staticmethod
    def _no_information_result() -> Dict[str, Any]:
        return {
            "response": NO_INFORMATION_MESSAGE,
            "citations": [],
            "relevant_chunks": [],
            "metadata": None,
        }
