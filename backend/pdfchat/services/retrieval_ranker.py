"""Rank the chunks of a document against a query."""
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
from typing import List, Optional, Sequence

from pdfchat.models.document import Chunk, Document, ScoredChunk
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.lexical_scorer import score
from pdfchat.utils.logger import logger
from pdfchat.utils.metrics import EMPTY_RANKINGS, QUERIES_RANKED, RANKING_SECONDS
from pdfchat.utils.tracer import get_tracer

DEFAULT_TOP_K = 10

tracer = get_tracer(__name__)


@dataclass(frozen=True)
class RankingThresholds:
    """
    Cut-offs applied after scoring.

    Attributes:
        score_floor: Lowest similarity any chunk may have and still be kept
        relative_cutoff: Fraction of the top score a chunk must reach
        min_mean_similarity: Mean similarity the kept chunks must reach,
            otherwise the whole result is dropped
    """

    score_floor: float = 1.2
    relative_cutoff: float = 0.6
    min_mean_similarity: float = 1.0

    def dynamic_threshold(self, top_score: float) -> float:
        return max(self.score_floor, top_score * self.relative_cutoff)


class RetrievalRanker:
    """Scores, filters and orders chunks for a single query."""

    def __init__(
        self,
        document_index: Optional[DocumentIndex] = None,
        thresholds: Optional[RankingThresholds] = None,
        max_workers: int = 0,
        parallel_min_chunks: int = 500,
    ):
        """
        Initialize retrieval ranker.

        Args:
            document_index: Index used by ``rank`` to resolve document ids
            thresholds: Dynamic threshold and confidence gate settings
            max_workers: Worker processes for scoring (0 = score in-process)
            parallel_min_chunks: Smallest document that is worth fanning out
        """
        self.document_index = document_index
        self.thresholds = thresholds or RankingThresholds()
        self.max_workers = max(max_workers, 0)
        self.parallel_min_chunks = parallel_min_chunks

    def rank(self, query: str, document_id: str, top_k: int = DEFAULT_TOP_K) -> List[ScoredChunk]:
        """
        Rank the chunks of an indexed document.

        Returns an empty list when the document is not indexed.
        """
        document = self.document_index.get(document_id) if self.document_index else None
        if document is None:
            logger.info(
                f"No document found for ranking: {document_id}",
                extra={"document_id": document_id},
            )
            EMPTY_RANKINGS.labels(reason="missing_document").inc()
            return []
        return self.rank_document(query, document, top_k=top_k)

    def rank_document(
        self, query: str, document: Document, top_k: int = DEFAULT_TOP_K
    ) -> List[ScoredChunk]:
        """
        Rank a document's chunks, most relevant first.

        Chunks are kept when they reach the dynamic threshold derived from
        the top score. The kept set is then capped to ``top_k`` and dropped
        entirely if its mean similarity is below the confidence gate.

        Args:
            query: User question
            document: Document to search
            top_k: Maximum number of chunks to return

        Returns:
            ScoredChunk list in descending similarity, or an empty list
        """
        QUERIES_RANKED.inc()

        if not document.chunks:
            logger.info(
                "Document has no chunks to rank",
                extra={"document_id": document.document_id},
            )
            EMPTY_RANKINGS.labels(reason="no_chunks").inc()
            return []

        with tracer.start_as_current_span("rank_document") as span, RANKING_SECONDS.time():
            span.set_attribute("document.id", document.document_id)
            span.set_attribute("document.chunks", document.chunk_count)

            start_time = time.time()
            similarities = self._score_chunks(query, document.chunks)

            # sorted() is stable, so ties keep page/chunk order
            scored = sorted(
                (
                    ScoredChunk(chunk=chunk, similarity=similarity)
                    for chunk, similarity in zip(document.chunks, similarities)
                ),
                key=lambda scored_chunk: scored_chunk.similarity,
                reverse=True,
            )

            top_score = scored[0].similarity if scored else 0.0
            threshold = self.thresholds.dynamic_threshold(top_score)
            relevant = [item for item in scored if item.similarity >= threshold][:max(top_k, 0)]

            span.set_attribute("ranking.top_score", top_score)
            span.set_attribute("ranking.threshold", threshold)

            if relevant:
                mean_similarity = sum(item.similarity for item in relevant) / len(relevant)
                if mean_similarity < self.thresholds.min_mean_similarity:
                    logger.info(
                        f"Average similarity too low: {mean_similarity:.2f}",
                        extra={
                            "document_id": document.document_id,
                            "mean_similarity": mean_similarity,
                            "min_mean_similarity": self.thresholds.min_mean_similarity,
                        },
                    )
                    EMPTY_RANKINGS.labels(reason="low_confidence").inc()
                    span.set_attribute("ranking.results", 0)
                    return []
            else:
                EMPTY_RANKINGS.labels(reason="below_threshold").inc()

            span.set_attribute("ranking.results", len(relevant))

        logger.info(
            f"Found {len(relevant)} relevant chunks (threshold: {threshold:.2f})",
            extra={
                "document_id": document.document_id,
                "chunks_analyzed": document.chunk_count,
                "similarity_scores": [round(item.similarity, 4) for item in relevant[:5]],
                "ranking_time_ms": (time.time() - start_time) * 1000,
            },
        )
        for position, item in enumerate(relevant[:5], 1):
            logger.debug(
                f"{position}. Page {item.page_number}, Score: {item.similarity:.2f}, "
                f"Preview: {item.content[:100]}..."
            )

        return relevant

    def _score_chunks(self, query: str, chunks: Sequence[Chunk]) -> List[float]:
        contents = [chunk.content for chunk in chunks]

        if self.max_workers > 0 and len(contents) >= self.parallel_min_chunks:
            chunksize = max(1, len(contents) // (self.max_workers * 4))
            with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(score, repeat(query), contents, chunksize=chunksize))

        return [score(query, content) for content in contents]
