"""Page citations derived from ranked chunks."""
from typing import List, Sequence

from pdfchat.models.document import ScoredChunk

SIGNIFICANCE_THRESHOLD = 1.5
FALLBACK_COUNT = 5


def extract_citations(
    ranked: Sequence[ScoredChunk],
    significance_threshold: float = SIGNIFICANCE_THRESHOLD,
    fallback_count: int = FALLBACK_COUNT,
) -> List[int]:
    """
    Pick the pages to cite for an answer.

    Pages come from chunks scoring above ``significance_threshold``; when
    none do, from the first ``fallback_count`` ranked chunks.

    Returns:
        Unique page numbers in ascending order
    """
    significant = [item for item in ranked if item.similarity > significance_threshold]
    sources = significant or list(ranked[:fallback_count])
    return sorted({item.page_number for item in sources})
