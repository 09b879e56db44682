"""Boundary-aware chunking of page text."""
import re
from typing import List, Pattern, Tuple

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 300

MIN_CHUNK_LENGTH = 100
MAX_CHUNKS_PER_TEXT = 2000

BREAK_LOOKAHEAD = 200
BREAK_WINDOW = 150

# Highest weight first: paragraph > sentence > clause > any whitespace.
BREAK_PATTERNS: Tuple[Tuple[Pattern, float], ...] = (
    (re.compile(r"\n\n"), 3.0),
    (re.compile(r"[.!?]\s+"), 2.0),
    (re.compile(r"[,;]\s+"), 1.0),
    (re.compile(r"\s+"), 0.5),
)


def find_break_offset(text: str, end: int) -> int:
    """
    Find how far past ``end`` a window should extend to land on a boundary.

    Only the first occurrence of each boundary kind is considered, and only
    when it starts within the first ``BREAK_WINDOW`` characters of the
    look-ahead. The heaviest eligible boundary wins.

    Returns:
        Offset from ``end`` to the chosen boundary, or 0 for a hard cut
    """
    look_ahead = text[end:end + BREAK_LOOKAHEAD]

    best_offset = 0
    best_weight = -1.0
    for pattern, weight in BREAK_PATTERNS:
        match = pattern.search(look_ahead)
        if match and match.start() < BREAK_WINDOW and weight > best_weight:
            best_offset = match.start()
            best_weight = weight

    return best_offset


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Split text into overlapping chunks that end on natural boundaries.

    Args:
        text: Page text to chunk
        chunk_size: Target window size in characters
        overlap: Characters shared between consecutive windows

    Returns:
        Trimmed chunks longer than ``MIN_CHUNK_LENGTH`` characters

    Raises:
        ValueError: If the window could never advance
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer")
    if overlap < 0:
        raise ValueError("overlap must be a non-negative integer")
    if overlap >= chunk_size:
        raise ValueError("overlap must be smaller than chunk_size")
    if not text:
        return []

    text_length = len(text)
    chunks: List[str] = []
    start = 0

    while start < text_length and len(chunks) < MAX_CHUNKS_PER_TEXT:
        end = min(start + chunk_size, text_length)
        if end < text_length:
            end += find_break_offset(text, end)

        chunk = text[start:end].strip()
        if len(chunk) > MIN_CHUNK_LENGTH:
            chunks.append(chunk)

        if end >= text_length:
            break

        start = end - overlap

    return chunks
