"""Split extracted document text into logical pages."""
from typing import List

from pdfchat.models.document import Page
from pdfchat.utils.logger import logger

PAGE_BREAK = "\f"

# Pages at or below these trimmed lengths are front matter or blank.
MIN_MARKED_PAGE_LENGTH = 30
MIN_LOGICAL_PAGE_LENGTH = 50

MIN_LOGICAL_PAGE_SIZE = 1500
PARAGRAPH_LOOKAHEAD = 300
PARAGRAPH_WINDOW = 250


def segment_pages(raw_text: str, declared_page_count: int = 1) -> List[Page]:
    """
    Split raw extracted text into numbered pages.

    Text carrying form-feed page breaks is split on them. Text without any
    break is cut into logical pages sized from the declared page count,
    nudged forward to the next paragraph break where one is close.

    Args:
        raw_text: Full text as produced by the PDF decoder
        declared_page_count: Page count reported by the decoder

    Returns:
        Pages numbered 1..n over the retained segments (empty for blank input)
    """
    if not raw_text or not raw_text.strip():
        logger.warning("No text to segment into pages")
        return []

    segments = raw_text.split(PAGE_BREAK)
    if len(segments) > 1:
        pages = _pages_from_breaks(segments)
        logger.info(f"Extracted {len(pages)} pages using form feed markers")
    else:
        pages = _logical_pages(raw_text, declared_page_count)
        logger.info(f"Created {len(pages)} logical pages")

    return pages


def _pages_from_breaks(segments: List[str]) -> List[Page]:
    pages = []
    for segment in segments:
        content = segment.strip()
        if len(content) > MIN_MARKED_PAGE_LENGTH:
            pages.append(Page(page_number=len(pages) + 1, content=content))
    return pages


def _logical_pages(text: str, declared_page_count: int) -> List[Page]:
    text_length = len(text)
    page_size = max(MIN_LOGICAL_PAGE_SIZE, text_length // max(declared_page_count, 1))

    pages = []
    start = 0
    while start < text_length:
        end = min(start + page_size, text_length)

        # Avoid cutting a paragraph in half when a break is close by
        if end < text_length:
            look_ahead = text[end:min(end + PARAGRAPH_LOOKAHEAD, text_length)]
            paragraph_break = look_ahead.find("\n\n")
            if paragraph_break != -1 and paragraph_break < PARAGRAPH_WINDOW:
                end += paragraph_break + 2

        content = text[start:end].strip()
        if len(content) > MIN_LOGICAL_PAGE_LENGTH:
            pages.append(Page(page_number=len(pages) + 1, content=content))

        start = end

    return pages
