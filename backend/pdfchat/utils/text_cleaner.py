"""Text cleaning and normalization utilities."""
import re


def clean_page_text(text: str) -> str:
    """
    Normalize text extracted from a single PDF page.

    Line structure is kept so paragraph breaks can still guide chunking;
    form feeds are removed because they delimit pages.

    Args:
        text: Raw page text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    # Normalize line breaks
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    # Remove control characters, form feed included, but keep tabs and newlines
    text = re.sub(r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f]", "", text)

    # Collapse runs of spaces and tabs, and trailing spaces before newlines
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)

    # Remove excessive newlines (more than 2 consecutive)
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text.strip()


def clean_question(text: str) -> str:
    """Strip control characters (except newline, tab, carriage return) and surrounding whitespace."""
    return re.sub(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]", "", text).strip()
