"""Prompt templates for answering questions from ranked excerpts."""
from typing import Sequence

from pdfchat.models.document import ScoredChunk

NO_INFORMATION_MESSAGE = (
    "I couldn't find relevant information in the document to answer your question. "
    "Please try rephrasing or asking about different topics covered in the document."
)

# Lowercase phrases that mark a generated answer as "nothing found".
NO_INFORMATION_PHRASES = (
    "i couldn't find relevant information",
    "i don't have information",
    "the document does not contain",
    "no information available",
    "i'm unable to answer",
    "the document doesn't mention",
    "there is no information",
)


class AnswerPrompt:
    """Prompt template for generating answers from document excerpts."""

    SYSTEM_MESSAGE = (
        "You are an expert document analyst. Answer questions using ONLY the document "
        "excerpts you are given. Never invent or assume information that is not in them."
    )

    @staticmethod
    def format_context(chunks: Sequence[ScoredChunk], preview_chars: int = 800) -> str:
        """
        Render ranked chunks as numbered, page-tagged excerpts.

        Args:
            chunks: Ranked chunks, most relevant first
            preview_chars: Longest excerpt included before truncation

        Returns:
            Excerpts separated by horizontal rules
        """
        sections = []
        for i, chunk in enumerate(chunks, 1):
            content = chunk.content
            if len(content) > preview_chars:
                content = content[:preview_chars] + "..."
            sections.append(f"[Source {i} | Page {chunk.page_number}]\n{content}")

        return "\n\n---\n\n".join(sections)

    @staticmethod
    def build(question: str, chunks: Sequence[ScoredChunk], preview_chars: int = 800) -> str:
        """
        Build answer generation prompt.

        Args:
            question: User's question
            chunks: Ranked chunks, most relevant first
            preview_chars: Longest excerpt included before truncation

        Returns:
            Formatted prompt string
        """
        context = AnswerPrompt.format_context(chunks, preview_chars)

        prompt = f"""You are an expert document analyst. Provide a detailed, accurate answer based solely on the document excerpts below.

DOCUMENT EXCERPTS:
{context}

USER QUESTION: {question}

INSTRUCTIONS:
1. Answer using ONLY information from the excerpts above.
2. Be thorough: aim for 3-5 sentences when the excerpts contain the information.
3. Combine information from several excerpts when they are relevant.
4. You may refer to page numbers shown in the brackets (e.g., "According to Page 3...").
5. If the excerpts do not contain the answer, respond ONLY with "{NO_INFORMATION_MESSAGE}" Do not guess.
6. Use short paragraphs, and give full details for every item when the question asks for a list.
7. Do NOT add any information that is not present in the excerpts.

DETAILED ANSWER:"""

        return prompt


def is_no_information_answer(answer: str) -> bool:
    """Return True when the generated answer says the document lacks the information."""
    answer_lower = answer.lower()
    return any(phrase in answer_lower for phrase in NO_INFORMATION_PHRASES)
