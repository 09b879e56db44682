"""Chat endpoint for question answering."""
from fastapi import APIRouter, Depends, HTTPException

from pdfchat.api.schemas import ChatRequest, ChatResponse
from pdfchat.exceptions import DocumentNotFoundError, GenerationError, ServiceUnavailableError
from pdfchat.services.retrieval_service import RetrievalService
from pdfchat.utils.logger import logger

router = APIRouter()


def get_retrieval_service() -> RetrievalService:
    """Get retrieval service from main app."""
    from pdfchat.main import retrieval_service
    if retrieval_service is None:
        raise HTTPException(status_code=503, detail="Retrieval service not initialized")
    return retrieval_service


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
):
    """
    Answer a question about an uploaded document.

    Args:
        request: ChatRequest with the question and document id
        retrieval_service: Retrieval service instance

    Returns:
        ChatResponse with the answer and cited pages
    """
    try:
        result = await retrieval_service.answer_question(
            question=request.message,
            document_id=request.document_id,
            top_k=request.top_k,
        )
        return ChatResponse(**result)

    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (GenerationError, ServiceUnavailableError) as e:
        logger.error(f"Generation failed: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail="AI service unavailable. Ensure the LLM backend is running.",
        )
    except Exception as e:
        logger.error(f"Unexpected error answering question: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process question")
