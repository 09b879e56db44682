"""FastAPI application entry point."""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic_settings import BaseSettings
from starlette.responses import Response

from pdfchat.api.routes import chat, documents, upload
from pdfchat.api.schemas import HealthResponse
from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.document_processor import DocumentProcessor
from pdfchat.services.llm_service import LLMService
from pdfchat.services.retrieval_ranker import RankingThresholds, RetrievalRanker
from pdfchat.services.retrieval_service import RetrievalService
from pdfchat.utils.logger import logger
from pdfchat.utils.tracer import initialize_tracing, shutdown_tracing


class Settings(BaseSettings):
    """Application settings."""

    # Generation backend (any OpenAI-compatible endpoint; Ollama by default)
    llm_api_key: str = "ollama"
    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "gemma3:1b"
    llm_temperature: float = 0.2
    llm_top_p: float = 0.8
    llm_max_tokens: int = 800
    llm_timeout_seconds: float = 120.0
    llm_health_timeout_seconds: float = 5.0

    api_host: str = "0.0.0.0"
    api_port: int = 5000
    log_level: str = "INFO"

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 300

    # Ranking
    top_k_chunks: int = 10
    score_floor: float = 1.2  # Lowest similarity a chunk may have
    relative_cutoff: float = 0.6  # Fraction of the top score a chunk must reach
    min_mean_similarity: float = 1.0  # Mean similarity the kept chunks must reach
    scoring_workers: int = 0  # Worker processes for scoring (0 = in-process)

    # Citations and prompt
    citation_significance_threshold: float = 1.5
    citation_fallback_count: int = 5
    context_preview_chars: int = 800

    # Upload limits
    max_file_size_mb: int = 50
    max_pages: int = 1000
    min_text_length: int = 50
    upload_dir: str = "./uploads"

    # Index capacity (0 = unbounded, otherwise least recently used documents are evicted)
    max_documents: int = 0

    # OpenTelemetry tracing configuration
    tracing_enabled: bool = True
    otlp_endpoint: str = ""  # OTLP endpoint URL (empty = use console exporter)
    tracing_sample_ratio: float = 1.0  # Fraction of requests traced

    class Config:
        env_file = os.path.join(os.path.dirname(__file__), "..", "..", ".env")
        env_file_encoding = 'utf-8'
        case_sensitive = False
        extra = "ignore"


# Global services (initialized in lifespan)
settings: Settings = None
document_index: DocumentIndex = None
document_processor: DocumentProcessor = None
llm_service: LLMService = None
retrieval_service: RetrievalService = None
tracer_provider = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global settings, document_index, document_processor, llm_service, retrieval_service, tracer_provider

    logger.info("Starting PDF Chat Assistant")
    settings = Settings()

    tracer_provider = initialize_tracing(
        service_name="pdf-chat-assistant",
        service_version="1.0.0",
        otlp_endpoint=settings.otlp_endpoint if settings.otlp_endpoint else None,
        tracing_enabled=settings.tracing_enabled,
        sample_ratio=settings.tracing_sample_ratio,
    )

    document_index = DocumentIndex(max_documents=settings.max_documents)
    document_processor = DocumentProcessor(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        min_text_length=settings.min_text_length,
    )
    llm_service = LLMService(
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        top_p=settings.llm_top_p,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
        context_preview_chars=settings.context_preview_chars,
        health_timeout_seconds=settings.llm_health_timeout_seconds,
    )
    ranker = RetrievalRanker(
        document_index=document_index,
        thresholds=RankingThresholds(
            score_floor=settings.score_floor,
            relative_cutoff=settings.relative_cutoff,
            min_mean_similarity=settings.min_mean_similarity,
        ),
        max_workers=settings.scoring_workers,
    )
    retrieval_service = RetrievalService(
        document_index=document_index,
        ranker=ranker,
        llm_service=llm_service,
        top_k=settings.top_k_chunks,
        citation_significance_threshold=settings.citation_significance_threshold,
        citation_fallback_count=settings.citation_fallback_count,
    )

    logger.info(
        "All services initialized",
        extra={
            "llm_base_url": settings.llm_base_url,
            "llm_model": settings.llm_model,
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "top_k_chunks": settings.top_k_chunks,
        },
    )

    yield

    logger.info("Shutting down PDF Chat Assistant")
    if llm_service:
        await llm_service.close()
    if tracer_provider:
        shutdown_tracing(tracer_provider)


app = FastAPI(
    title="PDF Chat Assistant",
    description="Question answering over uploaded PDFs with lexical retrieval and page citations",
    version="1.0.0",
    lifespan=lifespan,
)


def _jsonable_errors(errors):
    """Drop exception objects pydantic places in ``ctx`` so errors serialize."""
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        cleaned.append(error)
    return cleaned


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed JSON bodies with a readable message."""
    errors = exc.errors()

    for error in errors:
        if error.get("type") == "json_invalid":
            return JSONResponse(
                status_code=422,
                content={
                    "success": False,
                    "detail": "Invalid JSON in request body.",
                    "error": "json_parse_error",
                },
            )

    return JSONResponse(
        status_code=422,
        content={"success": False, "detail": _jsonable_errors(errors)},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint, including a probe of the LLM backend."""
    llm_connected = await llm_service.is_available() if llm_service else False
    return HealthResponse(
        llm="connected" if llm_connected else "disconnected",
        documents=document_index.size() if document_index else 0,
    )


@app.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(upload.router, prefix="/api", tags=["upload"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(documents.router, prefix="/api", tags=["documents"])


if __name__ == "__main__":
    import uvicorn

    run_settings = Settings()
    uvicorn.run(app, host=run_settings.api_host, port=run_settings.api_port)
