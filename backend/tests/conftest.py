"""Pytest configuration and fixtures."""
import shutil
import tempfile
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from pdfchat.services.document_index import DocumentIndex
from pdfchat.services.document_processor import DocumentProcessor
from pdfchat.services.llm_service import LLMService
from pdfchat.services.retrieval_ranker import RetrievalRanker
from pdfchat.services.retrieval_service import RetrievalService

RAILWAY_PAGE = (
    "Chapter one introduces the history of the railway and the first steam "
    "locomotives built in England during the early nineteenth century."
)
PHOTOSYNTHESIS_PAGE = (
    "Photosynthesis converts light energy into chemical energy. During "
    "photosynthesis, plants absorb carbon dioxide and release oxygen. The "
    "chlorophyll in leaves captures sunlight for photosynthesis."
)
CASTLE_PAGE = (
    "The medieval castle was built on a rocky hill above the river, with thick "
    "stone walls, a deep moat and a drawbridge guarding the only gate."
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def document_processor():
    """Document processor with default chunking."""
    return DocumentProcessor(chunk_size=1000, chunk_overlap=300)


@pytest.fixture
def raw_document_text():
    """Extracted text of a three page PDF, pages separated by form feeds."""
    return "\f".join([RAILWAY_PAGE, PHOTOSYNTHESIS_PAGE, CASTLE_PAGE])


@pytest.fixture
def sample_document(document_processor, raw_document_text):
    """Processed three page document."""
    return document_processor.build_document(
        document_id="test-doc-1",
        raw_text=raw_document_text,
        declared_page_count=3,
        filename="science.pdf",
    )


@pytest.fixture
def document_index(sample_document):
    """Index holding the sample document."""
    index = DocumentIndex()
    index.put(sample_document.document_id, sample_document)
    return index


@pytest.fixture
def mock_llm_service():
    """Mock LLM service."""
    service = Mock(spec=LLMService)
    service.generate_answer = AsyncMock(
        return_value={
            "answer": "Plants release oxygen during photosynthesis (Page 2).",
            "token_usage": {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
            "response_time_ms": 250.0,
        }
    )
    service.is_available = AsyncMock(return_value=True)
    service.close = AsyncMock()
    return service


@pytest.fixture
def retrieval_service(document_index, mock_llm_service):
    """Retrieval service over the sample index with a mocked LLM."""
    return RetrievalService(
        document_index=document_index,
        ranker=RetrievalRanker(document_index=document_index),
        llm_service=mock_llm_service,
    )


@pytest.fixture
def upload_settings():
    """Upload limits as read by the upload service and validators."""
    return SimpleNamespace(max_file_size_mb=1, max_pages=10, upload_dir=None)


@pytest.fixture
def pdf_bytes():
    """Minimal bytes carrying the PDF header."""
    return b"%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n>>\nendobj\nxref\n0 1\ntrailer\n<<\n/Root 1 0 R\n>>\n%%EOF"
