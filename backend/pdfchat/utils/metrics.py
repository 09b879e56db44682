"""Prometheus metrics for ingestion, retrieval and generation."""
from prometheus_client import Counter, Gauge, Histogram

DOCUMENTS_INGESTED = Counter(
    "pdfchat_documents_ingested_total",
    "Documents processed and placed in the index",
)
CHUNKS_CREATED = Counter(
    "pdfchat_chunks_created_total",
    "Chunks produced during ingestion",
)
DOCUMENTS_INDEXED = Gauge(
    "pdfchat_documents_indexed",
    "Documents currently held in the in-memory index",
)
DOCUMENTS_EVICTED = Counter(
    "pdfchat_documents_evicted_total",
    "Documents evicted by the index capacity policy",
)
QUERIES_RANKED = Counter(
    "pdfchat_queries_ranked_total",
    "Ranking passes over a document",
)
EMPTY_RANKINGS = Counter(
    "pdfchat_empty_rankings_total",
    "Ranking passes that returned no chunks",
    ["reason"],
)
RANKING_SECONDS = Histogram(
    "pdfchat_ranking_seconds",
    "Time spent scoring and ranking the chunks of one document",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
GENERATION_SECONDS = Histogram(
    "pdfchat_generation_seconds",
    "Latency of answer generation calls",
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)
