"""OpenTelemetry tracing for ranking and answer generation."""
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.openai import OpenAIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from pdfchat.utils.logger import logger


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer; spans are no-ops until tracing is initialized."""
    return trace.get_tracer(name)


def build_exporter(otlp_endpoint: Optional[str] = None) -> SpanExporter:
    """Pick the OTLP exporter when an endpoint is configured, else print spans to the console."""
    if otlp_endpoint:
        logger.info(f"Exporting spans to OTLP endpoint: {otlp_endpoint}")
        return OTLPSpanExporter(endpoint=otlp_endpoint)

    logger.info("Exporting spans to the console")
    return ConsoleSpanExporter()


def initialize_tracing(
    service_name: str = "pdf-chat-assistant",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    tracing_enabled: bool = True,
    sample_ratio: float = 1.0,
) -> Optional[TracerProvider]:
    """
    Install a global tracer provider and instrument the OpenAI client.

    Args:
        service_name: ``service.name`` resource attribute
        service_version: ``service.version`` resource attribute
        otlp_endpoint: OTLP/HTTP traces URL (e.g. http://localhost:4318/v1/traces);
            spans go to the console when unset
        tracing_enabled: Skip all setup when False
        sample_ratio: Fraction of root traces to keep (0.0 to 1.0)

    Returns:
        The installed TracerProvider, or None when tracing is off or failed to start
    """
    if not tracing_enabled:
        logger.info("Tracing is disabled")
        return None

    sample_ratio = min(max(sample_ratio, 0.0), 1.0)

    try:
        provider = TracerProvider(
            resource=Resource.create(
                {"service.name": service_name, "service.version": service_version}
            ),
            sampler=ParentBased(TraceIdRatioBased(sample_ratio)),
        )
        provider.add_span_processor(BatchSpanProcessor(build_exporter(otlp_endpoint)))
        trace.set_tracer_provider(provider)

        # Chat completion calls show up as child spans of the request
        OpenAIInstrumentor().instrument()
    except Exception as e:
        logger.error(f"Failed to initialize tracing: {str(e)}", exc_info=True)
        return None

    logger.info(
        "OpenTelemetry tracing initialized",
        extra={"service_name": service_name, "sample_ratio": sample_ratio},
    )
    return provider


def shutdown_tracing(tracer_provider: Optional[TracerProvider]) -> None:
    """Flush pending spans and shut down the provider."""
    if tracer_provider is None:
        return

    try:
        tracer_provider.shutdown()
    except Exception as e:
        logger.warning(f"Error during tracing shutdown: {str(e)}")
        return

    logger.info("Tracing shutdown completed")
