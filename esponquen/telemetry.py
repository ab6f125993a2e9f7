"""
OpenTelemetry tracing for recording sessions.

Each finished recording produces a ``session`` span with ``transcribe`` and
``inject`` children. Spans can be exported to a JSON Lines file, to an OTLP
collector, or both.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Sequence

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)

from esponquen.utils import get_app_data_dir

_tracer: Optional[trace.Tracer] = None
_tracer_provider: Optional[TracerProvider] = None


def span_to_dict(span: ReadableSpan, resource: Resource) -> dict:
    """Convert a finished span to a JSON-serializable dict."""
    return {
        "name": span.name,
        "context": {
            "trace_id": format(span.context.trace_id, "032x"),
            "span_id": format(span.context.span_id, "016x"),
        },
        "parent_id": format(span.parent.span_id, "016x") if span.parent else None,
        "start_time": span.start_time,
        "end_time": span.end_time,
        "status": {
            "status_code": str(span.status.status_code),
            "description": span.status.description,
        },
        "attributes": dict(span.attributes) if span.attributes else {},
        "events": [
            {
                "name": event.name,
                "timestamp": event.timestamp,
                "attributes": dict(event.attributes) if event.attributes else {},
            }
            for event in (span.events or [])
        ],
        "resource": {
            "attributes": dict(resource.attributes) if resource.attributes else {},
        },
    }


class JSONLinesSpanExporter(SpanExporter):
    """
    Exports spans to a JSON Lines file, one span per line.

    The file is rotated (renamed with a timestamp) once it grows beyond
    ``max_size_mb``. A value of 0 disables rotation.
    """

    def __init__(self, trace_file_path: Path, resource: Resource, max_size_mb: int = 10):
        self.trace_file_path = trace_file_path
        self.resource = resource
        self.max_size_mb = max_size_mb
        self.file_handle: Optional[IO[str]] = None
        self._open_file()

    def _open_file(self) -> None:
        if self.file_handle is not None:
            try:
                self.file_handle.close()
            except OSError as e:
                logger.warning(f"Error closing trace file before rotation: {e}")

        self.trace_file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_handle = open(self.trace_file_path, "a", encoding="utf-8")

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if not spans:
            return SpanExportResult.SUCCESS

        try:
            if _rotate_trace_file_if_needed(self.trace_file_path, self.max_size_mb):
                self._open_file()
            for span in spans:
                self.file_handle.write(
                    json.dumps(span_to_dict(span, self.resource), default=str) + "\n"
                )
            self.file_handle.flush()
            return SpanExportResult.SUCCESS
        except Exception as e:
            logger.error(f"Failed to export spans to JSON file: {e}")
            return SpanExportResult.FAILURE

    def shutdown(self) -> None:
        if self.file_handle is not None:
            try:
                self.file_handle.close()
            except OSError as e:
                logger.warning(f"Error closing trace file: {e}")
            finally:
                self.file_handle = None


def get_trace_file_path(trace_file: Optional[str] = None) -> Path:
    if trace_file is not None:
        return Path(trace_file).expanduser().resolve()
    return get_app_data_dir() / "traces.jsonl"


def _rotate_trace_file_if_needed(trace_file_path: Path, max_size_mb: int = 10) -> bool:
    """Rotate the trace file if it exceeds max size.

    Returns:
        True if the file was rotated.
    """
    if max_size_mb <= 0 or not trace_file_path.exists():
        return False

    file_size_mb = trace_file_path.stat().st_size / (1024 * 1024)
    if file_size_mb < max_size_mb:
        return False

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    rotated_path = trace_file_path.with_name(
        f"{trace_file_path.stem}.{timestamp}{trace_file_path.suffix}"
    )
    try:
        trace_file_path.rename(rotated_path)
    except OSError as e:
        logger.warning(f"Failed to rotate trace file: {e}")
        return False
    logger.info(f"Rotated trace file to: {rotated_path} (size: {file_size_mb:.2f} MB)")
    return True


def initialize_telemetry(
    service_name: str = "esponquen",
    otlp_endpoint: Optional[str] = None,
    export_to_file: bool = True,
    trace_file: Optional[str] = None,
    enabled: bool = False,
    rotation_max_size_mb: int = 10,
) -> None:
    """
    Initialize OpenTelemetry tracing with the configured exporters.

    Args:
        service_name: Service name attached to every span
        otlp_endpoint: OTLP gRPC collector endpoint (None disables OTLP export)
        export_to_file: Whether to export spans to a JSONL file
        trace_file: Custom path for the trace file
        enabled: Whether telemetry is enabled at all
        rotation_max_size_mb: Max trace file size before rotation (0 disables)
    """
    global _tracer, _tracer_provider

    if not enabled:
        logger.info("Telemetry disabled")
        return

    if not otlp_endpoint and not export_to_file:
        logger.warning(
            "Telemetry enabled but no exporters configured. "
            "Set otlp_endpoint or export_to_file=true"
        )
        return

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)
    exporters_configured = []

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

            provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
            )
            exporters_configured.append(f"OTLP({otlp_endpoint})")
        except Exception as e:
            logger.warning(
                f"Failed to initialize OTLP exporter to {otlp_endpoint}: {e}. "
                "Traces will not be sent to collector."
            )

    if export_to_file:
        trace_file_path = get_trace_file_path(trace_file)
        try:
            provider.add_span_processor(
                BatchSpanProcessor(
                    JSONLinesSpanExporter(
                        trace_file_path=trace_file_path,
                        resource=resource,
                        max_size_mb=rotation_max_size_mb,
                    )
                )
            )
            exporters_configured.append(f"File({trace_file_path})")
        except OSError as e:
            logger.warning(
                f"Failed to initialize file exporter: {e}. Traces will not be saved to file."
            )

    if not exporters_configured:
        logger.warning("No trace exporters were successfully initialized")
        return

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    _tracer = trace.get_tracer(__name__)
    logger.info(
        f"Telemetry initialized: service={service_name}, "
        f"exporters={', '.join(exporters_configured)}"
    )


def get_tracer() -> Optional[trace.Tracer]:
    """The session tracer, or None if telemetry is not initialized."""
    return _tracer


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the provider down."""
    global _tracer, _tracer_provider

    if _tracer_provider is not None:
        try:
            _tracer_provider.shutdown()
            logger.info("Telemetry shutdown complete")
        except Exception as e:
            logger.warning(f"Error during telemetry shutdown: {e}")
        finally:
            _tracer_provider = None
            _tracer = None
