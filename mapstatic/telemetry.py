import atexit
import socket
import uuid
from typing import TYPE_CHECKING, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.semconv.resource import ResourceAttributes

from mapstatic.config import TelemetryConfig

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

TRACER_NAME = "mapstatic"

# Error messages
_MISSING_EXPORTERS_MSG = (
    "Telemetry is enabled but no exporters are configured. "
    "Set endpoint or console_export=True to export traces."
)


def get_tracer() -> "Tracer":
    """Return the tracer used around Static API requests.

    Spans are no-ops until ``setup_telemetry`` (or the host application)
    installs a tracer provider.
    """
    return trace.get_tracer(TRACER_NAME)


def setup_telemetry(telemetry_config: TelemetryConfig) -> Optional["Tracer"]:
    """Setup OpenTelemetry tracing for snapshot and media requests.

    Configures and installs a global tracer provider with OTLP and/or console
    exporters.

    Args:
        telemetry_config: Telemetry configuration specifying endpoint and export options

    Returns:
        OpenTelemetry tracer instance if enabled, None otherwise

    Raises:
        ValueError: If telemetry is enabled without any exporter
    """

    if not telemetry_config.enabled:
        return None

    # Enabled telemetry needs at least one exporter
    if not telemetry_config.endpoint and not telemetry_config.console_export:
        raise ValueError(_MISSING_EXPORTERS_MSG)

    resource_attrs: dict[str, str] = {
        ResourceAttributes.SERVICE_NAME: telemetry_config.service_name,
    }

    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as get_version

    try:
        resource_attrs[ResourceAttributes.SERVICE_VERSION] = get_version("mapstatic")
    except PackageNotFoundError:
        pass  # Running from a source checkout

    if telemetry_config.deployment_environment:
        resource_attrs[ResourceAttributes.DEPLOYMENT_ENVIRONMENT] = (
            telemetry_config.deployment_environment
        )

    # hostname + short UUID
    resource_attrs[ResourceAttributes.SERVICE_INSTANCE_ID] = (
        f"{socket.gethostname()}-{str(uuid.uuid4())[:8]}"
    )

    provider = TracerProvider(resource=Resource.create(resource_attrs))

    if telemetry_config.endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        exporter = OTLPSpanExporter(
            endpoint=telemetry_config.endpoint, timeout=telemetry_config.timeout
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))

    if telemetry_config.console_export:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    # Flush batched spans before the interpreter exits
    atexit.register(provider.shutdown)

    return provider.get_tracer(TRACER_NAME)
