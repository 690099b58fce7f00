"""Monitoring and observability setup.

Instruments are created from the global meter at import time. Until
``init_metrics`` installs an OTLP-backed provider they record into the
OpenTelemetry no-op implementation, so importing this module never needs
a collector.
"""
import logging

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)


def init_tracing(service_name: str, endpoint: str) -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing.

    Args:
        service_name: Value of the service.name resource attribute
        endpoint: OTLP gRPC collector endpoint

    Returns:
        Tracer instance
    """
    resource = Resource.create({"service.name": service_name})

    tracer_provider = TracerProvider(resource=resource)
    otlp_span_exporter = OTLPSpanExporter(
        endpoint=endpoint,
        insecure=True
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
    trace.set_tracer_provider(tracer_provider)

    logger.info(f"Tracing initialized with endpoint: {endpoint}")

    return trace.get_tracer(__name__)


def init_metrics(service_name: str, endpoint: str) -> metrics.Meter:
    """
    Initialize OpenTelemetry metrics.

    Returns:
        Meter instance
    """
    resource = Resource.create({"service.name": service_name})

    otlp_metric_exporter = OTLPMetricExporter(
        endpoint=endpoint,
        insecure=True
    )
    otlp_metric_reader = PeriodicExportingMetricReader(
        otlp_metric_exporter,
        export_interval_millis=5000
    )

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[otlp_metric_reader]
    )
    metrics.set_meter_provider(meter_provider)

    logger.info("Metrics initialized with OTLP exporter")

    return metrics.get_meter(__name__)


meter = metrics.get_meter(__name__)

# Security monitoring metrics
auth_attempts_counter = meter.create_counter(
    "store.auth.attempts",
    description="Total number of authentication attempts",
    unit="1"
)

auth_failures_counter = meter.create_counter(
    "store.auth.failures",
    description="Total number of authentication failures",
    unit="1"
)

# Cart metrics
cart_additions_counter = meter.create_counter(
    "store.cart.additions",
    description="Total number of items added to carts",
    unit="1"
)

cart_removals_counter = meter.create_counter(
    "store.cart.removals",
    description="Total number of items removed from carts",
    unit="1"
)

# Checkout and order metrics
checkout_counter = meter.create_counter(
    "store.checkouts",
    description="Total number of checkouts",
    unit="1"
)

checkout_amount_histogram = meter.create_histogram(
    "store.checkout.amount",
    description="Checkout order total",
    unit="USD"
)

order_status_updates_counter = meter.create_counter(
    "store.orders.status_updates",
    description="Total number of order status changes",
    unit="1"
)

# Catalog metrics
items_deleted_counter = meter.create_counter(
    "store.items.deleted",
    description="Total number of catalog items deleted",
    unit="1"
)
