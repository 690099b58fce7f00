"""Structured logging configuration."""
import logging
import sys

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter that includes trace context."""

    def __init__(self, *args, service_name: str = "store-service", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record, record, message_dict):
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        # Add trace context if available
        span = trace.get_current_span()
        if span and span.get_span_context().is_valid:
            ctx = span.get_span_context()
            log_record['trace_id'] = format(ctx.trace_id, '032x')
            log_record['span_id'] = format(ctx.span_id, '016x')
            log_record['trace_flags'] = ctx.trace_flags

        log_record['service'] = self.service_name

        # Rename message field for clarity
        if 'message' in log_record:
            log_record['msg'] = log_record.pop('message')


def setup_logging(service_name: str = "store-service", otlp_endpoint: str = "", level: int = logging.INFO):
    """
    Configure structured logging for the application.

    Args:
        service_name: Added to every record and to the OTLP resource
        otlp_endpoint: OTLP gRPC collector endpoint; empty keeps logs on stdout only
        level: Root logger level
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 1. stdout handler with JSON formatting
    formatter = CustomJsonFormatter(
        '%(levelname)s %(name)s %(message)s',
        rename_fields={
            'levelname': 'level'
        },
        service_name=service_name
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 2. OTLP handler to ship logs to the collector
    if otlp_endpoint:
        resource = Resource.create({"service.name": service_name})
        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(OTLPLogExporter(endpoint=otlp_endpoint, insecure=True))
        )
        set_logger_provider(logger_provider)

        root_logger.addHandler(LoggingHandler(level=level, logger_provider=logger_provider))
        logging.info("OTLP logging handler configured", extra={"endpoint": otlp_endpoint})

    # Reduce noise from libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
