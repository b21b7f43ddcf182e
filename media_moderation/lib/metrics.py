"""
Prometheus metrics exporter
"""
import logging
from prometheus_client import Counter, Histogram, start_http_server
from functools import wraps
import time

logger = logging.getLogger(__name__)

# Counters
events_processed = Counter('moderation_events_total', 'Total inbound events handled', ['entry_point', 'outcome'])
dispositions = Counter('moderation_dispositions_total', 'Total keep/quarantine decisions', ['content_kind', 'disposition'])
validation_failures = Counter('moderation_validation_failures_total', 'Rejected inbound messages', ['entry_point', 'field'])
relocations = Counter('moderation_relocations_total', 'Object moves issued', ['outcome'])

# Histograms (for latency)
annotation_latency = Histogram('moderation_annotation_duration_seconds', 'Annotation service duration', ['content_kind'])
pipeline_latency = Histogram('moderation_pipeline_duration_seconds', 'Pipeline duration', ['entry_point'])


class MetricsExporter:
    """Prometheus metrics exporter"""

    def __init__(self, port: int = 8000):
        self.port = port
        self.server_started = False

    def start(self):
        """Start Prometheus HTTP server"""
        if not self.server_started:
            start_http_server(self.port)
            self.server_started = True
            logger.info(f"Prometheus metrics server started on port {self.port}")

    @staticmethod
    def track_pipeline(entry_point: str):
        """Decorator to time an async entry point and count its outcome"""
        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    events_processed.labels(entry_point=entry_point, outcome=type(e).__name__).inc()
                    raise
                finally:
                    pipeline_latency.labels(entry_point=entry_point).observe(time.time() - start_time)
                events_processed.labels(entry_point=entry_point, outcome='ok').inc()
                return result
            return wrapper
        return decorator

    @staticmethod
    def record_disposition(content_kind: str, disposition: str):
        dispositions.labels(content_kind=content_kind, disposition=disposition).inc()

    @staticmethod
    def record_validation_failure(entry_point: str, field: str):
        validation_failures.labels(entry_point=entry_point, field=field).inc()

    @staticmethod
    def record_annotation(content_kind: str, duration: float):
        annotation_latency.labels(content_kind=content_kind).observe(duration)

    @staticmethod
    def record_relocation(moved: bool):
        relocations.labels(outcome='moved' if moved else 'failed').inc()
