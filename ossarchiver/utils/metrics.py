"""
Prometheus metrics for artifact publishing.

Metrics Provided:
    - upload_requests_total: Counter of file uploads by status
    - upload_bytes_total: Counter of uploaded bytes
    - upload_duration_seconds: Histogram of per-file upload latency
    - store_api_errors_total: Counter of object-store errors
    - publish_runs_total: Counter of publish runs by outcome

Usage:
    from ossarchiver.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload():
        store.put_object(bucket, key, stream)
    metrics.record_upload_success(bytes_uploaded=1024)

    # Expose for scraping:
    python -m ossarchiver.utils.metrics --port 9090
"""

import os
import signal
from contextlib import nullcontext
from typing import Any, ContextManager, Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    start_http_server,
)

from ossarchiver import __version__
from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)


class PrometheusMetrics:
    """
    Collectors for publish runs and file uploads.

    When disabled every method is a no-op, so callers never need to check.

    Example:
        >>> metrics = PrometheusMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload_failure(error_type="ClientError")
    """

    def __init__(
        self,
        enabled: bool = True,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.info("Metrics collection disabled")
            return

        self.upload_requests = Counter(
            name="upload_requests_total",
            documentation="Total number of file uploads",
            labelnames=["status"],
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="upload_bytes_total",
            documentation="Total bytes uploaded to the object store",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="upload_duration_seconds",
            documentation="Time spent uploading a single file",
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )

        self.store_api_errors = Counter(
            name="store_api_errors_total",
            documentation="Total object-store API errors",
            labelnames=["operation", "error_type"],
            registry=self.registry,
        )

        self.publish_runs = Counter(
            name="publish_runs_total",
            documentation="Total publish runs by outcome",
            labelnames=["status"],
            registry=self.registry,
        )

        self.app_info = Info(
            name="ossarchiver",
            documentation="Artifact archiver metadata",
            registry=self.registry,
        )
        self.app_info.info({"version": __version__})

    def track_upload(self) -> ContextManager[Any]:
        """Context manager timing one file upload."""
        if not self.enabled:
            return nullcontext()
        return self.upload_duration.time()

    def record_upload_success(self, bytes_uploaded: int = 0) -> None:
        if not self.enabled:
            return
        self.upload_requests.labels(status="success").inc()
        if bytes_uploaded > 0:
            self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self, error_type: str = "unknown") -> None:
        if not self.enabled:
            return
        self.upload_requests.labels(status="failure").inc()
        self.store_api_errors.labels(operation="put_object", error_type=error_type).inc()

    def record_publish(self, status: str) -> None:
        """Count a finished publish run (success/partial/no_artifacts/fatal)."""
        if not self.enabled:
            return
        self.publish_runs.labels(status=status).inc()


_metrics_instance: Optional[PrometheusMetrics] = None


def get_metrics() -> PrometheusMetrics:
    """
    Get the process-wide metrics instance.

    Collection is disabled with ``METRICS_ENABLED=false``.
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = PrometheusMetrics(enabled=enabled)

    return _metrics_instance


def start_metrics_server(port: int = 9090, addr: str = "0.0.0.0") -> None:
    """
    Serve ``/metrics`` and block until interrupted.

    Args:
        port: Port to listen on
        addr: Address to bind to
    """
    get_metrics()
    logger.info(f"Starting Prometheus metrics server on {addr}:{port}")
    start_http_server(port=port, addr=addr)
    try:
        signal.pause()
    except KeyboardInterrupt:
        logger.info("Metrics server shutting down")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Artifact archiver metrics server")
    parser.add_argument("--port", type=int, default=9090, help="Port (default: 9090)")
    parser.add_argument("--addr", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    args = parser.parse_args()

    start_metrics_server(port=args.port, addr=args.addr)
