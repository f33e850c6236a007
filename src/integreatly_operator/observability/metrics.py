"""
Prometheus metrics for the Integreatly operator.

This module provides metrics collection for reconciliation passes and
per-product phases, plus the HTTP server that exposes them.
"""

import logging
import time
from contextlib import asynccontextmanager

# aiohttp ships with kopf; the metrics server reuses it
from aiohttp.web import Application, AppRunner, Request, Response, TCPSite
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from integreatly_operator.models import StatusPhase

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

RECONCILIATION_TOTAL = Counter(
    "integreatly_operator_reconciliation_total",
    "Total number of reconciliation passes",
    ["resource_type", "namespace", "name", "result"],
    registry=None,  # Will be set during initialization
)

RECONCILIATION_DURATION = Histogram(
    "integreatly_operator_reconciliation_duration_seconds",
    "Time spent on reconciliation passes",
    ["resource_type", "namespace"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=None,
)

RECONCILIATION_ERRORS = Counter(
    "integreatly_operator_reconciliation_errors_total",
    "Total number of reconciliation passes aborted by an error",
    ["resource_type", "namespace", "error_type", "retryable"],
    registry=None,
)

PRODUCT_PHASE = Gauge(
    "integreatly_operator_product_phase",
    "Current phase of each product (1 for the active phase, 0 otherwise)",
    ["installation", "product", "phase"],
    registry=None,
)

INSTALLATION_PHASE = Gauge(
    "integreatly_operator_installation_phase",
    "Current phase of each installation (1 for the active phase, 0 otherwise)",
    ["installation", "namespace", "phase"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()

        for metric in [
            RECONCILIATION_TOTAL,
            RECONCILIATION_DURATION,
            RECONCILIATION_ERRORS,
            PRODUCT_PHASE,
            INSTALLATION_PHASE,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Collects and manages metrics for the Integreatly operator."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @asynccontextmanager
    async def track_reconciliation(
        self,
        resource_type: str,
        namespace: str,
        name: str,
    ):
        """
        Context manager to track a reconciliation pass.

        Args:
            resource_type: Type of resource being reconciled
            namespace: Namespace of the resource
            name: Name of the resource
        """
        start_time = time.time()
        result = "unknown"

        try:
            yield
            result = "success"
        except Exception as e:
            result = "error"
            retryable = "true" if getattr(e, "retryable", False) else "false"
            RECONCILIATION_ERRORS.labels(
                resource_type=resource_type,
                namespace=namespace,
                error_type=type(e).__name__,
                retryable=retryable,
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(
                resource_type=resource_type,
                namespace=namespace,
                name=name,
                result=result,
            ).inc()
            RECONCILIATION_DURATION.labels(
                resource_type=resource_type, namespace=namespace
            ).observe(time.time() - start_time)

    def update_product_phase(
        self, installation: str, product: str, phase: StatusPhase
    ) -> None:
        """Flag the product's current phase, clearing the others."""
        for candidate in StatusPhase:
            PRODUCT_PHASE.labels(
                installation=installation,
                product=product,
                phase=candidate.value or "not installed",
            ).set(1 if candidate is phase else 0)

    def update_installation_phase(
        self, installation: str, namespace: str, phase: StatusPhase
    ) -> None:
        for candidate in StatusPhase:
            INSTALLATION_PHASE.labels(
                installation=installation,
                namespace=namespace,
                phase=candidate.value or "not installed",
            ).set(1 if candidate is phase else 0)


class MetricsServer:
    """HTTP server for exposing Prometheus metrics."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        """
        Initialize metrics server.

        Args:
            port: Port to serve metrics on
            host: Host interface to bind to
        """
        self.port = port
        self.host = host
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Handle /metrics endpoint for Prometheus scraping."""
        try:
            metrics_data = generate_latest(get_metrics_registry())
        except Exception as e:
            logger.error(f"Failed to generate metrics: {e}")
            return Response(
                text=f"Error generating metrics: {type(e).__name__}. Check logs for details.",
                status=500,
            )
        return Response(body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def _healthz_handler(self, request: Request) -> Response:
        """Handle /healthz endpoint for Kubernetes liveness probes."""
        return Response(text="ok")

    async def start(self) -> None:
        """Start the metrics server."""
        self.runner = AppRunner(self.app)
        await self.runner.setup()

        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")

    async def stop(self) -> None:
        """Stop the metrics server."""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None

        logger.info("Metrics server stopped")


# Global metrics collector instance
metrics_collector = MetricsCollector()
