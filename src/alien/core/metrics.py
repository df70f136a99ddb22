"""Prometheus metrics for probe outcomes and the endpoint that serves them."""

from __future__ import annotations

import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    generate_latest,
)

from alien.core.config import MetricsSettings
from alien.core.exceptions import MetricsRegistrationError
from alien.core.logging import get_logger

PROBE_COUNT_NAME = "alien_probe_count"
PROBE_COUNT_HELP = "Count of probes by endpoint and success"

logger = get_logger("alien.metrics")


def success_label(success: bool) -> str:
    return "true" if success else "false"


class ProbeMetrics:
    """Counter family keyed by endpoint and success label.

    One instance owns the ``alien_probe_count`` family on one registry and
    is shared by every probe in the process. Constructing a second instance
    on the same registry raises :class:`MetricsRegistrationError`.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry
        try:
            self._counter = Counter(
                PROBE_COUNT_NAME,
                PROBE_COUNT_HELP,
                ["endpoint", "success"],
                registry=registry,
            )
        except ValueError as exc:
            raise MetricsRegistrationError(
                f"Cannot register {PROBE_COUNT_NAME}: {exc}"
            ) from exc

    def register(self, endpoint: str) -> None:
        """Create both series for an endpoint so they are exported at zero."""
        for success in (True, False):
            self._counter.labels(endpoint=endpoint, success=success_label(success))

    def record(self, endpoint: str, success: bool) -> None:
        """Count one completed trigger."""
        self._counter.labels(endpoint=endpoint, success=success_label(success)).inc()

    def value(self, endpoint: str, success: bool) -> float:
        """Current count for an endpoint and outcome."""
        sample = self.registry.get_sample_value(
            f"{PROBE_COUNT_NAME}_total",
            {"endpoint": endpoint, "success": success_label(success)},
        )
        return sample or 0.0


_default_metrics: Optional[ProbeMetrics] = None
_default_lock = threading.Lock()


def default_probe_metrics() -> ProbeMetrics:
    """Process-wide sink on the default Prometheus registry, created once."""
    global _default_metrics
    with _default_lock:
        if _default_metrics is None:
            _default_metrics = ProbeMetrics(REGISTRY)
        return _default_metrics


def create_metrics_app(
    registry: CollectorRegistry = REGISTRY,
    path: str = "/metrics",
) -> FastAPI:
    """Build the app serving the Prometheus text format at ``path``."""
    app = FastAPI(title="alien metrics", docs_url=None, redoc_url=None)

    def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(path, metrics, methods=["GET"], include_in_schema=False)
    return app


class MetricsServer:
    """Serves the metrics app with uvicorn on a background thread."""

    def __init__(
        self,
        settings: MetricsSettings,
        registry: CollectorRegistry = REGISTRY,
    ):
        self.settings = settings
        self.app = create_metrics_app(registry, settings.path)
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> str:
        return f"http://{self.settings.host}:{self.settings.port}{self.settings.path}"

    def start(self) -> None:
        if self._thread is not None:
            return

        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level="error",
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            name="alien-metrics",
            daemon=True,
        )
        self._thread.start()
        logger.info("Serving metrics on %s", self.address)

    def close(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return

        self._server.should_exit = True
        self._thread.join(timeout)
        self._server = None
        self._thread = None
        logger.info("Metrics server closed")
