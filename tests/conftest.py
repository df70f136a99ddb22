"""Test configuration and fixtures for alien."""

import threading
from typing import Callable

import httpx
import pytest
from prometheus_client import CollectorRegistry

from alien.core.config import MetricsSettings, Settings
from alien.core.logging import reset_logging
from alien.core.metrics import ProbeMetrics
from alien.probe import Probe, ResponseCode, with_http_client, with_success_filter


class RecordingMetrics:
    """Stand-in metrics sink remembering every recorded outcome."""

    def __init__(self):
        self.registered: list[str] = []
        self.records: list[tuple[str, bool]] = []
        self._lock = threading.Lock()

    def register(self, endpoint: str) -> None:
        self.registered.append(endpoint)

    def record(self, endpoint: str, success: bool) -> None:
        with self._lock:
            self.records.append((endpoint, success))

    def count(self, endpoint: str, success: bool) -> int:
        with self._lock:
            return self.records.count((endpoint, success))


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """HTTP client answering every request with ``handler``."""
    return httpx.Client(transport=httpx.MockTransport(handler))


def respond(status_code: int = 200, text: str = "") -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=text)
    return handler


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo any logging configuration a test installs."""
    yield
    reset_logging()


@pytest.fixture
def settings() -> Settings:
    """Default settings for testing."""
    return Settings()


@pytest.fixture
def metrics() -> RecordingMetrics:
    """Recording metrics sink."""
    return RecordingMetrics()


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh Prometheus registry, isolated from the process default."""
    return CollectorRegistry()


@pytest.fixture
def prometheus_metrics(registry: CollectorRegistry) -> ProbeMetrics:
    """Real probe counter bound to the isolated registry."""
    return ProbeMetrics(registry)


@pytest.fixture
def metrics_settings() -> MetricsSettings:
    """Metrics settings with the endpoint disabled."""
    return MetricsSettings(enabled=False)


@pytest.fixture
def make_probe(metrics: RecordingMetrics):
    """Factory for probes talking to a mock transport.

    Probes are stopped and closed when the test ends.
    """
    created: list[Probe] = []

    def factory(*options, endpoint: str = "https://example.com/health", handler=None, success=ResponseCode(200)):
        base = [with_http_client(mock_client(handler or respond(200, "ok")))]
        if success is not None:
            base.append(with_success_filter(success))
        probe = Probe(endpoint, *base, *options, metrics=metrics)
        created.append(probe)
        return probe

    yield factory

    for probe in created:
        probe.close()
