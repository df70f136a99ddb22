"""Core module - Configuration, errors, logging and metrics."""

from alien.core.config import MetricsSettings, ProbeDefaults, Settings
from alien.core.metrics import MetricsServer, ProbeMetrics
from alien.core.models import ProbeDefinition

__all__ = [
    "Settings",
    "MetricsSettings",
    "ProbeDefaults",
    "ProbeDefinition",
    "ProbeMetrics",
    "MetricsServer",
]
