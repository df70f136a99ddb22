"""alien - Probes your endpoints and exposes the outcomes as Prometheus metrics."""

__version__ = "1.0.0"

from alien.controller import Alien
from alien.core.config import Settings
from alien.probe import Probe, Result, ResultFilter

__all__ = [
    "Alien",
    "Probe",
    "Result",
    "ResultFilter",
    "Settings",
]
