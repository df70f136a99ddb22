"""Controller module - Probe set lifecycle and termination handling."""

from alien.controller.alien import Alien
from alien.controller.signals import TerminationListener

__all__ = [
    "Alien",
    "TerminationListener",
]
