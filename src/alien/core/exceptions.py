"""Custom exceptions for alien.

This module provides a hierarchy of specific exceptions for the failure
states of probes and the controller. Every exception carries a default
message, so ``raise InvalidEndpointError()`` reads the same everywhere.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from alien.probe.result import Result


class AlienError(Exception):
    """Base exception for all alien errors.

    All custom exceptions inherit from this class, allowing callers to
    catch every alien-specific error with a single except clause.
    """

    default_message = "alien error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NotInitialisedError(AlienError):
    """Raised when operating on a probe or controller that was never constructed."""

    default_message = "not initialised"


class StateError(AlienError):
    """Raised when an operation does not fit the current running state."""

    default_message = "invalid state"


class AlreadyRunningError(StateError):
    """Raised by ``run()`` while the scheduling loop is active."""

    default_message = "probe not stopped"


class NotRunningError(StateError):
    """Raised by ``stop()`` when there is no loop to stop."""

    default_message = "probe not running"


class ProbeValidationError(AlienError):
    """Raised when a probe is missing required configuration.

    Subclasses are checked in a fixed order by ``Probe.validate()``:
    - endpoint
    - method
    - frequency
    - success filter
    """

    default_message = "probe invalid"


class InvalidEndpointError(ProbeValidationError):
    default_message = "probe invalid: endpoint"


class InvalidMethodError(ProbeValidationError):
    default_message = "probe invalid: method"


class InvalidFrequencyError(ProbeValidationError):
    default_message = "probe invalid: frequency is zero"


class MissingSuccessFilterError(ProbeValidationError):
    default_message = "probe invalid: no success filter"


class RegistryError(AlienError):
    """Raised on duplicate attachment or unknown membership."""

    default_message = "registry error"


class FilterAlreadySetError(RegistryError):
    """Raised when a second success filter is attached to a probe."""

    default_message = "probe with success filter: filter already set"


class ProbeAlreadyRegisteredError(RegistryError):
    """Raised when a probe is added to a controller twice."""

    default_message = "probe already registered"


class ProbeNotFoundError(RegistryError):
    """Raised when removing a probe the controller does not know."""

    default_message = "probe not found"


class TransportError(AlienError):
    """Raised when a request could not be built or sent.

    The failed attempt is still recorded; ``result`` holds the
    :class:`~alien.probe.result.Result` carrying the underlying error.
    """

    default_message = "probe request failed"

    def __init__(self, message: str | None = None, result: Result | None = None):
        super().__init__(message)
        self.result = result


class NotImplementedOptionError(AlienError, NotImplementedError):
    """Raised by probe options that are not supported yet."""

    default_message = "not implemented"


class ConfigurationError(AlienError):
    """Raised when configuration cannot be turned into working objects."""

    default_message = "invalid configuration"


class FilterDefinitionError(ConfigurationError, ValueError):
    """Raised when a declarative filter definition is malformed."""

    default_message = "invalid filter definition"


class MetricsRegistrationError(ConfigurationError):
    """Raised when the probe counter cannot be registered.

    Registering the same metric twice on one registry is fatal for the
    process configuration; nothing downstream can recover from it.
    """

    default_message = "probe metric already registered"
