"""Options configuring a Probe at construction time.

An option is a callable applied to the probe after its defaults are set::

    Probe("https://example.com", with_frequency(30), with_success_filter(ResponseCode(200)))

Options run in the order given. An option raising aborts construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

import httpx

from alien.core.exceptions import FilterAlreadySetError, NotImplementedOptionError
from alien.probe.filters import ResultFilter
from alien.probe.result import Result

if TYPE_CHECKING:
    from alien.probe.probe import Probe

Option = Callable[["Probe"], None]

# Callback run with the Result of a trigger
Action = Callable[[Result], Any]


def with_auth_basic(user: str, password: str) -> Option:
    """Set basic authentication credentials for the probe."""
    def apply(probe: Probe) -> None:
        raise NotImplementedOptionError("basic authentication is not implemented")
    return apply


def with_header(header: str, value: str) -> Option:
    """Send the given header with every request."""
    def apply(probe: Probe) -> None:
        raise NotImplementedOptionError("custom headers are not implemented")
    return apply


def with_frequency(seconds: float) -> Option:
    """Set the rate at which probes are conducted (default 10 seconds).

    The value is only checked when the probe is validated, so a
    non-positive frequency surfaces from ``run()`` and ``trigger()``.
    """
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._frequency = float(seconds)
    return apply


def with_logger(logger: Any) -> Option:
    """Set the probe's logger. Anything with printf-style level methods works."""
    def apply(probe: Probe) -> None:
        probe._logger = logger
    return apply


def with_method(method: str) -> Option:
    """Set the probe's HTTP method."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._method = method
    return apply


def with_payload(payload: str) -> Option:
    """Set a body to send with every request."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._payload = payload
    return apply


def with_timeout(seconds: float) -> Option:
    """Set the outgoing request timeout."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._client.timeout = httpx.Timeout(seconds)
    return apply


def with_http_client(client: httpx.Client) -> Option:
    """Replace the probe's HTTP client. The probe takes ownership of it."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            previous, probe._client = probe._client, client
        previous.close()
    return apply


def with_success_filter(result_filter: ResultFilter) -> Option:
    """Set the conditions considered to be a successful probe.

    Only one filter may be attached; compose several conditions with
    AllOf / AnyOf / Not instead of calling this twice.
    """
    def apply(probe: Probe) -> None:
        with probe._processing:
            if probe._success is not None:
                raise FilterAlreadySetError()
            probe._success = result_filter
    return apply


def on_failure(action: Action) -> Option:
    """Run ``action`` whenever a trigger is classified as a failure."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._failure_actions.append(action)
    return apply


def on_success(action: Action) -> Option:
    """Run ``action`` whenever a trigger is classified as a success."""
    def apply(probe: Probe) -> None:
        with probe._processing:
            probe._success_actions.append(action)
    return apply
