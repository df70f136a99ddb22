"""Probe module - Endpoint checks, success filters and options."""

from alien.probe.filters import (
    AllOf,
    AnyOf,
    Not,
    ResponseCode,
    ResponseContains,
    ResultFilter,
    build_filter,
)
from alien.probe.options import (
    on_failure,
    on_success,
    with_auth_basic,
    with_frequency,
    with_header,
    with_http_client,
    with_logger,
    with_method,
    with_payload,
    with_success_filter,
    with_timeout,
)
from alien.probe.probe import Probe
from alien.probe.result import Result

__all__ = [
    "Probe",
    "Result",
    "ResultFilter",
    "ResponseCode",
    "ResponseContains",
    "AllOf",
    "AnyOf",
    "Not",
    "build_filter",
    "on_failure",
    "on_success",
    "with_auth_basic",
    "with_frequency",
    "with_header",
    "with_http_client",
    "with_logger",
    "with_method",
    "with_payload",
    "with_success_filter",
    "with_timeout",
]
