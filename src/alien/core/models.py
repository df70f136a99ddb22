"""Data models for declaratively configured probes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class BasicAuth(BaseModel):
    """Credentials for HTTP basic authentication."""

    username: str
    password: str


class ProbeDefinition(BaseModel):
    """A probe as written in a configuration file.

    Unset ``method``, ``frequency`` and ``timeout`` fall back to the
    configured probe defaults when the probe is built.
    """

    endpoint: str = Field(..., min_length=1, description="URL to probe")
    method: str | None = Field(default=None, description="HTTP method")
    payload: str = Field(default="", description="Request body to send")
    frequency: float | None = Field(
        default=None,
        gt=0,
        description="Polling interval in seconds"
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Request timeout in seconds"
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra request headers"
    )
    basic_auth: BasicAuth | None = Field(
        default=None,
        description="Basic authentication credentials"
    )
    success: dict[str, Any] = Field(
        default_factory=lambda: {"code": 200},
        description="Filter definition deciding what counts as success"
    )

    @field_validator("success")
    @classmethod
    def success_is_buildable(cls, value: dict[str, Any]) -> dict[str, Any]:
        from alien.probe.filters import build_filter

        build_filter(value)
        return value

    def build_success_filter(self):
        """Build the success filter tree for this definition."""
        from alien.probe.filters import build_filter

        return build_filter(self.success)
