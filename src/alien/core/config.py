"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from alien.core.models import ProbeDefinition


class MetricsSettings(BaseModel):
    """Metrics exposition configuration."""

    enabled: bool = Field(
        default=True,
        description="Serve the metrics endpoint while the controller runs"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Address the metrics endpoint binds to"
    )

    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the metrics endpoint listens on"
    )

    path: str = Field(
        default="/metrics",
        description="HTTP path serving the metrics text format"
    )

    @field_validator("path")
    @classmethod
    def path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("metrics path must start with '/'")
        return value


class ProbeDefaults(BaseModel):
    """Defaults applied to probes that do not set their own values."""

    frequency: float = Field(
        default=10.0,
        gt=0,
        description="Polling interval in seconds"
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds"
    )

    method: str = Field(
        default="GET",
        min_length=1,
        description="HTTP method used for probe requests"
    )


class LogSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)"
    )

    json_format: bool = Field(
        default=False,
        description="Output JSON logs for machine parsing"
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional file to also write logs to"
    )


class Settings(BaseSettings):
    """Main configuration container."""

    model_config = SettingsConfigDict(
        env_prefix="ALIEN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    probe: ProbeDefaults = Field(default_factory=ProbeDefaults)
    log: LogSettings = Field(default_factory=LogSettings)

    probes: list[ProbeDefinition] = Field(
        default_factory=list,
        description="Probes to start with the controller"
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML configuration file."""
        import yaml

        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_file_or_default(cls, path: Path | None = None) -> "Settings":
        """Load from file if exists, otherwise return defaults."""
        default_paths = [
            Path("alien.yaml"),
            Path("alien.yml"),
            Path(".alien.yaml"),
            Path.home() / ".config" / "alien" / "config.yaml",
        ]

        if path and path.exists():
            return cls.from_yaml(path)

        for default_path in default_paths:
            if default_path.exists():
                return cls.from_yaml(default_path)

        return cls()
