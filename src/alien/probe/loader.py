"""Build probes from configuration."""

from __future__ import annotations

from typing import Optional

from alien.core.config import ProbeDefaults, Settings
from alien.core.metrics import ProbeMetrics
from alien.core.models import ProbeDefinition
from alien.probe import options as opts
from alien.probe.options import Option
from alien.probe.probe import Probe


def options_for(definition: ProbeDefinition, defaults: ProbeDefaults) -> list[Option]:
    """Translate a definition into probe options, filling in defaults."""
    options: list[Option] = [
        opts.with_method(definition.method or defaults.method),
        opts.with_frequency(definition.frequency or defaults.frequency),
        opts.with_timeout(definition.timeout or defaults.timeout),
        opts.with_success_filter(definition.build_success_filter()),
    ]

    if definition.payload:
        options.append(opts.with_payload(definition.payload))

    if definition.basic_auth is not None:
        options.append(
            opts.with_auth_basic(
                definition.basic_auth.username,
                definition.basic_auth.password,
            )
        )

    for header, value in definition.headers.items():
        options.append(opts.with_header(header, value))

    return options


def build_probe(
    definition: ProbeDefinition,
    defaults: Optional[ProbeDefaults] = None,
    metrics: Optional[ProbeMetrics] = None,
) -> Probe:
    """Construct a Probe for one definition.

    Raises:
        NotImplementedOptionError: If the definition uses headers or
            basic authentication
    """
    defaults = defaults or ProbeDefaults()
    return Probe(
        definition.endpoint,
        *options_for(definition, defaults),
        metrics=metrics,
    )


def build_probes(
    settings: Settings,
    metrics: Optional[ProbeMetrics] = None,
) -> list[Probe]:
    """Construct every probe listed in the settings, in order."""
    return [
        build_probe(definition, settings.probe, metrics)
        for definition in settings.probes
    ]
