"""Outcome of a single probe trigger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from alien.probe.probe import Probe


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Result:
    """What one trigger observed.

    ``error`` is set when no response was obtained; ``code``, ``body`` and
    ``headers`` are then left empty. ``probe`` identifies the probe that
    produced the result and is not part of equality.
    """

    timestamp: datetime = field(default_factory=utcnow)
    probe: Optional["Probe"] = field(default=None, compare=False, repr=False)
    code: int = 0
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        """True when a response was received."""
        return self.error is None

    def summary(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "endpoint": self.probe.endpoint if self.probe is not None else None,
            "code": self.code,
            "body_length": len(self.body),
            "error": str(self.error) if self.error is not None else None,
        }
