"""Controller owning a set of probes."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Optional

from prometheus_client import REGISTRY, CollectorRegistry

from alien.controller.signals import TerminationListener
from alien.core.config import MetricsSettings
from alien.core.exceptions import (
    AlienError,
    NotInitialisedError,
    NotRunningError,
    ProbeAlreadyRegisteredError,
    ProbeNotFoundError,
)
from alien.core.logging import get_logger
from alien.core.metrics import MetricsServer
from alien.probe.probe import Probe


class Alien:
    """Runs a group of probes and serves their metrics.

    Probes start as soon as they are added. :meth:`run` serves the metrics
    endpoint and blocks until :meth:`stop` is called or a termination signal
    arrives, then stops every registered probe.
    """

    _initialised = False

    def __init__(
        self,
        settings: Optional[MetricsSettings] = None,
        *,
        registry: CollectorRegistry = REGISTRY,
        server: Optional[MetricsServer] = None,
        logger: Optional[Any] = None,
        handle_signals: bool = True,
    ):
        self.settings = settings or MetricsSettings()
        self._probes: dict[Probe, bool] = {}
        self._processing = threading.Lock()
        self._stop = threading.Event()
        self._logger = logger or get_logger("alien.controller")

        if server is None and self.settings.enabled:
            server = MetricsServer(self.settings, registry)
        self._server = server

        self._termination = TerminationListener(
            self.stop,
            install_handlers=handle_signals,
            logger=self._logger,
        )
        self._initialised = True

    @property
    def probes(self) -> frozenset[Probe]:
        with self._processing:
            return frozenset(self._probes)

    @property
    def termination(self) -> TerminationListener:
        return self._termination

    def __contains__(self, probe: Probe) -> bool:
        return probe in self._probes

    def __len__(self) -> int:
        return len(self._probes)

    def add_probe(self, probe: Probe) -> None:
        """Register a probe and start it.

        The probe runs outside the controller lock, so its actions may call
        back into the controller.

        Raises:
            NotInitialisedError: If the controller was never constructed
            ProbeAlreadyRegisteredError: If the probe is already registered
            AlienError: Whatever ``probe.run()`` raised; the probe is then
                not kept
        """
        if not self._initialised:
            raise NotInitialisedError("alien not initialised")

        with self._processing:
            if probe in self._probes:
                raise ProbeAlreadyRegisteredError(f"{probe} already registered")
            self._probes[probe] = True

        try:
            probe.run()
        except AlienError:
            with self._processing:
                self._probes.pop(probe, None)
            raise

        self._logger.info("Added %s", probe)

    def remove_probe(self, probe: Probe) -> None:
        """Unregister a probe, stopping it if it is running.

        Raises:
            NotInitialisedError: If the controller was never constructed
            ProbeNotFoundError: If the probe is not registered
        """
        if not self._initialised:
            raise NotInitialisedError("alien not initialised")

        with self._processing:
            if probe not in self._probes:
                raise ProbeNotFoundError(f"{probe} not found")
            del self._probes[probe]

        if probe.running:
            try:
                probe.stop()
            except NotRunningError:
                pass

        self._logger.info("Removed %s", probe)

    def listen_for_termination(self) -> None:
        """Stop the controller when an interrupt or terminate signal arrives."""
        if not self._initialised:
            raise NotInitialisedError("alien not initialised")
        self._termination.start()

    def stop(self) -> None:
        """Ask :meth:`run` to shut down."""
        if not self._initialised:
            raise NotInitialisedError("alien not initialised")
        self._stop.set()

    def run(self) -> None:
        """Serve metrics and block until stopped, then stop every probe."""
        if not self._initialised:
            return

        self._termination.start()
        if self._server is not None:
            self._server.start()

        self._stop.wait()
        self._logger.info("Stop requested at: %s", datetime.now(timezone.utc).isoformat())

        if self._server is not None:
            self._server.close()

        for probe in self.probes:
            try:
                probe.stop()
            except AlienError as exc:
                self._logger.warning("Stopping %s: %s", probe, exc)

        self._termination.close()
        self._stop.clear()
