"""Probe execution engine.

A Probe checks one endpoint on a schedule. Each check (a trigger) sends a
request, classifies the response with the probe's success filter, counts the
outcome and runs the matching actions. The schedule runs on its own thread
between ``run()`` and ``stop()``.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Iterable, Optional

import httpx

from alien.core.exceptions import (
    AlreadyRunningError,
    InvalidEndpointError,
    InvalidFrequencyError,
    InvalidMethodError,
    MissingSuccessFilterError,
    NotInitialisedError,
    NotRunningError,
    ProbeValidationError,
    TransportError,
)
from alien.core.logging import get_logger
from alien.core.metrics import ProbeMetrics, default_probe_metrics
from alien.probe.filters import ResultFilter
from alien.probe.options import Action, Option
from alien.probe.result import Result, utcnow

DEFAULT_METHOD = "GET"
DEFAULT_FREQUENCY = 10.0
DEFAULT_TIMEOUT = 30.0


class Probe:
    """Checks one endpoint and tracks whether it is healthy.

    A probe is built from an endpoint and a sequence of options, then started
    with :meth:`run`. It needs a success filter before it can run::

        probe = Probe(
            "https://example.com/health",
            with_frequency(30),
            with_success_filter(ResponseCode(200)),
        )
        probe.run()
        ...
        probe.stop()

    Every trigger increments the shared ``alien_probe_count`` counter with the
    probe's endpoint and the success outcome.
    """

    _initialised = False

    def __init__(
        self,
        endpoint: str,
        *options: Option,
        metrics: Optional[ProbeMetrics] = None,
    ):
        self._processing = threading.RLock()
        self._state = threading.Lock()
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._running = False

        self._client = httpx.Client(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
        self._endpoint = endpoint
        self._method = DEFAULT_METHOD
        self._payload = ""
        self._frequency = DEFAULT_FREQUENCY
        self._success: ResultFilter | None = None

        self._success_actions: list[Action] = []
        self._failure_actions: list[Action] = []

        self._logger: Any = get_logger("alien.probe")

        try:
            for option in options:
                option(self)
            self._metrics = metrics if metrics is not None else default_probe_metrics()
        except Exception:
            self._client.close()
            raise

        self._metrics.register(self._endpoint)
        self._initialised = True
        self._logger.info("%s: Registered prometheus metric collector", self)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def method(self) -> str:
        return self._method

    @property
    def payload(self) -> str:
        return self._payload

    @property
    def frequency(self) -> float:
        return self._frequency

    @property
    def success_filter(self) -> ResultFilter | None:
        return self._success

    @property
    def running(self) -> bool:
        return self._running

    def __str__(self) -> str:
        if not self._initialised:
            return "Probe<uninitialised>"
        return f"Probe<{self._method} '{self._endpoint}' every {self._frequency:g}s>"

    __repr__ = __str__

    def set_logger(self, logger: Any) -> None:
        """Set the logger for the probe."""
        self._logger = logger
        logger.info("%s: Set logger", self)

    def set_frequency(self, seconds: float) -> None:
        """Change the polling interval; applies from the next tick."""
        if seconds <= 0:
            raise InvalidFrequencyError()
        with self._processing:
            self._frequency = float(seconds)

    def validate(self) -> None:
        """Check there is enough valid configuration to carry out a probe.

        Raises the first problem found, in a fixed order: not initialised,
        endpoint, method, frequency, success filter.
        """
        if not self._initialised:
            raise NotInitialisedError("probe not initialised")

        if not self._endpoint:
            raise InvalidEndpointError()

        if not self._method:
            raise InvalidMethodError()

        if self._frequency <= 0:
            raise InvalidFrequencyError()

        if self._success is None:
            raise MissingSuccessFilterError()

    def run(self) -> None:
        """Start the scheduling loop and trigger a first check immediately.

        Raises:
            NotInitialisedError: If the probe was never constructed
            AlreadyRunningError: If a loop is still active, including one
                that was asked to stop but has not exited yet
            ProbeValidationError: If the configuration is incomplete
        """
        if not self._initialised:
            raise NotInitialisedError("probe not initialised")

        with self._state:
            if self._running:
                raise AlreadyRunningError()

            self.validate()

            # Each run cycle gets its own stop event
            stop = threading.Event()
            thread = threading.Thread(
                target=self._loop,
                args=(stop,),
                name=f"probe:{self._endpoint}",
                daemon=True,
            )
            self._stop = stop
            self._thread = thread
            self._running = True
            thread.start()

        self._logger.info("%s: Running", self)
        self._scheduled_trigger()

    def _loop(self, stop: threading.Event) -> None:
        try:
            next_tick = time.monotonic() + self._frequency

            while not stop.wait(max(0.0, next_tick - time.monotonic())):
                # A stop that lands with the tick wins
                if stop.is_set():
                    break

                self._scheduled_trigger()

                now = time.monotonic()
                next_tick += self._frequency
                if next_tick <= now:
                    # Drop the ticks missed while the trigger ran
                    next_tick = now + self._frequency
        finally:
            with self._state:
                if self._thread is threading.current_thread():
                    self._thread = None
                    self._running = False

        self._logger.info("%s: Stopped", self)

    def _scheduled_trigger(self) -> None:
        try:
            self.trigger()
        except TransportError:
            # Already counted as a failure and logged by trigger()
            return
        except ProbeValidationError as exc:
            self._logger.error("%s: not triggered: %s", self, exc)
        except Exception:
            self._logger.exception("%s: trigger raised", self)

    def stop(self) -> None:
        """Stop further checks and wait for the scheduling loop to exit.

        An in-flight trigger finishes first, so this blocks for at most one
        request (bounded by the client timeout). Called from an action on
        the loop thread it returns at once; ``running`` stays True until
        that trigger completes and the loop exits.

        Of several concurrent calls exactly one succeeds; the others raise
        NotRunningError without waiting.

        Raises:
            NotInitialisedError: If the probe was never constructed
            NotRunningError: If the probe is not running or already stopping
        """
        if not self._initialised:
            raise NotInitialisedError("probe not initialised")

        self._logger.info("%s: Stopping", self)

        with self._state:
            if not self._running or self._stop.is_set():
                self._logger.info("%s: Already stopped", self)
                raise NotRunningError()

            self._stop.set()
            thread = self._thread

        if thread is not threading.current_thread():
            thread.join()

    def close(self) -> None:
        """Stop the probe if it is running and release its HTTP client."""
        if not self._initialised:
            return
        if self._running:
            try:
                self.stop()
            except NotRunningError:
                pass

        # Another caller may be stopping the loop; let it finish first
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._client.close()

    def trigger(self) -> Result:
        """Carry out one check now.

        Returns:
            The Result of the check

        Raises:
            NotInitialisedError: If the probe was never constructed
            ProbeValidationError: If the configuration is incomplete
            TransportError: If no response was obtained; the attempt is
                still counted as a failure and failure actions still run
        """
        if not self._initialised:
            raise NotInitialisedError("probe not initialised")

        with self._processing:
            self.validate()

            self._logger.info("%s: Triggered...", self)

            try:
                request = self._client.build_request(
                    self._method,
                    self._endpoint,
                    content=self._payload or None,
                )
                response = self._client.send(request)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                self._logger.warning("%s: failed: %s", self, exc)
                result = Result(timestamp=utcnow(), probe=self, error=exc)
                self._metrics.record(self._endpoint, False)
                self._dispatch(self._failure_actions, result)
                raise TransportError(f"{self}: {exc}", result=result) from exc

            result = Result(
                timestamp=utcnow(),
                probe=self,
                code=response.status_code,
                body=response.text,
                headers=response.headers,
            )

            self._logger.info("%s: Completed (%d)", self, result.code)

            success = self._success.check(result)
            self._metrics.record(self._endpoint, success)
            self._dispatch(
                self._success_actions if success else self._failure_actions,
                result,
            )
            return result

    def _dispatch(self, actions: Iterable[Action], result: Result) -> None:
        for action in list(actions):
            try:
                action(result)
            except Exception:
                self._logger.exception("%s: action %r raised", self, action)
