"""Tests for the Alien controller."""

import threading
import time

import pytest

from alien.controller import Alien, TerminationListener
from alien.core.exceptions import (
    MissingSuccessFilterError,
    NotInitialisedError,
    NotRunningError,
    ProbeAlreadyRegisteredError,
    ProbeNotFoundError,
)
from alien.probe import on_success, with_frequency


class FakeServer:
    """Metrics server recording start/close calls."""

    def __init__(self):
        self.calls: list[str] = []

    def start(self) -> None:
        self.calls.append("start")

    def close(self) -> None:
        self.calls.append("close")


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def alien(metrics_settings, server) -> Alien:
    """Controller without signal handlers or a real metrics endpoint."""
    return Alien(metrics_settings, server=server, handle_signals=False)


def run_in_thread(alien: Alien) -> threading.Thread:
    thread = threading.Thread(target=alien.run, daemon=True)
    thread.start()
    return thread


class TestRegistry:
    """Tests for adding and removing probes."""

    def test_add_runs_probe(self, alien, make_probe, metrics):
        """Adding a probe registers and starts it."""
        probe = make_probe()

        alien.add_probe(probe)

        assert probe in alien
        assert probe.running is True
        assert metrics.records == [(probe.endpoint, True)]

    def test_add_twice(self, alien, make_probe, metrics):
        """A probe is registered once; the second add raises."""
        probe = make_probe()
        alien.add_probe(probe)

        with pytest.raises(ProbeAlreadyRegisteredError):
            alien.add_probe(probe)

        assert len(alien) == 1
        assert probe.running is True
        assert len(metrics.records) == 1

    def test_add_rolls_back_on_run_failure(self, alien, make_probe):
        """A probe that fails to start is not kept."""
        probe = make_probe(success=None)

        with pytest.raises(MissingSuccessFilterError):
            alien.add_probe(probe)

        assert probe not in alien
        assert len(alien) == 0

    def test_remove_unknown(self, alien, make_probe):
        """Removing an unregistered probe raises ProbeNotFoundError."""
        with pytest.raises(ProbeNotFoundError):
            alien.remove_probe(make_probe())

    def test_remove_stops_probe(self, alien, make_probe):
        """Removing a running probe stops it."""
        probe = make_probe()
        alien.add_probe(probe)

        alien.remove_probe(probe)

        assert probe not in alien
        assert probe.running is False

    def test_remove_stopped_probe(self, alien, make_probe):
        """Removing a probe stopped elsewhere still succeeds."""
        probe = make_probe()
        alien.add_probe(probe)
        probe.stop()

        alien.remove_probe(probe)

        assert len(alien) == 0

    def test_probes_snapshot(self, alien, make_probe):
        """probes returns the registered set."""
        first, second = make_probe(), make_probe(endpoint="https://example.com/other")
        alien.add_probe(first)
        alien.add_probe(second)

        assert alien.probes == frozenset({first, second})


class TestUninitialised:
    """Tests for a controller that never went through __init__."""

    def test_operations_raise(self, make_probe):
        """Mutating operations raise NotInitialisedError."""
        alien = Alien.__new__(Alien)
        probe = make_probe()

        with pytest.raises(NotInitialisedError):
            alien.add_probe(probe)
        with pytest.raises(NotInitialisedError):
            alien.remove_probe(probe)
        with pytest.raises(NotInitialisedError):
            alien.stop()

    def test_run_is_noop(self):
        """run() returns immediately."""
        Alien.__new__(Alien).run()


class TestRun:
    """Tests for the blocking run loop."""

    def test_stop_shuts_everything_down(self, alien, make_probe, server):
        """Stopping run() closes the server and stops every probe."""
        probes = [make_probe(endpoint=f"https://example.com/{i}") for i in range(3)]
        for probe in probes:
            alien.add_probe(probe)

        thread = run_in_thread(alien)
        alien.stop()
        thread.join(5)

        assert not thread.is_alive()
        assert server.calls == ["start", "close"]
        assert all(not probe.running for probe in probes)

    def test_stop_failure_is_not_fatal(self, alien, make_probe):
        """A probe that is already stopped does not abort the sweep."""
        stopped, running = make_probe(), make_probe(endpoint="https://example.com/b")
        alien.add_probe(stopped)
        alien.add_probe(running)
        stopped.stop()

        thread = run_in_thread(alien)
        alien.stop()
        thread.join(5)

        assert not thread.is_alive()
        assert running.running is False
        with pytest.raises(NotRunningError):
            stopped.stop()

    def test_termination_notification(self, alien, make_probe):
        """A termination notification stops run() and the probes."""
        probe = make_probe()
        alien.add_probe(probe)

        thread = run_in_thread(alien)
        alien.termination.notify()
        thread.join(5)

        assert not thread.is_alive()
        assert probe.running is False

    def test_action_can_read_controller(self, alien, make_probe):
        """Actions run during add_probe may call back into the controller."""
        seen = []
        probe = make_probe(on_success(lambda result: seen.append(len(alien.probes))))

        alien.add_probe(probe)

        assert seen == [1]

    def test_action_removes_probe_during_shutdown(self, alien, make_probe):
        """An in-flight action removing its probe does not block run()."""
        in_action = threading.Event()

        def remove_self(result):
            if threading.current_thread().name.startswith("probe:"):
                in_action.set()
                time.sleep(0.1)
                try:
                    alien.remove_probe(probe)
                except ProbeNotFoundError:
                    pass

        probe = make_probe(with_frequency(0.01), on_success(remove_self))
        alien.add_probe(probe)
        thread = run_in_thread(alien)
        assert in_action.wait(5)

        alien.stop()
        thread.join(5)

        assert not thread.is_alive()
        assert probe not in alien

    def test_without_server(self, metrics_settings):
        """With metrics disabled no server is created."""
        alien = Alien(metrics_settings, handle_signals=False)

        assert alien._server is None

        thread = run_in_thread(alien)
        alien.stop()
        thread.join(5)

        assert not thread.is_alive()


class TestTerminationListener:
    """Tests for the termination listener."""

    def test_fires_once(self):
        """on_terminate runs once however often it is notified."""
        calls = []
        done = threading.Event()

        def on_terminate():
            calls.append(True)
            done.set()

        listener = TerminationListener(on_terminate, install_handlers=False)
        listener.start()
        listener.notify()
        listener.notify()

        assert done.wait(5)
        listener.close()
        assert calls == [True]
        assert listener.fired is True

    def test_close_without_notification(self):
        """Closing does not call on_terminate."""
        calls = []
        listener = TerminationListener(lambda: calls.append(True), install_handlers=False)
        listener.start()

        listener.close()

        assert calls == []
        assert listener.fired is False

    def test_installs_and_restores_handlers(self):
        """Signal handlers are installed on start and restored on close."""
        import signal

        before = signal.getsignal(signal.SIGTERM)
        listener = TerminationListener(lambda: None, signals=[signal.SIGTERM])
        listener.start()

        assert signal.getsignal(signal.SIGTERM) == listener._handle

        listener.close()
        assert signal.getsignal(signal.SIGTERM) == before
