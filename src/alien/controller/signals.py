"""Termination signal handling for the controller."""

from __future__ import annotations

import signal
import threading
from typing import Any, Callable, Iterable, Optional

from alien.core.logging import get_logger

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class TerminationListener:
    """Waits on a background thread for a termination notification.

    The notification comes from SIGINT/SIGTERM handlers (installed when
    ``install_handlers`` is set and ``start()`` runs on the main thread) or
    from an explicit :meth:`notify`. ``on_terminate`` is called at most once.
    """

    def __init__(
        self,
        on_terminate: Callable[[], Any],
        *,
        install_handlers: bool = True,
        signals: Iterable[signal.Signals] = TERMINATION_SIGNALS,
        logger: Optional[Any] = None,
    ):
        self._on_terminate = on_terminate
        self._install_handlers = install_handlers
        self._signals = tuple(signals)
        self._logger = logger or get_logger("alien.signals")

        self._received = threading.Event()
        self._lock = threading.Lock()
        self._fired = False
        self._closed = False
        self._thread: threading.Thread | None = None
        self._previous: dict[signal.Signals, Any] = {}

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self) -> None:
        if self._thread is not None:
            return

        with self._lock:
            self._closed = False
            self._fired = False

        if self._install_handlers:
            self._install()

        self._thread = threading.Thread(
            target=self._wait,
            name="alien-termination",
            daemon=True,
        )
        self._thread.start()

    def notify(self) -> None:
        """Deliver a termination notification."""
        self._received.set()

    def close(self) -> None:
        """Stop listening and restore the previous signal handlers."""
        with self._lock:
            self._closed = True
        self._received.set()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        self._received.clear()

        if threading.current_thread() is threading.main_thread():
            for signum, handler in self._previous.items():
                signal.signal(signum, handler)
            self._previous.clear()

    def _install(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            self._logger.warning("Signal handlers can only be installed from the main thread")
            return

        for signum in self._signals:
            self._previous[signum] = signal.signal(signum, self._handle)

    def _handle(self, signum: int, frame: Any) -> None:
        self.notify()

    def _wait(self) -> None:
        self._received.wait()

        with self._lock:
            if self._fired or self._closed:
                return
            self._fired = True

        self._logger.info("Termination signal received")
        self._on_terminate()
