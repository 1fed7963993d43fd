from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

logger = logging.getLogger(__name__)


class RequestGate:
    """
    Busy flag allowing a single service request in flight at a time.
    """

    def __init__(self) -> None:
        self._label: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._label is not None

    @property
    def label(self) -> Optional[str]:
        return self._label

    def acquire(self, label: str) -> bool:
        if self._label is not None:
            logger.debug("Request '%s' refused, '%s' still in flight", label, self._label)
            return False
        self._label = label
        return True

    def release(self) -> None:
        self._label = None


class _RequestSignals(QObject):
    succeeded = Signal(str, object)
    failed = Signal(str, object)


class _RequestTask(QRunnable):
    def __init__(self, label: str, call: Callable[[], Any], signals: _RequestSignals) -> None:
        super().__init__()
        self._label = label
        self._call = call
        self._signals = signals

    def run(self) -> None:  # type: ignore[override]
        try:
            result = self._call()
        except Exception as exc:  # reported back to the UI thread
            logger.exception("Request '%s' failed: %s", self._label, exc)
            self._emit(self._signals.failed, exc)
        else:
            self._emit(self._signals.succeeded, result)

    def _emit(self, signal, payload: Any) -> None:
        try:
            signal.emit(self._label, payload)
        except RuntimeError:
            # The dispatcher was deleted while the request ran, e.g. on window close.
            logger.warning("Dropping outcome of request '%s': its dispatcher is gone", self._label)


class ServiceDispatcher(QObject):
    """
    Runs service calls on a worker thread and reports back on the UI thread.

    The gate is released before any callback runs, on success and on failure
    alike, so the run trigger can never stay disabled.
    """

    busyChanged = Signal(bool)
    failed = Signal(str, object)  # label, exception

    def __init__(self, pool: Optional[QThreadPool] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._gate = RequestGate()
        self._on_success: Optional[Callable[[Any], None]] = None
        self._on_failure: Optional[Callable[[Exception], None]] = None
        self._signals = _RequestSignals(self)
        self._signals.succeeded.connect(self._handle_succeeded)
        self._signals.failed.connect(self._handle_failed)

    @property
    def busy(self) -> bool:
        return self._gate.busy

    def submit(
        self,
        label: str,
        call: Callable[[], Any],
        on_success: Optional[Callable[[Any], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
    ) -> bool:
        """
        Start ``call`` on the pool unless another request is in flight.

        ``on_success`` receives the result; ``on_failure`` runs after the
        ``failed`` signal has been emitted.
        """

        if not self._gate.acquire(label):
            return False
        self._on_success = on_success
        self._on_failure = on_failure
        self.busyChanged.emit(True)
        self._pool.start(_RequestTask(label, call, self._signals))
        return True

    @Slot(str, object)
    def _handle_succeeded(self, label: str, result: Any) -> None:
        on_success, _ = self._release()
        if on_success is not None:
            on_success(result)

    @Slot(str, object)
    def _handle_failed(self, label: str, error: Exception) -> None:
        _, on_failure = self._release()
        self.failed.emit(label, error)
        if on_failure is not None:
            on_failure(error)

    def _release(self) -> Tuple[Optional[Callable[[Any], None]], Optional[Callable[[Exception], None]]]:
        callbacks = (self._on_success, self._on_failure)
        self._on_success = self._on_failure = None
        self._gate.release()
        self.busyChanged.emit(False)
        return callbacks
