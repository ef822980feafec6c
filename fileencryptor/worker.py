import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from .errors import EncryptorError
from .models import Direction, Operation, OperationState
from .operation import CancelToken, OperationController, OperationResult
from .stream import CHUNK_SIZE

log = logging.getLogger(__name__)


def distinct_progress(callback):
    """Wrap an on_progress callback so it only fires when the percent changes."""
    last = [None]

    def relay(percent, elapsed):
        if percent == last[0]:
            return
        last[0] = percent
        callback(percent, elapsed)

    return relay


class BackgroundOperation:
    """Run one OperationController on a dedicated daemon thread.

    Every callback fires on the worker thread. Callers that must touch
    thread-bound state (a Tk widget, for instance) marshal it themselves.
    """

    def __init__(
        self,
        direction: Direction,
        source,
        destination,
        passphrase: str,
        on_progress=None,
        on_complete=None,
        on_done: Optional[Callable[[OperationResult], None]] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.direction = direction
        self.source = Path(source)
        self.destination = Path(destination)
        self.cancel_token = CancelToken()
        self._passphrase = passphrase
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._on_done = on_done
        self._controller = OperationController(chunk_size=chunk_size)
        self._thread: Optional[threading.Thread] = None
        self._result: Optional[OperationResult] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def result(self) -> Optional[OperationResult]:
        return self._result

    @property
    def state(self) -> OperationState:
        return self._controller.state

    def start(self) -> "BackgroundOperation":
        if self._thread is not None:
            raise EncryptorError("Background operation already started.")
        self._thread = threading.Thread(
            target=self._job,
            name=f"fileencryptor-{self.direction.value}",
            daemon=True,
        )
        self._thread.start()
        return self

    def cancel(self) -> bool:
        requested = self.cancel_token.cancel()
        if requested:
            log.info("Cancellation requested for %s of %s", self.direction.value, self.source)
        return requested

    def join(self, timeout: Optional[float] = None) -> Optional[OperationResult]:
        if self._thread is not None:
            self._thread.join(timeout)
        return self._result

    def _job(self):
        try:
            self._result = self._controller.run(
                self.direction,
                self.source,
                self.destination,
                self._passphrase,
                on_progress=self._on_progress,
                cancel_token=self.cancel_token,
                on_complete=self._on_complete,
            )
        except Exception as ex:
            # Nothing above this thread can receive the exception, so it is
            # reported through the result like any other failure.
            log.exception("Worker for %s stopped by an unexpected error", self.source)
            error = EncryptorError(f"Unexpected error: {ex}")
            error.__cause__ = ex
            operation = self._controller.operation or Operation(self.direction, self.source, self.destination)
            self._result = OperationResult(OperationState.FAILED, operation, error=error)
        finally:
            self._passphrase = None
        if self._on_done:
            self._on_done(self._result)
