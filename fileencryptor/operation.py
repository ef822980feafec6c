import logging
import os
import threading
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Callable, Generator, Optional

from .errors import CipherIOError, EncryptorError, OperationCancelled
from .keys import derive_key_material
from .models import (
    CompletionEvent,
    Direction,
    Operation,
    OperationState,
    ProgressEvent,
)
from .stream import CHUNK_SIZE, ChunkedCipherStream

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, timedelta], None]


class CancelToken:
    """One-way cancellation flag shared between the caller and the worker."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """Request cancellation. Returns True only for the call that set the flag."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class OperationResult:
    status: OperationState
    operation: Operation
    completion: Optional[CompletionEvent] = None
    error: Optional[EncryptorError] = None
    cleanup_error: Optional[OSError] = None

    @property
    def ok(self) -> bool:
        return self.status is OperationState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.status is OperationState.CANCELLED

    @property
    def failed(self) -> bool:
        return self.status is OperationState.FAILED

    def unwrap(self) -> CompletionEvent:
        if self.ok:
            return self.completion
        if self.failed:
            raise self.error
        raise OperationCancelled(f"{self.operation.direction.human()} cancelled by user")


def _open(path: Path, mode: str, operation: Operation):
    try:
        return open(path, mode)
    except OSError as ex:
        raise CipherIOError(f"{operation.direction.human()} I/O error: {ex}") from ex


def _relay(
    events: Generator[ProgressEvent, None, CompletionEvent],
    on_progress: Optional[ProgressCallback],
) -> CompletionEvent:
    while True:
        try:
            event = next(events)
        except StopIteration as stop:
            return stop.value
        log.debug("Progress: %d%%, elapsed %s", event.percent, event.elapsed)
        if on_progress:
            on_progress(event.percent, event.elapsed)


class OperationController:
    """Runs exactly one encrypt or decrypt operation end to end.

    State goes IDLE -> RUNNING -> COMPLETED | CANCELLED | FAILED. On the
    cancelled and failed paths the destination file is removed before the
    result is returned; if removal fails the outcome is unchanged and the
    OSError is attached to the result as cleanup_error.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size
        self.state = OperationState.IDLE
        self.operation: Optional[Operation] = None
        self._destination_opened = False

    def run(
        self,
        direction: Direction,
        source,
        destination,
        passphrase: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token=None,
        on_complete: Optional[Callable[[int, timedelta], None]] = None,
    ) -> OperationResult:
        if self.state is not OperationState.IDLE:
            raise EncryptorError("An OperationController runs exactly one operation.")

        operation = Operation(direction, Path(source), Path(destination))
        self.operation = operation
        self.state = OperationState.RUNNING
        log.info("%s started: %s -> %s", direction.human(), operation.source, operation.destination)

        try:
            completion = self._drive(operation, passphrase, on_progress, cancel_token)
        except OperationCancelled:
            log.warning("%s cancelled after %d bytes", direction.human(), operation.bytes_processed)
            return self._finish(OperationState.CANCELLED)
        except EncryptorError as ex:
            log.error("%s failed: %s", direction.human(), ex)
            return self._finish(OperationState.FAILED, error=ex)
        except BaseException:
            self.state = OperationState.FAILED
            self._remove_partial_output()
            raise

        self.state = OperationState.COMPLETED
        log.info(
            "%s completed: %s (%d bytes, %s)",
            direction.human(), operation.destination, completion.output_size, completion.total_elapsed,
        )
        if on_complete:
            on_complete(completion.output_size, completion.total_elapsed)
        return OperationResult(OperationState.COMPLETED, operation, completion=completion)

    def _drive(self, operation, passphrase, on_progress, cancel_token) -> CompletionEvent:
        key_material = derive_key_material(passphrase)
        stream = ChunkedCipherStream(key_material, operation.direction, chunk_size=self.chunk_size)
        # Only acquisition is wrapped here; the stream maps its own read/write
        # failures, and errors from on_progress must reach the caller as-is.
        with _open(operation.source, "rb", operation) as src:
            try:
                operation.total_source_bytes = os.fstat(src.fileno()).st_size
            except OSError as ex:
                raise CipherIOError(f"Cannot stat {operation.source}: {ex}") from ex
            with _open(operation.destination, "wb", operation) as dst:
                self._destination_opened = True
                return _relay(
                    stream.transform(src, dst, operation, cancel_token),
                    on_progress,
                )

    def _finish(self, state: OperationState, error: Optional[EncryptorError] = None) -> OperationResult:
        self.state = state
        cleanup_error = self._remove_partial_output()
        return OperationResult(state, self.operation, error=error, cleanup_error=cleanup_error)

    def _remove_partial_output(self) -> Optional[OSError]:
        # Only a destination this run opened is ours to delete.
        if not self._destination_opened:
            return None
        path = self.operation.destination
        try:
            path.unlink()
        except FileNotFoundError:
            return None
        except OSError as ex:
            log.error("Could not remove partial output %s", path, exc_info=True)
            return ex
        log.info("Removed partial output %s", path)
        return None


def encrypt_file(source, destination, password: str, progress_cb=None, stop_flag=None,
                 on_complete=None, chunk_size: int = CHUNK_SIZE) -> OperationResult:
    return OperationController(chunk_size=chunk_size).run(
        Direction.ENCRYPT, source, destination, password,
        on_progress=progress_cb, cancel_token=stop_flag, on_complete=on_complete,
    )


def decrypt_file(source, destination, password: str, progress_cb=None, stop_flag=None,
                 on_complete=None, chunk_size: int = CHUNK_SIZE) -> OperationResult:
    return OperationController(chunk_size=chunk_size).run(
        Direction.DECRYPT, source, destination, password,
        on_progress=progress_cb, cancel_token=stop_flag, on_complete=on_complete,
    )
