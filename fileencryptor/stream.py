"""Chunked AES-CBC transform between two binary file objects.

Output format is raw ciphertext: no magic, no header, no salt, no tag. The
only integrity signal on decryption is PKCS7 padding validation, so some
wrong passphrases produce garbage instead of an error.
"""

import logging
from typing import BinaryIO, Callable, Generator, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import CipherIOError, InvalidKeyOrCorruptData, OperationCancelled
from .keys import CipherKeyMaterial
from .models import CompletionEvent, Direction, Operation, ProgressEvent

log = logging.getLogger(__name__)

CHUNK_SIZE = 1024
BLOCK_SIZE = algorithms.AES.block_size // 8  # 16
# Decrypted size is unknown until the padding is stripped. Progress uses
# ciphertext_size / 1.3 as the denominator and clamps at 100; the factor is an
# inherited rough guess, not a bound.
DECRYPT_SIZE_ESTIMATE_DIVISOR = 1.3

_Pipeline = Tuple[Callable[[bytes], bytes], Callable[[], bytes]]


class ChunkedCipherStream:
    def __init__(
        self,
        key_material: CipherKeyMaterial,
        direction: Direction,
        chunk_size: int = CHUNK_SIZE,
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.key_material = key_material
        self.direction = direction
        self.chunk_size = chunk_size

    def _pipeline(self) -> _Pipeline:
        cipher = Cipher(
            algorithms.AES(self.key_material.key),
            modes.CBC(self.key_material.iv),
        )
        if self.direction is Direction.ENCRYPT:
            encryptor = cipher.encryptor()
            padder = padding.PKCS7(algorithms.AES.block_size).padder()

            def update(data: bytes) -> bytes:
                return encryptor.update(padder.update(data))

            def finalize() -> bytes:
                return encryptor.update(padder.finalize()) + encryptor.finalize()

            return update, finalize

        decryptor = cipher.decryptor()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()

        def update(data: bytes) -> bytes:
            return unpadder.update(decryptor.update(data))

        def finalize() -> bytes:
            return unpadder.update(decryptor.finalize()) + unpadder.finalize()

        return update, finalize

    def _percent(self, operation: Operation, produced: int) -> int:
        total = operation.total_source_bytes
        if total <= 0:
            return 100
        if self.direction is Direction.ENCRYPT:
            return min(operation.bytes_processed * 100 // total, 100)
        estimate = total / DECRYPT_SIZE_ESTIMATE_DIVISOR
        return min(int(produced / estimate * 100), 100)

    def _read(self, source: BinaryIO) -> bytes:
        try:
            return source.read(self.chunk_size)
        except OSError as ex:
            raise CipherIOError(f"Failed to read source: {ex}") from ex

    @staticmethod
    def _write(sink: BinaryIO, data: bytes) -> None:
        if not data:
            return
        try:
            sink.write(data)
        except OSError as ex:
            raise CipherIOError(f"Failed to write destination: {ex}") from ex

    @staticmethod
    def _flush(sink: BinaryIO) -> None:
        try:
            sink.flush()
        except OSError as ex:
            raise CipherIOError(f"Failed to flush destination: {ex}") from ex

    def _apply(self, step: Callable[..., bytes], *args: bytes) -> bytes:
        try:
            return step(*args)
        except ValueError as ex:
            # Raised by the decryptor for a non block-multiple input and by the
            # unpadder for invalid padding.
            raise InvalidKeyOrCorruptData(
                "Data could not be decrypted: wrong key or corrupted file."
            ) from ex

    def transform(
        self,
        source: BinaryIO,
        sink: BinaryIO,
        operation: Operation,
        cancel_token=None,
    ) -> Generator[ProgressEvent, None, CompletionEvent]:
        """Stream source through the cipher into sink.

        Yields a ProgressEvent after every chunk and returns the
        CompletionEvent once the final block is flushed. cancel_token is any
        object with is_set(); it is checked after each read, before the
        matching write, and OperationCancelled is raised when it is set.
        """
        update, finalize = self._pipeline()
        written = 0
        last_percent = -1

        while True:
            chunk = self._read(source)
            if cancel_token is not None and cancel_token.is_set():
                raise OperationCancelled(f"{self.direction.human()} cancelled by user")
            if not chunk:
                break
            operation.advance(len(chunk))
            out = self._apply(update, chunk)
            self._write(sink, out)
            written += len(out)
            last_percent = self._percent(operation, written)
            yield ProgressEvent(last_percent, operation.tick())

        tail = self._apply(finalize)
        self._write(sink, tail)
        written += len(tail)
        self._flush(sink)

        elapsed = operation.tick()
        if last_percent < 100:
            yield ProgressEvent(100, elapsed)
        log.debug("%s stream finished: %d bytes in, %d bytes out",
                  self.direction.human(), operation.bytes_processed, written)
        return CompletionEvent(output_size=written, total_elapsed=elapsed)
