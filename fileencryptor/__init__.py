"""Streaming AES file encryption with progress reporting and cancellation."""

from .errors import (
    CipherError,
    CipherIOError,
    EncryptorError,
    InvalidKeyOrCorruptData,
    OperationCancelled,
)
from .keys import CipherKeyMaterial, derive_key_material
from .models import CompletionEvent, Direction, Operation, OperationState, ProgressEvent
from .naming import default_output_path
from .operation import (
    CancelToken,
    OperationController,
    OperationResult,
    decrypt_file,
    encrypt_file,
)
from .stream import CHUNK_SIZE, ChunkedCipherStream
from .worker import BackgroundOperation

__version__ = "1.0.0"
