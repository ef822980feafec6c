import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path


class Direction(Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    def human(self) -> str:
        return "Encryption" if self is Direction.ENCRYPT else "Decryption"


class OperationState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    percent: int
    elapsed: timedelta


@dataclass(frozen=True)
class CompletionEvent:
    output_size: int
    total_elapsed: timedelta


@dataclass
class Operation:
    """State of a single encrypt/decrypt run.

    Progress fields are only written by the thread executing the transform.
    """

    direction: Direction
    source: Path
    destination: Path
    total_source_bytes: int = 0
    bytes_processed: int = 0
    started_at: float = field(default_factory=time.monotonic)
    elapsed: timedelta = timedelta(0)

    def advance(self, nbytes: int) -> None:
        self.bytes_processed += nbytes

    def tick(self) -> timedelta:
        self.elapsed = timedelta(seconds=time.monotonic() - self.started_at)
        return self.elapsed
