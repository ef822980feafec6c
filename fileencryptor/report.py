from dataclasses import dataclass
from datetime import timedelta

from .errors import InvalidKeyOrCorruptData
from .operation import OperationResult


@dataclass(frozen=True)
class Notice:
    level: str  # "info", "warning" or "error"
    title: str
    message: str


def format_elapsed(elapsed: timedelta) -> str:
    total = max(int(elapsed.total_seconds()), 0)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_size_mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f}"


def describe_result(result: OperationResult) -> Notice:
    """User-facing summary of a finished operation."""
    operation = result.operation
    name = operation.direction.human()

    if result.ok:
        completion = result.completion
        return Notice(
            "info",
            "Done",
            f"{name} completed successfully!\n\n"
            f"File name: {operation.destination.name}\n"
            f"File size: {format_size_mb(completion.output_size)} MB\n"
            f"Elapsed time: {format_elapsed(completion.total_elapsed)}",
        )

    leftover = ""
    if result.cleanup_error is not None:
        leftover = f"\n\nThe partial output could not be removed:\n{operation.destination}"

    if result.cancelled:
        return Notice("warning", "Cancelled", f"{name} was cancelled.{leftover}")
    if isinstance(result.error, InvalidKeyOrCorruptData):
        return Notice(
            "error",
            "Wrong key",
            f"{name} failed: the key is wrong or the file is corrupted.{leftover}",
        )
    return Notice("error", "Error", f"{name} failed: {result.error}{leftover}")
