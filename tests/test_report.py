import unittest
from datetime import timedelta
from pathlib import Path

from fileencryptor.errors import CipherIOError, InvalidKeyOrCorruptData
from fileencryptor.models import CompletionEvent, Direction, Operation, OperationState
from fileencryptor.naming import default_output_path
from fileencryptor.operation import OperationResult
from fileencryptor.report import describe_result, format_elapsed, format_size_mb


class OutputNamingTests(unittest.TestCase):
    def test_encrypt_appends_suffix(self):
        self.assertEqual(
            default_output_path(Path("/tmp/report.pdf"), Direction.ENCRYPT),
            Path("/tmp/report.pdf.encrypted"),
        )

    def test_decrypt_replaces_suffix(self):
        self.assertEqual(
            default_output_path("/tmp/report.pdf.encrypted", Direction.DECRYPT),
            Path("/tmp/report.pdf.decrypted"),
        )

    def test_decrypt_without_suffix_never_returns_source(self):
        source = Path("/tmp/report.bin")
        self.assertEqual(default_output_path(source, Direction.DECRYPT), Path("/tmp/report.bin.decrypted"))

    def test_suffix_only_name(self):
        self.assertEqual(
            default_output_path(Path("/tmp/.encrypted"), Direction.DECRYPT),
            Path("/tmp/.encrypted.decrypted"),
        )


class ResultReportTests(unittest.TestCase):
    """Messages shown to the user once an operation finishes."""

    def setUp(self) -> None:
        self.operation = Operation(Direction.DECRYPT, Path("/tmp/a.encrypted"), Path("/tmp/a.decrypted"))

    def test_format_elapsed(self):
        self.assertEqual(format_elapsed(timedelta(hours=1, minutes=2, seconds=3.7)), "1:02:03")
        self.assertEqual(format_elapsed(timedelta(0)), "0:00:00")

    def test_format_size_mb(self):
        self.assertEqual(format_size_mb(1572864), "1.50")
        self.assertEqual(format_size_mb(0), "0.00")

    def test_success(self):
        result = OperationResult(
            OperationState.COMPLETED, self.operation,
            completion=CompletionEvent(2 * 1024 * 1024, timedelta(seconds=65)),
        )
        notice = describe_result(result)
        self.assertEqual(notice.level, "info")
        self.assertIn("Decryption completed successfully", notice.message)
        self.assertIn("a.decrypted", notice.message)
        self.assertIn("2.00 MB", notice.message)
        self.assertIn("0:01:05", notice.message)

    def test_cancelled(self):
        notice = describe_result(OperationResult(OperationState.CANCELLED, self.operation))
        self.assertEqual(notice.level, "warning")
        self.assertIn("cancelled", notice.message)
        self.assertNotIn("could not be removed", notice.message)

    def test_wrong_key_is_distinct_from_generic_failure(self):
        wrong_key = describe_result(OperationResult(
            OperationState.FAILED, self.operation, error=InvalidKeyOrCorruptData("bad padding")))
        generic = describe_result(OperationResult(
            OperationState.FAILED, self.operation, error=CipherIOError("disk full")))
        self.assertEqual(wrong_key.level, "error")
        self.assertIn("key is wrong or the file is corrupted", wrong_key.message)
        self.assertIn("disk full", generic.message)
        self.assertNotEqual(wrong_key.title, generic.title)

    def test_cleanup_error_is_mentioned(self):
        result = OperationResult(
            OperationState.CANCELLED, self.operation, cleanup_error=PermissionError("locked"))
        notice = describe_result(result)
        self.assertIn("could not be removed", notice.message)
        self.assertIn("a.decrypted", notice.message)


if __name__ == "__main__":
    unittest.main()
