class EncryptorError(Exception):
    pass


class CipherError(EncryptorError):
    pass


class InvalidKeyOrCorruptData(CipherError):
    """The cipher rejected the input: wrong passphrase, truncated or damaged file."""


class CipherIOError(CipherError):
    """Opening, reading or writing the source or destination failed."""


class OperationCancelled(EncryptorError):
    """Raised inside the transform loop when a cancellation request is observed."""
