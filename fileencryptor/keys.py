"""Passphrase to AES key/IV derivation.

The scheme is kept bit-for-bit compatible with files written by earlier
releases of the tool:

    key = MD5(utf8(passphrase))
    iv  = MD5(utf8(passphrase + "IV"))

It is weak. There is no salt and no work factor, and every file encrypted
under the same passphrase shares one IV, so identical plaintext prefixes
produce identical ciphertext prefixes. Changing it would make old files
unreadable; a stronger scheme needs a new, versioned file format.
"""

from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes

KEY_SIZE = 16  # AES-128, the MD5 digest width
IV_SUFFIX = "IV"


@dataclass(frozen=True)
class CipherKeyMaterial:
    key: bytes
    iv: bytes

    def __post_init__(self):
        if len(self.key) != KEY_SIZE or len(self.iv) != KEY_SIZE:
            raise ValueError(f"key and iv must both be {KEY_SIZE} bytes")

    def __repr__(self) -> str:
        return "CipherKeyMaterial(key=<hidden>, iv=<hidden>)"


def _md5(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.MD5())
    digest.update(data)
    return digest.finalize()


def derive_key_material(passphrase: str) -> CipherKeyMaterial:
    if not isinstance(passphrase, str):
        raise TypeError("passphrase must be str")
    return CipherKeyMaterial(
        key=_md5(passphrase.encode("utf-8")),
        iv=_md5((passphrase + IV_SUFFIX).encode("utf-8")),
    )
