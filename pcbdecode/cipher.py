from __future__ import annotations

import binascii
import logging

from Crypto.Cipher import DES
from Crypto.Util.Padding import pad, unpad

from .errors import CipherInputError

# Fixed key shared by every DATA block.
MASTER_KEY = "DCFC12AC00000000"
BLOCK_SIZE = DES.block_size

logger = logging.getLogger("pcbdecode.cipher")


def master_key_bytes() -> bytes:
    return binascii.unhexlify(MASTER_KEY)


def _new_cipher():
    return DES.new(master_key_bytes(), DES.MODE_ECB)


def decrypt(ciphertext: bytes) -> bytes:
    """
    Decrypt a DATA block payload (DES-ECB, PKCS#7).

    Misaligned input raises ``CipherInputError``. Padding that does not
    validate is left in place, since some payloads are stored unpadded.
    """

    if not ciphertext:
        return b""
    if len(ciphertext) % BLOCK_SIZE != 0:
        raise CipherInputError(
            f"ciphertext length {len(ciphertext)} is not a multiple of the DES block size ({BLOCK_SIZE})"
        )
    try:
        plaintext = _new_cipher().decrypt(bytes(ciphertext))
    except ValueError as exc:
        raise CipherInputError(str(exc)) from exc
    try:
        return unpad(plaintext, BLOCK_SIZE)
    except ValueError:
        logger.debug("PKCS#7 padding did not validate; keeping %d decrypted bytes", len(plaintext))
        return plaintext


def encrypt(plaintext: bytes) -> bytes:
    """Inverse of ``decrypt``: PKCS#7 pad then DES-ECB encrypt with the master key."""

    return _new_cipher().encrypt(pad(bytes(plaintext), BLOCK_SIZE))
