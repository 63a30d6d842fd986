from __future__ import annotations

import binascii

import pytest
from Crypto.Cipher import DES
from hypothesis import given
from hypothesis import strategies as st

from pcbdecode import MASTER_KEY, CipherInputError, decrypt, encrypt


def test_master_key_is_the_fixed_des_key() -> None:
    assert binascii.unhexlify(MASTER_KEY) == b"\xdc\xfc\x12\xac\x00\x00\x00\x00"


def test_decrypt_matches_reference_des_ecb() -> None:
    plaintext = b"PART-U1!" + b"\x08" * 8
    ciphertext = DES.new(binascii.unhexlify(MASTER_KEY), DES.MODE_ECB).encrypt(plaintext)
    assert decrypt(ciphertext) == b"PART-U1!"


def test_misaligned_ciphertext_is_rejected() -> None:
    with pytest.raises(CipherInputError):
        decrypt(b"\x00" * 12)


def test_invalid_padding_keeps_decrypted_bytes() -> None:
    plaintext = b"\x01\x02\x03\x04\x05\x06\x07\x00"
    ciphertext = DES.new(binascii.unhexlify(MASTER_KEY), DES.MODE_ECB).encrypt(plaintext)
    assert decrypt(ciphertext) == plaintext


def test_empty_ciphertext_decrypts_to_empty() -> None:
    assert decrypt(b"") == b""


@given(st.integers(min_value=1, max_value=32).flatmap(lambda n: st.binary(min_size=8 * n, max_size=8 * n)))
def test_encrypt_then_decrypt_round_trips_aligned_plaintext(plaintext: bytes) -> None:
    ciphertext = encrypt(plaintext)
    assert len(ciphertext) == len(plaintext) + 8
    assert decrypt(ciphertext) == plaintext
