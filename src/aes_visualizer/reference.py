"""
Reference AES using PyCryptodome.

Used for two things the from-scratch pipeline never does itself:
verifying its ciphertext, and decrypting exported documents.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from Crypto.Cipher import AES

from .errors import DecryptionInputError, InputLengthError, ProviderUnavailableError
from .utils import BLOCK_SIZE

log = structlog.get_logger()

REQUIRED_EXPORT_FIELDS = ("ciphertext_hex", "key_hex")
SUPPORTED_ALGORITHMS = ("AES-128-ECB", "AES-128-CBC")


def aes128_encrypt(key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt a single 16-byte block using AES-128 ECB.

    Args:
        key: 16-byte AES key
        plaintext: 16-byte plaintext block

    Returns:
        16-byte ciphertext

    Raises:
        InputLengthError: If key or plaintext is not 16 bytes
    """
    if len(key) != BLOCK_SIZE:
        raise InputLengthError("key", len(key))
    if len(plaintext) != BLOCK_SIZE:
        raise InputLengthError("plaintext", len(plaintext))

    cipher = AES.new(key, AES.MODE_ECB)
    return cipher.encrypt(plaintext)


def verify_ciphertext(computed: bytes, key: bytes, plaintext: bytes) -> bool:
    """
    Verify computed ciphertext against PyCryptodome reference.
    """
    return computed == aes128_encrypt(key, plaintext)


# FIPS-197 Appendix B/C.1 plus NIST known-answer vectors for AES-128
FIPS_197_TEST_VECTORS = [
    {
        "name": "FIPS-197 Appendix C.1",
        "key": bytes.fromhex("000102030405060708090a0b0c0d0e0f"),
        "plaintext": bytes.fromhex("00112233445566778899aabbccddeeff"),
        "ciphertext": bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a"),
    },
    {
        "name": "FIPS-197 Appendix B",
        "key": bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c"),
        "plaintext": bytes.fromhex("3243f6a8885a308d313198a2e0370734"),
        "ciphertext": bytes.fromhex("3925841d02dc09fbdc118597196a0b32"),
    },
    {
        "name": "All zeros",
        "key": bytes.fromhex("00000000000000000000000000000000"),
        "plaintext": bytes.fromhex("00000000000000000000000000000000"),
        "ciphertext": bytes.fromhex("66e94bd4ef8a2c3b884cfa59ca342b2e"),
    },
    {
        "name": "GFSbox #1",
        "key": bytes.fromhex("00000000000000000000000000000000"),
        "plaintext": bytes.fromhex("f34481ec3cc627bacd5dc3fb08f273e6"),
        "ciphertext": bytes.fromhex("0336763e966d92595a567cc9ce537f5e"),
    },
    {
        "name": "GFSbox #2",
        "key": bytes.fromhex("00000000000000000000000000000000"),
        "plaintext": bytes.fromhex("9798c4640bad75c7c3227db910174e72"),
        "ciphertext": bytes.fromhex("a9a1631bf4996954ebc093957b234589"),
    },
    {
        "name": "All-ones key, zero plaintext",
        "key": bytes.fromhex("ffffffffffffffffffffffffffffffff"),
        "plaintext": bytes.fromhex("00000000000000000000000000000000"),
        "ciphertext": bytes.fromhex("a1f6258c877d5fcd8964484538bfc92c"),
    },
    {
        "name": "All ones",
        "key": bytes.fromhex("ffffffffffffffffffffffffffffffff"),
        "plaintext": bytes.fromhex("ffffffffffffffffffffffffffffffff"),
        "ciphertext": bytes.fromhex("bcbf217cb280cf30b2517052193ab979"),
    },
]


# ------------------------------------------------------------------
# Export-document decryption
# ------------------------------------------------------------------

def load_export_document(path: str | Path) -> dict[str, Any]:
    """Read an export document from a JSON file."""
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecryptionInputError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise DecryptionInputError(f"Cannot read {path}: {e}") from e
    if not isinstance(document, dict):
        raise DecryptionInputError(f"Export document must be a JSON object, got {type(document).__name__}")
    return document


def _field_bytes(document: dict[str, Any], name: str, default: str | None = None) -> bytes:
    value = document.get(name, default)
    if not value:
        raise DecryptionInputError(f"Missing required field: {name}")
    if not isinstance(value, str):
        raise DecryptionInputError(f"Field {name} must be a hex string")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise DecryptionInputError(f"Field {name} is not valid hex: {e}") from e


def decrypt_export(document: dict[str, Any]) -> bytes:
    """
    Decrypt the ciphertext of an export document.

    Args:
        document: Parsed export document

    Returns:
        Decrypted plaintext bytes (no padding is removed)

    Raises:
        DecryptionInputError: Missing fields, bad hex, wrong sizes or an
            unsupported algorithm
        ProviderUnavailableError: PyCryptodome rejected the operation
    """
    algorithm = document.get("algorithm", "AES-128-ECB")
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise DecryptionInputError(f"Unsupported algorithm: {algorithm}")

    for name in REQUIRED_EXPORT_FIELDS:
        if name not in document:
            raise DecryptionInputError(f"Missing required field: {name}")

    key = _field_bytes(document, "key_hex")
    ciphertext = _field_bytes(document, "ciphertext_hex")

    if len(key) != BLOCK_SIZE:
        raise DecryptionInputError(f"key_hex must encode {BLOCK_SIZE} bytes, got {len(key)}")
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise DecryptionInputError(
            f"ciphertext_hex must encode a multiple of {BLOCK_SIZE} bytes, got {len(ciphertext)}"
        )

    try:
        if algorithm == "AES-128-CBC":
            iv = _field_bytes(document, "iv_hex", default="00" * BLOCK_SIZE)
            if len(iv) != BLOCK_SIZE:
                raise DecryptionInputError(f"iv_hex must encode {BLOCK_SIZE} bytes, got {len(iv)}")
            cipher = AES.new(key, AES.MODE_CBC, iv=iv)
        else:
            cipher = AES.new(key, AES.MODE_ECB)
        plaintext = cipher.decrypt(ciphertext)
    except DecryptionInputError:
        raise
    except (ValueError, TypeError) as e:
        log.error("decryption failed", algorithm=algorithm, error=str(e))
        raise ProviderUnavailableError(f"Cryptography provider failed: {e}") from e

    log.debug("decrypted export", algorithm=algorithm, blocks=len(ciphertext) // BLOCK_SIZE)
    return plaintext
