"""Export document generation and the text-to-block input policy.

The export document is the only hand-off between the encryption
walkthrough and any decryption tool. Layout:

    {
      "algorithm": "AES-128-ECB",
      "plaintext": "<raw text>",
      "key": "<raw text>",
      "plaintext_hex": "<32 hex>",
      "key_hex": "<32 hex>",
      "ciphertext_hex": "<32 hex>",
      "iv_hex": "00000000000000000000000000000000"
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .config import VisualizerConfig
from .errors import InputLengthError
from .pipeline import EncryptionResult
from .utils import BLOCK_SIZE, bytes_to_hex

# No chaining mode is implemented, so the IV is a fixed all-zero block
ZERO_IV_HEX = "00" * BLOCK_SIZE

EXPORT_FIELDS = (
    "algorithm",
    "plaintext",
    "key",
    "plaintext_hex",
    "key_hex",
    "ciphertext_hex",
    "iv_hex",
)


def fit_text_block(
    text: str,
    size: int = BLOCK_SIZE,
    pad: str = " ",
    encoding: str = "utf-8",
) -> bytes:
    """Pad or truncate text to `size` characters and encode it.

    Args:
        text: Raw user text
        size: Target length in characters (and bytes)
        pad: Fill character appended to short text
        encoding: Text encoding

    Returns:
        Encoded block of exactly `size` bytes

    Raises:
        InputLengthError: If multi-byte characters make the encoded
            block longer than `size` bytes
    """
    fitted = text.ljust(size, pad)[:size]
    block = fitted.encode(encoding)
    if len(block) != size:
        raise InputLengthError("text", len(block), size)
    return block


def _as_text(data: bytes) -> str:
    # latin-1 maps every byte to one character, so any block survives
    return data.decode("latin-1")


def build_export_document(
    result: EncryptionResult,
    plaintext_text: str | None = None,
    key_text: str | None = None,
    config: VisualizerConfig | None = None,
) -> dict[str, Any]:
    """Build the export document for one encryption run.

    Args:
        result: Pipeline output
        plaintext_text: Raw plaintext as the user typed it (defaults to
            the plaintext bytes read as latin-1)
        key_text: Raw key as the user typed it (same default)
        config: Supplies the algorithm identifier

    Returns:
        Dict with exactly the EXPORT_FIELDS keys
    """
    config = config or VisualizerConfig()
    return {
        "algorithm": config.algorithm,
        "plaintext": plaintext_text if plaintext_text is not None else _as_text(result.plaintext),
        "key": key_text if key_text is not None else _as_text(result.key),
        "plaintext_hex": bytes_to_hex(result.plaintext),
        "key_hex": bytes_to_hex(result.key),
        "ciphertext_hex": result.ciphertext_hex,
        "iv_hex": ZERO_IV_HEX,
    }


def dumps_export_document(document: dict[str, Any], indent: int = 2) -> str:
    """Serialize an export document to JSON text."""
    return json.dumps(document, indent=indent, ensure_ascii=False)


def export_to_json(
    result: EncryptionResult,
    output_path: str | Path,
    plaintext_text: str | None = None,
    key_text: str | None = None,
    config: VisualizerConfig | None = None,
    indent: int = 2,
) -> Path:
    """Write the export document to a JSON file.

    Args:
        result: Pipeline output
        output_path: Path to output JSON file
        plaintext_text: Raw plaintext string, if known
        key_text: Raw key string, if known
        config: Supplies the algorithm identifier
        indent: JSON indentation level

    Returns:
        Path to written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    document = build_export_document(result, plaintext_text, key_text, config)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(dumps_export_document(document, indent=indent))
        f.write("\n")

    return output_path
