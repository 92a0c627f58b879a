"""
Utility functions for byte/state conversions and hex/base64 formatting.

AES state is 4x4 bytes in column-major order:
  state[row][col] where row, col in [0..3]

Column-major mapping from 16-byte array:
  byte[0]  -> state[0][0]
  byte[1]  -> state[1][0]
  byte[2]  -> state[2][0]
  byte[3]  -> state[3][0]
  byte[4]  -> state[0][1]
  ...
  byte[15] -> state[3][3]
"""

from __future__ import annotations

import base64
import binascii
from typing import Sequence

from .errors import InputLengthError

BLOCK_SIZE = 16

# Anything indexable as [row][col]; lists for live states, tuples for snapshots
StateLike = Sequence[Sequence[int]]


def bytes_to_state(data: bytes, field: str = "buffer") -> list[list[int]]:
    """
    Convert 16 bytes to 4x4 AES state (column-major).

    Args:
        data: 16 bytes of input
        field: Name used in the error message (e.g. "plaintext", "key")

    Returns:
        4x4 list of integers (0-255)

    Raises:
        InputLengthError: If data is not exactly 16 bytes
    """
    if len(data) != BLOCK_SIZE:
        raise InputLengthError(field, len(data), BLOCK_SIZE)

    state = [[0 for _ in range(4)] for _ in range(4)]
    for col in range(4):
        for row in range(4):
            state[row][col] = data[col * 4 + row]
    return state


def state_to_bytes(state: StateLike) -> bytes:
    """
    Convert 4x4 AES state to 16 bytes (column-major).

    Args:
        state: 4x4 matrix of integers

    Returns:
        16 bytes
    """
    result = []
    for col in range(4):
        for row in range(4):
            result.append(state[row][col])
    return bytes(result)


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hex string to bytes. Whitespace is ignored.
    """
    return bytes.fromhex(hex_str)


def bytes_to_hex(data: bytes, uppercase: bool = False) -> str:
    """
    Convert bytes to hex string (2 chars per byte, no separators).
    """
    text = data.hex()
    return text.upper() if uppercase else text


def bytes_to_base64(data: bytes) -> str:
    """Standard base64 with padding, no line breaks."""
    return base64.b64encode(data).decode("ascii")


def base64_to_bytes(text: str) -> bytes:
    """Strict base64 decode; raises ValueError on malformed input."""
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64: {e}") from e


def state_to_hex(state: StateLike, uppercase: bool = False) -> str:
    """
    Convert state to hex string (via bytes).
    """
    return bytes_to_hex(state_to_bytes(state), uppercase=uppercase)


def hex_to_state(hex_str: str) -> list[list[int]]:
    """
    Convert hex string to state.
    """
    return bytes_to_state(hex_to_bytes(hex_str))


def format_state_grid(state: StateLike, uppercase: bool = False,
                      indent: str = "  ") -> str:
    """
    Format state as a readable 4x4 grid.

    Returns multi-line string like:
      00 44 88 cc
      11 55 99 dd
      22 66 aa ee
      33 77 bb ff
    """
    fmt = "{:02X}" if uppercase else "{:02x}"
    lines = []
    for row in range(4):
        row_hex = [fmt.format(state[row][col]) for col in range(4)]
        lines.append(indent + " ".join(row_hex))
    return "\n".join(lines)


def format_state_line(state: StateLike) -> str:
    """
    Format state as single-line hex string.
    """
    return state_to_hex(state)


def xor_states(a: StateLike, b: StateLike) -> list[list[int]]:
    """
    XOR two 4x4 states element-wise.
    """
    result = [[0 for _ in range(4)] for _ in range(4)]
    for row in range(4):
        for col in range(4):
            result[row][col] = a[row][col] ^ b[row][col]
    return result


def copy_state(state: StateLike) -> list[list[int]]:
    """
    Deep copy a 4x4 state.
    """
    return [[state[row][col] for col in range(4)] for row in range(4)]


def freeze_state(state: StateLike) -> tuple[tuple[int, ...], ...]:
    """
    Immutable deep copy of a 4x4 state.
    """
    return tuple(tuple(state[row][col] for col in range(4)) for row in range(4))
