"""
AES-128 round transforms.

All functions are pure: they read the input state and return a newly
allocated 4x4 list. No transform writes through to its argument, so
states recorded earlier stay valid while encryption continues.
"""

from __future__ import annotations

from .tables import SBOX, MIX_MATRIX, REDUCTION_POLY
from .utils import StateLike, xor_states


def xtime(a: int) -> int:
    """Multiply by x in GF(2^8)."""
    return ((a << 1) ^ REDUCTION_POLY) & 0xff if a & 0x80 else (a << 1) & 0xff


def gf_mult(a: int, b: int) -> int:
    """
    Multiply two bytes in GF(2^8) modulo x^8 + x^4 + x^3 + x + 1.

    Walks the bits of b from low to high, accumulating a into the
    product whenever the bit is set and doubling a with xtime in between.
    """
    product = 0
    for _ in range(8):
        if b & 1:
            product ^= a
        a = xtime(a)
        b >>= 1
    return product & 0xff


def sub_bytes(state: StateLike) -> list[list[int]]:
    """Apply the S-box to every byte."""
    return [[SBOX[state[row][col]] for col in range(4)] for row in range(4)]


def shift_rows(state: StateLike) -> list[list[int]]:
    """
    Cyclically shift row r left by r positions.

        out[r][c] = state[r][(c + r) % 4]
    """
    return [[state[row][(col + row) % 4] for col in range(4)] for row in range(4)]


def mix_single_column(col: list[int]) -> list[int]:
    """
    Mix a single column (c0, c1, c2, c3).

        out0 = 2*c0 ^ 3*c1 ^   c2 ^   c3
        out1 =   c0 ^ 2*c1 ^ 3*c2 ^   c3
        out2 =   c0 ^   c1 ^ 2*c2 ^ 3*c3
        out3 = 3*c0 ^   c1 ^   c2 ^ 2*c3
    """
    result = []
    for coeffs in MIX_MATRIX:
        acc = 0
        for coeff, value in zip(coeffs, col):
            acc ^= gf_mult(value, coeff)
        result.append(acc)
    return result


def mix_columns(state: StateLike) -> list[list[int]]:
    """Apply mix_single_column to each of the four columns."""
    result = [[0 for _ in range(4)] for _ in range(4)]
    for col in range(4):
        mixed = mix_single_column([state[row][col] for row in range(4)])
        for row in range(4):
            result[row][col] = mixed[row]
    return result


def add_round_key(state: StateLike, round_key: StateLike) -> list[list[int]]:
    """XOR state with round key. Applying it twice restores the state."""
    return xor_states(state, round_key)
