"""
AES-128 key expansion (FIPS-197 section 5.2).

The 16-byte key is read as four big-endian 32-bit words w0..w3
(one per state column). Words w4..w43 follow the recurrence

    temp = w[i-1]
    if i % 4 == 0:
        temp = SubWord(RotWord(temp)) ^ (Rcon[i/4] << 24)
    w[i] = w[i-4] ^ temp

and words 4k..4k+3 form round key k (k = 0..10).
"""

from __future__ import annotations

from typing import Iterator, Union

from .tables import SBOX, RCON
from .utils import StateLike, bytes_to_state, freeze_state, state_to_bytes

NUM_ROUNDS = 10
NUM_ROUND_KEYS = NUM_ROUNDS + 1
NUM_WORDS = 4 * NUM_ROUND_KEYS

FrozenState = tuple[tuple[int, ...], ...]


def rot_word(word: int) -> int:
    """Rotate a 32-bit word left by one byte: [a0,a1,a2,a3] -> [a1,a2,a3,a0]."""
    return ((word << 8) | (word >> 24)) & 0xffffffff


def sub_word(word: int) -> int:
    """Apply the S-box to each byte of a 32-bit word."""
    return (
        (SBOX[(word >> 24) & 0xff] << 24)
        | (SBOX[(word >> 16) & 0xff] << 16)
        | (SBOX[(word >> 8) & 0xff] << 8)
        | SBOX[word & 0xff]
    )


def _words_from_key(key: bytes) -> list[int]:
    return [int.from_bytes(key[i:i + 4], "big") for i in range(0, 16, 4)]


def _round_key_from_words(words: list[int]) -> FrozenState:
    """Place four words as the columns of a 4x4 matrix."""
    return tuple(
        tuple((words[col] >> (24 - 8 * row)) & 0xff for col in range(4))
        for row in range(4)
    )


class KeySchedule:
    """
    Immutable sequence of the 11 AES-128 round keys.

    Indexing returns a fresh 4x4 list, so callers may modify what they
    get back without touching the schedule.
    """

    def __init__(self, words: list[int]):
        if len(words) != NUM_WORDS:
            raise ValueError(f"Expected {NUM_WORDS} words, got {len(words)}")
        self._words = tuple(words)
        self._round_keys = tuple(
            _round_key_from_words(words[4 * k:4 * k + 4])
            for k in range(NUM_ROUND_KEYS)
        )

    def __len__(self) -> int:
        return NUM_ROUND_KEYS

    def __getitem__(self, round_num: int) -> list[list[int]]:
        if isinstance(round_num, slice):
            raise TypeError("KeySchedule does not support slicing, index one round at a time")
        return [list(row) for row in self._round_keys[round_num]]

    def __iter__(self) -> Iterator[list[list[int]]]:
        for round_num in range(NUM_ROUND_KEYS):
            yield self[round_num]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeySchedule):
            return NotImplemented
        return self._words == other._words

    def __hash__(self) -> int:
        return hash(self._words)

    def __repr__(self) -> str:
        return f"KeySchedule(key={self.to_hex()[0]})"

    @property
    def words(self) -> tuple[int, ...]:
        """All 44 expanded words w0..w43."""
        return self._words

    def frozen(self, round_num: int) -> FrozenState:
        """Round key as nested tuples (no copy needed)."""
        return self._round_keys[round_num]

    def to_hex(self) -> list[str]:
        """Each round key as 32 hex chars (column-major)."""
        return [state_to_bytes(rk).hex() for rk in self._round_keys]


def key_expansion(key: Union[bytes, StateLike]) -> KeySchedule:
    """
    Expand a 16-byte AES-128 key into 11 round keys.

    Args:
        key: 16-byte key, or the key already laid out as a 4x4 state

    Returns:
        KeySchedule whose entry 0 equals the key matrix

    Raises:
        InputLengthError: If a key buffer is not 16 bytes
    """
    if isinstance(key, (bytes, bytearray)):
        # Validates the length
        bytes_to_state(bytes(key), field="key")
        key_bytes = bytes(key)
    else:
        key_bytes = state_to_bytes(freeze_state(key))

    w = _words_from_key(key_bytes)
    for i in range(4, NUM_WORDS):
        temp = w[i - 1]
        if i % 4 == 0:
            temp = sub_word(rot_word(temp)) ^ (RCON[i // 4] << 24)
        w.append(w[i - 4] ^ temp)

    return KeySchedule(w)
