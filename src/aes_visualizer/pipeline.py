"""
AES-128 encryption pipeline with step snapshots.

Round schedule:
- Round 0: AddRoundKey
- Rounds 1-9: SubBytes, ShiftRows, MixColumns, AddRoundKey
- Round 10: SubBytes, ShiftRows, AddRoundKey (no MixColumns)

Snapshot layout in "compressed" mode (11 entries):
  0      Input
  1      Round 0 AddRoundKey
  2-5    Round 1, one per step
  6      State after round 9 (rounds 2-9 are computed but not recorded)
  7-9    Round 10, one per step
  10     Ciphertext

"full" mode records every step of rounds 1-9 instead of the single
repeated-rounds entry (42 entries).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .aes_core import sub_bytes, shift_rows, mix_columns, add_round_key
from .config import VisualizerConfig
from .key_schedule import KeySchedule, NUM_ROUNDS, key_expansion
from .trace import TraceRecorder
from .utils import (
    bytes_to_base64,
    bytes_to_state,
    freeze_state,
    state_to_bytes,
    state_to_hex,
)

ROUND_OPERATIONS = ["SubBytes", "ShiftRows", "MixColumns", "AddRoundKey"]
FINAL_ROUND_OPERATIONS = ["SubBytes", "ShiftRows", "AddRoundKey"]

COMPRESSED_SNAPSHOT_COUNT = 1 + 1 + len(ROUND_OPERATIONS) + 1 + len(FINAL_ROUND_OPERATIONS) + 1
FULL_SNAPSHOT_COUNT = (
    1 + 1 + (NUM_ROUNDS - 1) * len(ROUND_OPERATIONS) + len(FINAL_ROUND_OPERATIONS) + 1
)

_TRANSFORMS = {
    "SubBytes": sub_bytes,
    "ShiftRows": shift_rows,
    "MixColumns": mix_columns,
}


def _label(round_num: int, operation: str) -> str:
    if operation == "Input":
        return "Input state"
    if operation == "Ciphertext":
        return "Ciphertext"
    if operation == "RepeatedRounds":
        return f"After rounds 2-{round_num} (repeated)"
    return f"Round {round_num}: {operation}"


@dataclass(frozen=True)
class Snapshot:
    """An immutable copy of the state taken right after one step."""

    index: int
    round: int
    operation: str
    state: tuple[tuple[int, ...], ...]

    @property
    def label(self) -> str:
        return _label(self.round, self.operation)

    def matrix(self) -> list[list[int]]:
        """Fresh, mutable 4x4 copy of the state."""
        return [list(row) for row in self.state]

    def to_bytes(self) -> bytes:
        return state_to_bytes(self.state)

    def to_hex(self) -> str:
        return state_to_hex(self.state)


@dataclass(frozen=True)
class EncryptionResult:
    """Output of one pipeline run: the ordered snapshots and the key schedule.

    Unpacks as ``snapshots, round_keys = result``.
    """

    snapshots: tuple[Snapshot, ...]
    round_keys: KeySchedule
    plaintext: bytes
    key: bytes

    def __iter__(self) -> Iterator:
        return iter((self.snapshots, self.round_keys))

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def states(self) -> list[list[list[int]]]:
        """Every snapshot as a fresh 4x4 list."""
        return [snap.matrix() for snap in self.snapshots]

    @property
    def ciphertext(self) -> bytes:
        return self.snapshots[-1].to_bytes()

    @property
    def ciphertext_hex(self) -> str:
        return self.ciphertext.hex()

    @property
    def ciphertext_base64(self) -> str:
        return bytes_to_base64(self.ciphertext)

    def round_key_for(self, index: int) -> list[list[int]] | None:
        """
        Round key applied by the snapshot at index, or None if that
        snapshot is not an AddRoundKey step.
        """
        snap = self.snapshots[index]
        if snap.operation != "AddRoundKey":
            return None
        return self.round_keys[snap.round]


class _SnapshotLog:
    """Collects snapshots for one run and mirrors them to a tracer."""

    def __init__(self, round_keys: KeySchedule, tracer: TraceRecorder | None):
        self.round_keys = round_keys
        self.tracer = tracer
        self.snapshots: list[Snapshot] = []

    def capture(self, state, round_num: int, operation: str) -> None:
        snap = Snapshot(
            index=len(self.snapshots),
            round=round_num,
            operation=operation,
            state=freeze_state(state),
        )
        self.snapshots.append(snap)

        if self.tracer:
            extra = {}
            if operation == "AddRoundKey":
                extra["round_key"] = self.round_keys.frozen(round_num)
            self.tracer.record(
                index=snap.index,
                round=round_num,
                operation=operation,
                state=snap.state,
                **extra,
            )


class EncryptionPipeline:
    """
    AES-128 single-block encryption that records every step.

    Holds configuration only. All states are allocated inside encrypt(),
    so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        config: VisualizerConfig | None = None,
        tracer: TraceRecorder | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Walkthrough configuration (default: compressed snapshots)
            tracer: Optional trace recorder, one record per snapshot
        """
        self.config = config or VisualizerConfig()
        self.tracer = tracer

    def encrypt(self, plaintext: bytes, key: bytes) -> EncryptionResult:
        """
        Encrypt a single 16-byte block.

        Args:
            plaintext: 16-byte plaintext
            key: 16-byte AES key

        Returns:
            EncryptionResult with snapshots and the 11 round keys

        Raises:
            InputLengthError: If plaintext or key is not 16 bytes
        """
        # Validate both inputs before any work
        state = bytes_to_state(plaintext, field="plaintext")
        key_state = bytes_to_state(key, field="key")

        round_keys = key_expansion(key_state)
        log = _SnapshotLog(round_keys, self.tracer)
        full = self.config.full_rounds

        log.capture(state, 0, "Input")

        state = add_round_key(state, round_keys.frozen(0))
        log.capture(state, 0, "AddRoundKey")

        for round_num in range(1, NUM_ROUNDS):
            detailed = full or round_num == 1
            state = self._apply_round(
                state, round_num, ROUND_OPERATIONS, round_keys,
                log if detailed else None,
            )
            if not full and round_num == NUM_ROUNDS - 1:
                log.capture(state, round_num, "RepeatedRounds")

        state = self._apply_round(
            state, NUM_ROUNDS, FINAL_ROUND_OPERATIONS, round_keys, log,
        )
        log.capture(state, NUM_ROUNDS, "Ciphertext")

        return EncryptionResult(
            snapshots=tuple(log.snapshots),
            round_keys=round_keys,
            plaintext=bytes(plaintext),
            key=bytes(key),
        )

    def _apply_round(
        self,
        state: list[list[int]],
        round_num: int,
        operations: list[str],
        round_keys: KeySchedule,
        log: _SnapshotLog | None,
    ) -> list[list[int]]:
        """Run one round's operations in order, capturing each if log is given."""
        for op in operations:
            if op == "AddRoundKey":
                state = add_round_key(state, round_keys.frozen(round_num))
            else:
                state = _TRANSFORMS[op](state)
            if log is not None:
                log.capture(state, round_num, op)
        return state


def run(
    plaintext: bytes,
    key: bytes,
    detail: str = "compressed",
    tracer: TraceRecorder | None = None,
) -> EncryptionResult:
    """
    Convenience function: encrypt one block and return its snapshots.

    Args:
        plaintext: 16-byte plaintext
        key: 16-byte AES key
        detail: "compressed" (11 snapshots) or "full" (42 snapshots)
        tracer: Optional trace recorder

    Returns:
        EncryptionResult (unpacks as snapshots, round_keys)
    """
    pipeline = EncryptionPipeline(VisualizerConfig(snapshot_detail=detail), tracer)
    return pipeline.encrypt(plaintext, key)
