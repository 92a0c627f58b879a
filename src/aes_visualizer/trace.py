"""
Trace recording and pretty printing for AES walkthroughs.

Contains:
- TraceRecorder: in-memory records, JSON Lines trace file, verbose stdout
- print_header / print_result / print_snapshot: shared formatting helpers
"""

import json
from typing import Any, TextIO

import click

from .utils import format_state_grid, format_state_line


# ------------------------------------------------------------------
# Formatting helpers
# ------------------------------------------------------------------

def _compute_delta(
    old_state,
    new_state,
    max_show: int = 8,
) -> str:
    """Compute byte-wise delta between two states."""
    if old_state is None:
        return "(initial)"

    changes: list[str] = []
    for col in range(4):
        for row in range(4):
            idx = col * 4 + row
            ov = old_state[row][col]
            nv = new_state[row][col]
            if ov != nv:
                changes.append(f"b[{idx:d}]={ov:02x}→{nv:02x}")

    if not changes:
        return "(no change)"
    if len(changes) <= max_show:
        return " ".join(changes)
    return " ".join(changes[:max_show]) + f" +{len(changes) - max_show} more"


# ------------------------------------------------------------------
# TraceRecorder
# ------------------------------------------------------------------

class TraceRecorder:
    """
    Records and outputs traces of a pipeline run.

    Supports:
    - In-memory records (always)
    - JSON Lines file output (when trace_file is set)
    - Compact verbose stdout, one line per snapshot
    """

    def __init__(self, verbose: bool = False, trace_file: TextIO | None = None):
        self.verbose = verbose
        self.trace_file = trace_file
        self._records: list[dict[str, Any]] = []
        self._prev_state = None

    def record(self, **kwargs) -> None:
        """
        Record a trace entry.

        The pipeline passes index, round, operation and state, plus
        round_key on AddRoundKey steps.
        """
        self._records.append(kwargs)

        if self.trace_file:
            self._write_jsonl(kwargs)

        if self.verbose:
            self._print_verbose(kwargs)

    def _write_jsonl(self, record: dict[str, Any]) -> None:
        serializable = self._make_serializable(record)
        self.trace_file.write(json.dumps(serializable) + "\n")
        self.trace_file.flush()

    def _make_serializable(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._make_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._make_serializable(item) for item in obj]
        elif isinstance(obj, bytes):
            return obj.hex()
        else:
            return obj

    def _print_verbose(self, record: dict[str, Any]) -> None:
        index = record.get("index", "?")
        round_num = record.get("round", "?")
        operation = record.get("operation", "unknown")

        if "state" in record:
            state = record["state"]
            state_hex = format_state_line(state)
            delta = _compute_delta(self._prev_state, state)
            click.echo(
                f"S{index:02d} R{round_num:<2}  {operation:16s} STATE:{state_hex}  "
                f"Δ:{delta}"
            )
            self._prev_state = state

    def get_records(self) -> list[dict[str, Any]]:
        return list(self._records)


# ------------------------------------------------------------------
# Shared formatting functions
# ------------------------------------------------------------------

def print_header(title: str) -> None:
    """Print a section header."""
    click.echo(f"\n{'#'*70}")
    click.echo(f"# {title}")
    click.echo(f"{'#'*70}")


def print_subheader(title: str) -> None:
    """Print a subsection header."""
    click.echo(f"\n{'-'*50}")
    click.echo(f"  {title}")
    click.echo(f"{'-'*50}")


def print_snapshot(snapshot, round_key=None, uppercase: bool = False) -> None:
    """Print one snapshot as a labelled grid, next to its round key if any."""
    print_subheader(f"[{snapshot.index:02d}] {snapshot.label}")
    state_lines = format_state_grid(snapshot.state, uppercase=uppercase).splitlines()
    if round_key is None:
        click.echo("\n".join(state_lines))
        return
    key_lines = format_state_grid(round_key, uppercase=uppercase).splitlines()
    click.echo(f"  {'state':11s}    round key {snapshot.round}")
    for s_line, k_line in zip(state_lines, key_lines):
        click.echo(f"{s_line}    {k_line}")


def print_result(ciphertext_hex: str, ciphertext_b64: str,
                 snapshot_count: int, passed: bool = True) -> None:
    """Print final encryption result."""
    click.echo(f"\n{'='*70}")
    click.echo("RESULT")
    click.echo(f"{'='*70}")
    click.echo(f"Ciphertext (hex):    {ciphertext_hex}")
    click.echo(f"Ciphertext (base64): {ciphertext_b64}")
    click.echo(f"Snapshots: {snapshot_count}")

    status = "PASS" if passed else "FAIL"
    marker = "[OK]" if passed else "[ERROR]"
    click.echo(f"Verification: {marker} {status}")
    click.echo(f"{'='*70}")
