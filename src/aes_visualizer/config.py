"""Configuration for the AES-128 step visualizer."""

from __future__ import annotations

from dataclasses import dataclass

SNAPSHOT_DETAILS = ("compressed", "full")


@dataclass
class VisualizerConfig:
    """Configuration object for an encryption walkthrough.

    Passed to the pipeline, the exporter and the CLI. Nothing here
    changes the cipher itself, only what is recorded and how it is shown.
    """

    # "compressed": round 1 in detail, rounds 2..9 as one snapshot
    # "full": every step of every round
    snapshot_detail: str = "compressed"

    # Text-to-block policy for raw string inputs
    text_encoding: str = "utf-8"
    pad_char: str = " "

    # Display only; exported hex is always lowercase
    uppercase_hex: bool = False

    # Cipher + mode identifier written to export documents
    algorithm: str = "AES-128-ECB"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.snapshot_detail not in SNAPSHOT_DETAILS:
            raise ValueError(
                f"snapshot_detail must be one of {SNAPSHOT_DETAILS}, "
                f"got {self.snapshot_detail!r}"
            )
        if len(self.pad_char) != 1:
            raise ValueError(f"pad_char must be a single character, got {self.pad_char!r}")
        try:
            "".encode(self.text_encoding)
        except LookupError:
            raise ValueError(f"Unknown text_encoding: {self.text_encoding}") from None
        if self.algorithm != "AES-128-ECB":
            raise ValueError(f"Only AES-128-ECB is supported, got {self.algorithm}")

    @property
    def full_rounds(self) -> bool:
        """True when every round is recorded step by step."""
        return self.snapshot_detail == "full"
