"""
AES-128 Step Visualizer

From-scratch AES-128 single-block encryption that records every
intermediate state and the full round-key schedule for inspection.
"""

__version__ = "1.0.0"

# Default AES-128 test values from FIPS-197 Appendix C.1
DEFAULT_KEY_HEX = "000102030405060708090a0b0c0d0e0f"
DEFAULT_PT_HEX = "00112233445566778899aabbccddeeff"
DEFAULT_CT_HEX = "69c4e0d86a7b0430d8cdb78070b4c55a"

from .config import VisualizerConfig
from .errors import (
    AESVisualizerError,
    DecryptionInputError,
    InputLengthError,
    ProviderUnavailableError,
)
from .key_schedule import KeySchedule, key_expansion
from .pipeline import EncryptionPipeline, EncryptionResult, Snapshot, run

__all__ = [
    "VisualizerConfig",
    "AESVisualizerError",
    "DecryptionInputError",
    "InputLengthError",
    "ProviderUnavailableError",
    "KeySchedule",
    "key_expansion",
    "EncryptionPipeline",
    "EncryptionResult",
    "Snapshot",
    "run",
]
