"""Exception types raised by the AES visualizer."""


class AESVisualizerError(Exception):
    """Base class for all errors raised by this package."""


class InputLengthError(AESVisualizerError, ValueError):
    """A plaintext or key buffer is not exactly one AES block long.

    Raised before any transform runs, so no partial result exists.
    """

    def __init__(self, field: str, actual: int, expected: int = 16):
        self.field = field
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"{field.capitalize()} must be {expected} bytes, got {actual}"
        )


class DecryptionInputError(AESVisualizerError, ValueError):
    """An export document is malformed or lacks a required field."""


class ProviderUnavailableError(AESVisualizerError, RuntimeError):
    """The cryptography provider could not perform the requested operation."""
