from __future__ import annotations


class MotionClassifierError(Exception):
    """Base class for every error raised by the classification pipeline."""


class ConfigurationError(MotionClassifierError):
    pass


class MalformedRowError(MotionClassifierError):
    """A single CSV line failed shape or numeric validation. Recovered by the ingestor."""

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


class EmptyInputError(MotionClassifierError):
    pass


class WindowSizeMismatchError(MotionClassifierError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Window must contain exactly {expected} rows (found: {actual})")
        self.expected = expected
        self.actual = actual


class ModelNotReadyError(MotionClassifierError):
    pass


class InferenceError(MotionClassifierError):
    pass
