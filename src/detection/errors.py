"""
Error taxonomy for the fraud-scoring engine.

All failures are data-validation failures over a static snapshot.
They abort the affected detector only; the runner keeps the results of
the detectors that succeeded.
"""

from typing import Any, Dict, Iterable, Optional


class FraudEngineError(Exception):
    """Base class for every error raised by the scoring engine."""


class SchemaMismatch(FraudEngineError):
    """Input table is missing columns that a stage requires."""

    def __init__(self, missing_columns: Iterable[str], context: str = "snapshot"):
        self.missing_columns = sorted(missing_columns)
        self.context = context
        super().__init__(
            f"[{context}] missing required columns: {self.missing_columns}"
        )


class InvalidGroupKey(FraudEngineError):
    """A grouping field is null for a record that must be grouped."""

    def __init__(
        self,
        detector: str,
        field: str,
        row_index: Any,
        record: Optional[Dict[str, Any]] = None
    ):
        self.detector = detector
        self.field = field
        self.row_index = row_index
        self.record = record or {}
        super().__init__(
            f"[{detector}] null grouping field '{field}' at row {row_index}: {self.record}"
        )


class NonNumericMeasure(FraudEngineError):
    """A measure column holds a value that cannot be read as a number."""

    def __init__(self, detector: str, field: str, row_index: Any, value: Any = None):
        self.detector = detector
        self.field = field
        self.row_index = row_index
        self.value = value
        super().__init__(
            f"[{detector}] non-numeric value {value!r} in measure '{field}' at row {row_index}"
        )


class DegenerateBaseline(UserWarning):
    """
    Baseline computed from fewer than 2 groups.

    Not an error: the k-sigma rule simply never fires on that measure.
    """
