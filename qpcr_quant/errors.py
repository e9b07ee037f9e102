"""Exceptions raised by the quantification pipeline.

Schema and calibration problems are fatal and abort a run before anything is
written. Per-row data problems never raise; they degrade to NaN and are
excluded downstream.
"""


class QuantificationError(ValueError):
    """Base class for fatal pipeline errors."""


class InputFileError(QuantificationError):
    """An input table could not be read."""


class MissingColumnError(QuantificationError):
    def __init__(self, table: str, columns):
        self.table = table
        self.columns = list(columns)
        super().__init__(
            f"Missing column(s) in {table} table: {', '.join(self.columns)}"
        )


class InsufficientStandardsError(QuantificationError):
    def __init__(self, n_points: int, required: int = 2):
        self.n_points = n_points
        self.required = required
        super().__init__(
            f"Need at least {required} standards with distinct, defined mean Cq "
            f"and quantity to fit a standard curve, got {n_points}"
        )
