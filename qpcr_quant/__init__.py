"""qPCR Standard-Curve Quantification Package.

Calibrates Cq measurements against replicate standards and predicts unknowns. Provides:
- TableLoader: CSV/TSV/Excel table loading with header detection
- QPCRCleaner: Sentinel handling, sample normalization, numeric coercion
- StandardCurveEngine: Standard curve, OLS calibration, range flags, prediction
- CalibrationModel: Fitted log2(quantity) vs Cq line
- QualityControl: Replicate stats, Grubbs test, curve diagnostics
- GraphGenerator: Plotly standard-curve and prediction figures
- export_to_excel / write_results: CSV and multi-sheet Excel export
- run_calibration / run_pipeline: End-to-end entry points
"""

from qpcr_quant.constants import (
    AnalysisConstants,
    STANDARD,
    BLANK,
    UNKNOWN,
    FLAG_NONE,
    FLAG_UNDER,
    FLAG_OVER,
)
from qpcr_quant.errors import (
    QuantificationError,
    InputFileError,
    MissingColumnError,
    InsufficientStandardsError,
)
from qpcr_quant.utils import natural_sort_key, classify_sample, sort_by_sample
from qpcr_quant.parser import TableLoader
from qpcr_quant.cleaning import QPCRCleaner
from qpcr_quant.analysis import CalibrationModel, StandardCurveEngine
from qpcr_quant.quality_control import QualityControl
from qpcr_quant.graph import GraphGenerator
from qpcr_quant.export import export_to_excel, predictions_to_csv, write_results
from qpcr_quant.pipeline import (
    PipelineConfig,
    PipelineResult,
    run_calibration,
    run_pipeline,
    main,
)

__version__ = "1.0.0"

__all__ = [
    "AnalysisConstants",
    "STANDARD",
    "BLANK",
    "UNKNOWN",
    "FLAG_NONE",
    "FLAG_UNDER",
    "FLAG_OVER",
    "QuantificationError",
    "InputFileError",
    "MissingColumnError",
    "InsufficientStandardsError",
    "natural_sort_key",
    "classify_sample",
    "sort_by_sample",
    "TableLoader",
    "QPCRCleaner",
    "CalibrationModel",
    "StandardCurveEngine",
    "QualityControl",
    "GraphGenerator",
    "export_to_excel",
    "predictions_to_csv",
    "write_results",
    "PipelineConfig",
    "PipelineResult",
    "run_calibration",
    "run_pipeline",
    "main",
]
