"""Export functions for quantification results.

Writes the prediction table as CSV, or a multi-sheet Excel workbook with the
standard curve, calibration, unknown aggregates, concentrations and QC report.
"""

import io
import logging
from pathlib import Path

import pandas as pd

from qpcr_quant.constants import AnalysisConstants

logger = logging.getLogger(__name__)


def predictions_to_csv(predictions: pd.DataFrame) -> str:
    """Serialize the prediction table as CSV text, no index column."""
    return predictions[AnalysisConstants.OUTPUT_COLUMNS].to_csv(index=False)


def export_to_excel(
    predictions: pd.DataFrame,
    standards: pd.DataFrame = None,
    diagnostics: dict = None,
    unknowns: pd.DataFrame = None,
    concentrations: pd.DataFrame = None,
    replicate_stats: pd.DataFrame = None,
) -> bytes:
    """Export a workbook with the predictions and every intermediate table.

    Args:
        predictions: Output table from StandardCurveEngine.predict().
        standards: Standard-curve points from StandardCurveEngine.build_standard_curve().
        diagnostics: Dict from QualityControl.curve_diagnostics().
        unknowns: Flagged unknown aggregates, including samples left out of predictions.
        concentrations: Cleaned concentration table.
        replicate_stats: DataFrame from QualityControl.get_replicate_stats().
    """
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        predictions[AnalysisConstants.OUTPUT_COLUMNS].to_excel(
            writer, sheet_name="Predictions", index=False
        )

        if standards is not None:
            standards.to_excel(writer, sheet_name="Standard_Curve", index=False)

        if diagnostics:
            calib = {k: v for k, v in diagnostics.items() if k != "warnings"}
            calib["warnings"] = "; ".join(diagnostics.get("warnings", []))
            pd.DataFrame(
                [{"Parameter": k, "Value": v} for k, v in calib.items()]
            ).to_excel(writer, sheet_name="Calibration", index=False)

        if unknowns is not None:
            unknowns.to_excel(writer, sheet_name="Unknowns", index=False)

        if concentrations is not None:
            concentrations.to_excel(writer, sheet_name="Concentrations", index=False)

        if replicate_stats is not None and not replicate_stats.empty:
            replicate_stats.to_excel(writer, sheet_name="QC_Report", index=False)

    return output.getvalue()


def write_results(path, predictions: pd.DataFrame, **tables) -> Path:
    """Write the result table to path.

    A path ending in .xlsx gets the full workbook from export_to_excel (extra
    keyword tables are passed through); anything else gets the CSV table.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() == ".xlsx":
        path.write_bytes(export_to_excel(predictions, **tables))
    else:
        path.write_text(predictions_to_csv(predictions), encoding="utf-8")

    logger.info("Wrote %d predicted samples to %s", len(predictions), path)
    return path
