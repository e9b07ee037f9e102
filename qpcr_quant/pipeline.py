"""Pipeline — end-to-end standard-curve quantification of one qPCR plate.

run_calibration() is the pure computation over two in-memory tables;
run_pipeline() adds loading and writing around it; main() is the CLI.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from qpcr_quant.analysis import CalibrationModel, StandardCurveEngine
from qpcr_quant.cleaning import QPCRCleaner
from qpcr_quant.constants import AnalysisConstants
from qpcr_quant.errors import QuantificationError
from qpcr_quant.export import write_results
from qpcr_quant.parser import TableLoader
from qpcr_quant.quality_control import QualityControl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    concentration_path: Path
    qpcr_path: Path
    output_path: Path

    def __post_init__(self):
        # Accept plain strings from callers and the CLI
        for name in ("concentration_path", "qpcr_path", "output_path"):
            object.__setattr__(self, name, Path(getattr(self, name)))


@dataclass
class PipelineResult:
    """Everything one run produces. predictions is the table that gets written."""

    cleaned: pd.DataFrame
    standards: pd.DataFrame
    model: CalibrationModel
    unknowns: pd.DataFrame
    predictions: pd.DataFrame
    concentrations: Optional[pd.DataFrame] = None
    replicate_stats: pd.DataFrame = field(default_factory=pd.DataFrame)
    diagnostics: dict = field(default_factory=dict)

    def export_tables(self) -> dict:
        """Keyword tables for export_to_excel / write_results."""
        return {
            "standards": self.standards,
            "diagnostics": self.diagnostics,
            "unknowns": self.unknowns,
            "concentrations": self.concentrations,
            "replicate_stats": self.replicate_stats,
        }


def run_calibration(qpcr_raw: pd.DataFrame, concentration_raw: pd.DataFrame = None) -> PipelineResult:
    """Clean, fit the standard curve and predict unknowns for one plate.

    Raises:
        MissingColumnError: A required column is absent from either table.
        InsufficientStandardsError: Fewer than two usable standards.
    """
    concentrations = None
    if concentration_raw is not None:
        concentrations = QPCRCleaner.clean_concentrations(concentration_raw)

    cleaned = StandardCurveEngine.annotate_classes(QPCRCleaner.clean(qpcr_raw))
    logger.info(
        "Cleaned %d wells: %s",
        len(cleaned),
        ", ".join(f"{n} {cls.lower()}" for cls, n in cleaned["Class"].value_counts().sort_index().items()),
    )

    blanks = StandardCurveEngine.blank_samples(cleaned)
    if blanks:
        logger.info("Blank/negative controls excluded from quantification: %s", ", ".join(blanks))

    standards = StandardCurveEngine.build_standard_curve(cleaned)
    model = StandardCurveEngine.fit_calibration(standards)

    unknowns = StandardCurveEngine.flag_range(
        StandardCurveEngine.aggregate_unknowns(cleaned), standards
    )
    predictions = StandardCurveEngine.predict(unknowns, model)

    replicate_stats = QualityControl.get_replicate_stats(cleaned)
    diagnostics = QualityControl.curve_diagnostics(model, standards)
    for warning in diagnostics["warnings"]:
        logger.warning("Standard curve: %s", warning)
    amplified = replicate_stats[replicate_stats["Status"] == "Blank amplified"]
    if not amplified.empty:
        logger.warning("Blank wells with a Cq value: %s", ", ".join(amplified["Sample"]))

    return PipelineResult(
        cleaned=cleaned,
        standards=standards,
        model=model,
        unknowns=unknowns,
        predictions=predictions,
        concentrations=concentrations,
        replicate_stats=replicate_stats,
        diagnostics=diagnostics,
    )


def run_pipeline(config: PipelineConfig) -> PipelineResult:
    """Load both tables, run the calibration, and write the output table.

    Nothing is written unless every step before the write succeeds.
    """
    concentration_raw = TableLoader.load(
        config.concentration_path,
        AnalysisConstants.CONCENTRATION_COLUMNS,
        AnalysisConstants.CONCENTRATION_TABLE,
    )
    qpcr_raw = TableLoader.load(
        config.qpcr_path,
        AnalysisConstants.QPCR_COLUMNS,
        AnalysisConstants.QPCR_TABLE,
    )

    result = run_calibration(qpcr_raw, concentration_raw)
    write_results(config.output_path, result.predictions, **result.export_tables())
    return result


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="qpcr-quant",
        description="Quantify qPCR unknowns against a log2 standard curve.",
    )
    p.add_argument("concentrations", help="Concentration table (Sample, Final Concentration (ng/uL)).")
    p.add_argument("qpcr", help="qPCR results table (Well, Sample, Cq, Quantity).")
    p.add_argument("output", help="Output path; .xlsx writes a full workbook, anything else CSV.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = PipelineConfig(args.concentrations, args.qpcr, args.output)
    try:
        result = run_pipeline(config)
    except (QuantificationError, OSError) as e:
        print(f"qpcr-quant: error: {e}", file=sys.stderr)
        return 2

    print(f"Quantified {len(result.predictions)} samples -> {config.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
