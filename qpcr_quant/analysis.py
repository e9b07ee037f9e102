"""StandardCurveEngine — standard curve construction, calibration, and prediction.

Standards are averaged per identifier and fitted with an ordinary least-squares
line of mean log2(Quantity) on mean Cq. Unknown samples are averaged the same
way, flagged against the Cq range the standards cover, and converted back to
linear concentrations with the fitted line.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import stats

from qpcr_quant.constants import (
    AnalysisConstants,
    BLANK,
    FLAG_NONE,
    FLAG_OVER,
    FLAG_UNDER,
    STANDARD,
    UNKNOWN,
)
from qpcr_quant.errors import InsufficientStandardsError
from qpcr_quant.utils import classify_sample, sort_by_sample

logger = logging.getLogger(__name__)

STANDARD_CURVE_COLUMNS = ["Sample", "mean_cq_log2_qty", "mean_cq"]
UNKNOWN_COLUMNS = ["Sample", "mean_cq", "mean_qty_log2"]


@dataclass(frozen=True)
class CalibrationModel:
    """Fitted standard curve: log2(quantity) = slope * Cq + intercept."""

    slope: float
    intercept: float
    r_squared: float = np.nan
    n_points: int = 0

    def predict(self, cq):
        """Fitted log2 quantity for a Cq value or an array of Cq values."""
        fitted = self.slope * np.asarray(cq, dtype=float) + self.intercept
        return float(fitted) if np.ndim(fitted) == 0 else fitted

    @property
    def efficiency(self) -> float:
        # Q0 * (1 + E) ** Cq is constant at threshold, so slope = -log2(1 + E)
        return float(np.exp2(-self.slope)) - 1.0

    def to_dict(self) -> dict:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "r_squared": self.r_squared,
            "efficiency": self.efficiency,
            "n_points": self.n_points,
        }


class StandardCurveEngine:
    @staticmethod
    def annotate_classes(data: pd.DataFrame) -> pd.DataFrame:
        """Add a Class column (Standard / Blank / Unknown), classifying each row once."""
        df = data.copy()
        df["Class"] = df["Sample"].map(classify_sample)
        return df

    @staticmethod
    def _rows_of_class(data: pd.DataFrame, sample_class: str) -> pd.DataFrame:
        if "Class" not in data.columns:
            data = StandardCurveEngine.annotate_classes(data)
        df = data[data["Class"] == sample_class].copy()
        # log2 is undefined for missing and non-positive quantities
        df["log2_qty"] = np.log2(df["Quantity"].astype(float).where(df["Quantity"] > 0))
        return df

    @staticmethod
    def build_standard_curve(data: pd.DataFrame) -> pd.DataFrame:
        """One point per standard identifier: mean log2(Quantity) and mean Cq.

        Missing values are left out of each mean; a standard with no usable
        value at all gets NaN and is skipped later by fit_calibration.
        """
        std = StandardCurveEngine._rows_of_class(data, STANDARD)
        if std.empty:
            return pd.DataFrame(columns=STANDARD_CURVE_COLUMNS)

        curve = (
            std.groupby("Sample")
            .agg(mean_cq_log2_qty=("log2_qty", "mean"), mean_cq=("Cq", "mean"))
            .reset_index()
        )
        return sort_by_sample(curve[STANDARD_CURVE_COLUMNS])

    @staticmethod
    def fit_calibration(standards: pd.DataFrame) -> CalibrationModel:
        """Ordinary least-squares fit of mean_cq_log2_qty on mean_cq.

        Raises:
            InsufficientStandardsError: Fewer than two standards with defined
                values and distinct mean Cq.
        """
        x_all = standards["mean_cq"].astype(float)
        y_all = standards["mean_cq_log2_qty"].astype(float)
        defined = np.isfinite(x_all) & np.isfinite(y_all)

        skipped = standards.loc[~defined, "Sample"].tolist()
        if skipped:
            logger.info("Standards without usable Cq/Quantity left out of the fit: %s", ", ".join(skipped))

        x = x_all[defined].to_numpy()
        y = y_all[defined].to_numpy()
        n_distinct = int(np.unique(x).size)
        if n_distinct < AnalysisConstants.MIN_STANDARDS_FOR_FIT:
            raise InsufficientStandardsError(n_distinct, AnalysisConstants.MIN_STANDARDS_FOR_FIT)

        fit = stats.linregress(x, y)
        model = CalibrationModel(
            slope=float(fit.slope),
            intercept=float(fit.intercept),
            r_squared=float(fit.rvalue**2),
            n_points=int(x.size),
        )
        logger.info(
            "Standard curve fitted on %d points: slope=%.4f intercept=%.4f R2=%.4f",
            model.n_points,
            model.slope,
            model.intercept,
            model.r_squared,
        )
        return model

    @staticmethod
    def aggregate_unknowns(data: pd.DataFrame) -> pd.DataFrame:
        """Mean Cq and mean log2(Quantity) per unknown sample.

        Standards and blanks are excluded. A single missing replicate makes
        the corresponding mean NaN, so only fully observed samples reach the
        predictor.
        """
        unk = StandardCurveEngine._rows_of_class(data, UNKNOWN)
        if unk.empty:
            return pd.DataFrame(columns=UNKNOWN_COLUMNS)

        strict_mean = lambda s: s.mean(skipna=False)  # noqa: E731
        grouped = (
            unk.groupby("Sample")
            .agg(mean_cq=("Cq", strict_mean), mean_qty_log2=("log2_qty", strict_mean))
            .reset_index()
        )
        return sort_by_sample(grouped[UNKNOWN_COLUMNS])

    @staticmethod
    def curve_range(standards: pd.DataFrame):
        """(min, max) of the defined standard mean Cq values, or (nan, nan)."""
        cq = standards["mean_cq"].astype(float)
        cq = cq[np.isfinite(cq)]
        if cq.empty:
            return np.nan, np.nan
        return float(cq.min()), float(cq.max())

    @staticmethod
    def flag_range(unknowns: pd.DataFrame, standards: pd.DataFrame) -> pd.DataFrame:
        """Add an Outlier column: Under / Over outside the standard Cq range, else None.

        Both bounds are inclusive. Samples with undefined mean Cq stay None.
        """
        result = unknowns.copy()
        min_cq, max_cq = StandardCurveEngine.curve_range(standards)
        mean_cq = result["mean_cq"].astype(float)

        result["Outlier"] = np.select(
            [mean_cq < min_cq, mean_cq > max_cq],
            [FLAG_UNDER, FLAG_OVER],
            default=FLAG_NONE,
        ).astype(object)

        flagged = result[result["Outlier"] != FLAG_NONE]
        if not flagged.empty:
            logger.warning(
                "%d sample(s) outside the standard curve Cq range [%.2f, %.2f]: %s",
                len(flagged),
                min_cq,
                max_cq,
                ", ".join(f"{s} ({f})" for s, f in zip(flagged["Sample"], flagged["Outlier"])),
            )
        return result

    @staticmethod
    def predict(unknowns: pd.DataFrame, model: CalibrationModel) -> pd.DataFrame:
        """Apply the calibration to fully observed unknowns.

        Returns the output table: Sample, Outlier, mean_cq, mean_qty_log2,
        fitted, conc, fitted_conc. Samples with an undefined mean are dropped.
        """
        mean_cq = unknowns["mean_cq"].astype(float)
        mean_qty_log2 = unknowns["mean_qty_log2"].astype(float)
        defined = np.isfinite(mean_cq) & np.isfinite(mean_qty_log2)

        dropped = unknowns.loc[~defined, "Sample"].tolist()
        if dropped:
            logger.info("Samples with missing Cq/Quantity excluded from predictions: %s", ", ".join(dropped))

        result = unknowns[defined].copy()
        if "Outlier" not in result.columns:
            result["Outlier"] = FLAG_NONE
        result["mean_cq"] = mean_cq[defined]
        result["mean_qty_log2"] = mean_qty_log2[defined]
        result["fitted"] = model.predict(result["mean_cq"].to_numpy())
        result["conc"] = 2.0 ** result["mean_qty_log2"]
        result["fitted_conc"] = 2.0 ** result["fitted"]

        return sort_by_sample(result[AnalysisConstants.OUTPUT_COLUMNS])

    @staticmethod
    def blank_samples(data: pd.DataFrame) -> list:
        """Identifiers classified as blanks / negative controls."""
        if "Class" not in data.columns:
            data = StandardCurveEngine.annotate_classes(data)
        return sorted(data.loc[data["Class"] == BLANK, "Sample"].unique().tolist())
