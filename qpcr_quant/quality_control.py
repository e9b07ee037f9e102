"""QualityControl — replicate statistics, outlier detection, and curve diagnostics.

Provides Grubbs test, per-sample replicate stats, and standard-curve checks.
Nothing here changes the quantification result; it only annotates it.
"""

import numpy as np
import pandas as pd
from scipy import stats
from typing import Tuple

from qpcr_quant.constants import AnalysisConstants, BLANK
from qpcr_quant.utils import classify_sample, sort_by_sample

REPLICATE_STATS_COLUMNS = [
    "Sample",
    "Class",
    "n",
    "n_missing",
    "Mean Cq",
    "SD",
    "CV%",
    "Outlier Well",
    "Status",
]


class QualityControl:
    CT_HIGH_THRESHOLD = AnalysisConstants.CT_HIGH_WARNING
    CT_LOW_THRESHOLD = AnalysisConstants.CT_LOW_WARNING
    CV_THRESHOLD = AnalysisConstants.CV_WARNING_THRESHOLD
    GRUBBS_ALPHA = AnalysisConstants.GRUBBS_ALPHA

    @staticmethod
    def grubbs_test(values: np.ndarray, alpha: float = 0.05) -> Tuple[bool, int]:
        n = len(values)
        if n < 3:
            return False, -1

        mean_val = np.mean(values)
        std_val = np.std(values, ddof=1)

        if std_val == 0:
            return False, -1

        g_scores = np.abs(values - mean_val) / std_val
        max_idx = np.argmax(g_scores)
        g_stat = g_scores[max_idx]

        t_crit = stats.t.ppf(1 - alpha / (2 * n), n - 2)
        g_crit = ((n - 1) / np.sqrt(n)) * np.sqrt(t_crit**2 / (n - 2 + t_crit**2))

        return g_stat > g_crit, int(max_idx)

    @staticmethod
    def get_replicate_stats(data: pd.DataFrame) -> pd.DataFrame:
        """
        Per-sample replicate summary of Cq values across standards, unknowns and blanks.
        """
        if data is None or data.empty:
            return pd.DataFrame(columns=REPLICATE_STATS_COLUMNS)

        rows = []
        for sample, group in data.groupby("Sample"):
            sample_class = (
                group["Class"].iloc[0] if "Class" in group.columns else classify_sample(sample)
            )
            defined = group.dropna(subset=["Cq"])
            ct_vals = defined["Cq"].to_numpy(dtype=float)
            n = len(ct_vals)

            mean_ct = ct_vals.mean() if n > 0 else np.nan
            sd = ct_vals.std(ddof=1) if n > 1 else 0.0
            # NaN instead of 0 when mean Cq is non-positive
            cv = (sd / mean_ct) * 100 if n > 0 and mean_ct > 0 else np.nan

            outlier_well = ""
            is_outlier, outlier_idx = QualityControl.grubbs_test(
                ct_vals, QualityControl.GRUBBS_ALPHA
            )
            if is_outlier:
                outlier_well = str(defined["Well"].iloc[outlier_idx])

            rows.append(
                {
                    "Sample": sample,
                    "Class": sample_class,
                    "n": n,
                    "n_missing": len(group) - n,
                    "Mean Cq": mean_ct,
                    "SD": sd,
                    "CV%": cv,
                    "Outlier Well": outlier_well,
                    "Status": QualityControl._replicate_status(sample_class, n, mean_ct, cv),
                }
            )

        rep_stats = pd.DataFrame(rows, columns=REPLICATE_STATS_COLUMNS)
        rep_stats["Mean Cq"] = rep_stats["Mean Cq"].round(2)
        rep_stats["SD"] = rep_stats["SD"].round(3)
        rep_stats["CV%"] = rep_stats["CV%"].round(1)
        return sort_by_sample(rep_stats)

    @staticmethod
    def _replicate_status(sample_class: str, n: int, mean_ct: float, cv: float) -> str:
        if sample_class == BLANK:
            return "Blank amplified" if n > 0 else "OK"
        if n == 0:
            return "No Cq"

        issues = []
        if mean_ct < QualityControl.CT_LOW_THRESHOLD:
            issues.append("Check Signal")
        if mean_ct > QualityControl.CT_HIGH_THRESHOLD:
            issues.append("High Cq")
        if pd.notna(cv) and cv > QualityControl.CV_THRESHOLD * 100:
            issues.append("High CV")
        return "; ".join(issues) if issues else "OK"

    @staticmethod
    def curve_diagnostics(model, standards: pd.DataFrame) -> dict:
        """
        Summarize the fitted standard curve and list any quality warnings.
        """
        cq = standards["mean_cq"].astype(float)
        cq = cq[np.isfinite(cq)]
        low, high = AnalysisConstants.EFFICIENCY_RANGE

        warnings = []
        if pd.notna(model.r_squared) and model.r_squared < AnalysisConstants.R_SQUARED_WARNING:
            warnings.append(
                f"R2={model.r_squared:.3f} below {AnalysisConstants.R_SQUARED_WARNING}"
            )
        if not low <= model.efficiency <= high:
            warnings.append(
                f"Efficiency {model.efficiency:.1%} outside {low:.0%}-{high:.0%}"
            )
        if model.n_points < 3:
            warnings.append(f"Only {model.n_points} standard points in the fit")

        return {
            "slope": round(model.slope, 6),
            "intercept": round(model.intercept, 6),
            "r_squared": round(model.r_squared, 6) if pd.notna(model.r_squared) else np.nan,
            "efficiency_pct": round(model.efficiency * 100, 2),
            "n_points": model.n_points,
            "cq_min": round(cq.min(), 2) if not cq.empty else np.nan,
            "cq_max": round(cq.max(), 2) if not cq.empty else np.nan,
            "warnings": warnings,
        }
