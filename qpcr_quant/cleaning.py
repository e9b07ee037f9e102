"""QPCRCleaner — normalizes loaded qPCR and concentration tables.

Sentinel strings become NaN, sample identifiers are uppercased, and numeric
fields are coerced. Malformed numbers never raise; they become NaN and are
handled by the missing-value policies of the analysis stages.
"""

import logging

import numpy as np
import pandas as pd

from qpcr_quant.constants import AnalysisConstants
from qpcr_quant.errors import MissingColumnError

logger = logging.getLogger(__name__)


class QPCRCleaner:
    @staticmethod
    def _check_columns(df: pd.DataFrame, required, table_name: str):
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise MissingColumnError(table_name, missing)

    @staticmethod
    def replace_sentinel(series: pd.Series) -> pd.Series:
        """Replace the missing-value sentinel ("-") with NaN."""
        stripped = series.map(lambda v: v.strip() if isinstance(v, str) else v)
        return stripped.mask(stripped == AnalysisConstants.MISSING_SENTINEL)

    @staticmethod
    def to_measurement(series: pd.Series) -> pd.Series:
        """Coerce to float; unparseable, negative, or infinite values become NaN."""
        values = pd.to_numeric(QPCRCleaner.replace_sentinel(series), errors="coerce").astype(float)
        return values.where(np.isfinite(values) & (values >= 0))

    @staticmethod
    def normalize_sample(series: pd.Series) -> pd.Series:
        """Uppercase sample identifiers; blanks and the sentinel become NaN."""
        samples = QPCRCleaner.replace_sentinel(series)
        samples = samples.map(lambda v: str(v).strip().upper() if pd.notna(v) else np.nan)
        return samples.mask(samples == "")

    @staticmethod
    def _drop_missing_samples(df: pd.DataFrame, table_name: str) -> pd.DataFrame:
        missing_sample = df["Sample"].isna()
        if missing_sample.any():
            logger.info(
                "Dropped %d %s rows without a sample identifier",
                int(missing_sample.sum()),
                table_name,
            )
        return df[~missing_sample].reset_index(drop=True)

    @staticmethod
    def clean(raw: pd.DataFrame) -> pd.DataFrame:
        """Clean a qPCR results table.

        Keeps only Well, Sample, Cq and Quantity. Running it on an already
        cleaned table returns an equal table.

        Raises:
            MissingColumnError: A required column is absent.
        """
        QPCRCleaner._check_columns(raw, AnalysisConstants.QPCR_COLUMNS, AnalysisConstants.QPCR_TABLE)

        df = raw[AnalysisConstants.QPCR_COLUMNS].copy()
        df["Well"] = QPCRCleaner.replace_sentinel(df["Well"])
        df["Sample"] = QPCRCleaner.normalize_sample(df["Sample"])

        for col in ["Cq", "Quantity"]:
            replaced = QPCRCleaner.replace_sentinel(df[col])
            present = replaced.notna() & (replaced != "")
            df[col] = QPCRCleaner.to_measurement(df[col])
            # Count cells that had content but did not survive coercion
            invalid_count = int((present & df[col].isna()).sum())
            if invalid_count > 0:
                logger.info("%d %s values could not be read as numbers and were set to missing", invalid_count, col)

        return QPCRCleaner._drop_missing_samples(df, AnalysisConstants.QPCR_TABLE)

    @staticmethod
    def clean_concentrations(raw: pd.DataFrame) -> pd.DataFrame:
        """Clean the concentration table (Sample, Final Concentration (ng/uL))."""
        QPCRCleaner._check_columns(
            raw, AnalysisConstants.CONCENTRATION_COLUMNS, AnalysisConstants.CONCENTRATION_TABLE
        )
        sample_col, conc_col = AnalysisConstants.CONCENTRATION_COLUMNS

        df = raw[AnalysisConstants.CONCENTRATION_COLUMNS].copy()
        df[sample_col] = QPCRCleaner.normalize_sample(df[sample_col])
        df[conc_col] = QPCRCleaner.to_measurement(df[conc_col])

        return QPCRCleaner._drop_missing_samples(df, AnalysisConstants.CONCENTRATION_TABLE)
