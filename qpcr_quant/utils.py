"""Utility functions for standard-curve quantification.

Contains sorting helpers and sample classification.
"""

import re

from qpcr_quant.constants import AnalysisConstants, BLANK, STANDARD, UNKNOWN


def natural_sort_key(sample_name):
    """Extract numbers from sample name for natural sorting (e.g., ST2 < ST10)"""
    parts = re.split(r"(\d+)", str(sample_name))
    return [int(part) if re.fullmatch(r"\d+", part) else part.lower() for part in parts]


def classify_sample(sample_id) -> str:
    """Classify a sample identifier as Standard, Blank, or Unknown.

    Standards are recognised by the standard marker ("ST") anywhere in the
    identifier. Otherwise a blank/negative-control marker (H2O, WATER,
    NEGATIVE) makes the sample a Blank. Matching is case-insensitive.

    Args:
        sample_id: Sample identifier (e.g., "ST1", "H2O-1", "A1")

    Returns:
        One of "Standard", "Blank", "Unknown"
    """
    name = str(sample_id).upper()
    if AnalysisConstants.STANDARD_MARKER in name:
        return STANDARD
    if any(marker in name for marker in AnalysisConstants.BLANK_MARKERS):
        return BLANK
    return UNKNOWN


def sort_by_sample(df, column: str = "Sample"):
    """Return df ordered by natural sample order with a fresh index."""
    keys = [natural_sort_key(name) for name in df[column]]
    order = sorted(range(len(keys)), key=keys.__getitem__)
    return df.iloc[order].reset_index(drop=True)
