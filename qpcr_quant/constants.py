"""Constants and configuration for standard-curve quantification.

Contains sample classification markers, table schemas, QC thresholds, and plot colors.
"""

# ==================== SAMPLE CLASSES ====================
STANDARD = "Standard"
BLANK = "Blank"
UNKNOWN = "Unknown"

# Outlier flags for unknowns against the standard-curve Cq range
FLAG_NONE = "None"
FLAG_UNDER = "Under"
FLAG_OVER = "Over"

# ==================== COLOR CONSTANTS ====================
STANDARD_COLOR = "#1F77B4"
FIT_LINE_COLOR = "#EA1D22"
UNKNOWN_COLORS = {
    FLAG_NONE: "#2ECC71",
    FLAG_UNDER: "#F1C40F",
    FLAG_OVER: "#E67E22",
}
PLOTLY_FONT_FAMILY = "Arial, sans-serif"


# ==================== ANALYSIS CONSTANTS ====================
class AnalysisConstants:
    STANDARD_MARKER = "ST"
    BLANK_MARKERS = ("H2O", "WATER", "NEGATIVE")
    MISSING_SENTINEL = "-"

    QPCR_TABLE = "qPCR results"
    CONCENTRATION_TABLE = "concentration"
    QPCR_COLUMNS = ["Well", "Sample", "Cq", "Quantity"]
    CONCENTRATION_COLUMNS = ["Sample", "Final Concentration (ng/uL)"]
    OUTPUT_COLUMNS = [
        "Sample",
        "Outlier",
        "mean_cq",
        "mean_qty_log2",
        "fitted",
        "conc",
        "fitted_conc",
    ]

    MIN_STANDARDS_FOR_FIT = 2
    MIN_REPLICATES_FOR_STATS = 2

    CT_HIGH_WARNING = 35.0
    CT_LOW_WARNING = 10.0
    CV_WARNING_THRESHOLD = 0.05
    R_SQUARED_WARNING = 0.98
    EFFICIENCY_RANGE = (0.90, 1.10)
    GRUBBS_ALPHA = 0.05
