"""
Pytest configuration and fixtures for qPCR quantification tests.

This module provides shared fixtures and mocks for testing the quantification
package and the Streamlit front end without requiring Streamlit runtime.
"""

import sys
from unittest.mock import MagicMock

import pytest
import pandas as pd


# ==================== STREAMLIT MOCK ====================
# Mock streamlit before importing the app module
class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict with attribute access."""

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError:
            raise AttributeError(f"'MockSessionState' object has no attribute '{key}'")

    def __setattr__(self, key, value):
        self[key] = value


class MockContextManager:
    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass


def _mock_columns(spec, *args, **kwargs):
    n = spec if isinstance(spec, int) else len(spec)
    return [MagicMock() for _ in range(n)]


def _create_mock_streamlit():
    mock_st = MagicMock()
    mock_st.session_state = MockSessionState()
    mock_st.error = MagicMock()
    mock_st.warning = MagicMock()
    mock_st.success = MagicMock()
    mock_st.info = MagicMock()
    mock_st.spinner = MagicMock(return_value=MockContextManager())
    mock_st.tabs = MagicMock(side_effect=lambda labels: [MockContextManager() for _ in labels])
    mock_st.columns = MagicMock(side_effect=_mock_columns)
    mock_st.set_page_config = MagicMock()
    mock_st.title = MagicMock()
    mock_st.caption = MagicMock()
    mock_st.dataframe = MagicMock()
    mock_st.plotly_chart = MagicMock()
    mock_st.file_uploader = MagicMock(return_value=None)
    mock_st.download_button = MagicMock(return_value=False)
    mock_st.metric = MagicMock()
    return mock_st


sys.modules["streamlit"] = _create_mock_streamlit()


@pytest.fixture(autouse=True)
def mock_streamlit():
    """Auto-use fixture to mock Streamlit for all tests."""
    mock_st = _create_mock_streamlit()
    sys.modules["streamlit"] = mock_st

    app_module_name = "streamlit_app"
    if app_module_name in sys.modules:
        del sys.modules[app_module_name]

    yield mock_st


# ==================== SAMPLE DATA FIXTURES ====================
@pytest.fixture
def sample_qpcr_raw_data():
    """Raw qPCR table as loaded from a results export (all cells are strings).

    - 4 standards on an exact doubling-per-cycle curve (slope -1):
      ST1 Cq 20 / 1000, ST2 Cq 22 / 250, ST3 Cq 24 / 62.5, ST4 Cq 26 / 15.625
    - Unknown A1 inside the range, C3 above it (Cq 30), D4 below it (Cq 18)
    - Unknown B2 with one undetermined ("-") Cq replicate
    - Blanks H2O-1 and NEGATIVE-CTRL, one of which amplified
    """
    rows = [
        ("A1", "st1", "20.0", "1000"),
        ("A2", "st1", "20.0", "1000"),
        ("A3", "ST2", "22.0", "250"),
        ("A4", "ST2", "22.0", "250"),
        ("A5", "ST3", "24.0", "62.5"),
        ("A6", "ST3", "24.0", "62.5"),
        ("A7", "ST4", "26.0", "15.625"),
        ("A8", "ST4", "26.0", "15.625"),
        ("B1", "a1", "23.0", "125"),
        ("B2", "A1", "23.0", "125"),
        ("B3", "A1", "23.0", "125"),
        ("B4", "B2", "-", "-"),
        ("B5", "B2", "24.5", "44.2"),
        ("B6", "C3", "30.0", "0.98"),
        ("B7", "C3", "30.0", "0.98"),
        ("B8", "D4", "18.0", "4000"),
        ("C1", "H2O-1", "-", "-"),
        ("C2", "NEGATIVE-CTRL", "38.2", "0.01"),
    ]
    return pd.DataFrame(rows, columns=["Well", "Sample", "Cq", "Quantity"])


@pytest.fixture
def two_standard_raw_data():
    """Two standards and one unknown halfway between them."""
    return pd.DataFrame(
        [
            ("A1", "ST1", "20", "1000"),
            ("A2", "ST2", "25", "31.25"),
            ("A3", "A1", "22.5", "176.7767"),
        ],
        columns=["Well", "Sample", "Cq", "Quantity"],
    )


@pytest.fixture
def concentration_raw_data():
    """Concentration table as loaded from file."""
    return pd.DataFrame(
        {
            "Sample": ["a1", "B2", "C3", "D4", "-"],
            "Final Concentration (ng/uL)": ["12.5", "8.1", "n/a", "40", "1"],
        }
    )


@pytest.fixture
def qpcr_csv_content():
    """qPCR results CSV with an instrument preamble above the header."""
    return """Experiment File Name,plate1.eds,,
Run End Time,2024-01-15 10:30:00,,

Well,Sample,Cq,Quantity
A1,ST1,20.0,1000
A2,ST1,20.0,1000
A3,ST2,25.0,31.25
A4,ST2,25.0,31.25
B1,A1,22.5,176.7767
B2,A1,22.5,176.7767
C1,H2O-1,-,-
"""


@pytest.fixture
def concentration_csv_content():
    return """Sample,Final Concentration (ng/uL)
A1,12.5
"""


@pytest.fixture
def plate_files(tmp_path, qpcr_csv_content, concentration_csv_content):
    """Write both input tables to disk and return (conc_path, qpcr_path, output_path)."""
    conc_path = tmp_path / "concentrations.csv"
    qpcr_path = tmp_path / "qpcr.csv"
    conc_path.write_text(concentration_csv_content, encoding="utf-8")
    qpcr_path.write_text(qpcr_csv_content, encoding="utf-8")
    return conc_path, qpcr_path, tmp_path / "out" / "results.csv"
