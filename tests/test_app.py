import io
from importlib import import_module

import pytest


def _upload(content, name):
    f = io.BytesIO(content.encode('utf-8'))
    f.name = name
    return f


class TestStreamlitApp:
    def test_waits_for_uploads(self, mock_streamlit):
        app = import_module('streamlit_app')

        assert app.main() is None
        mock_streamlit.info.assert_called_once()
        mock_streamlit.plotly_chart.assert_not_called()

    def test_runs_quantification(self, mock_streamlit, qpcr_csv_content, concentration_csv_content):
        mock_streamlit.file_uploader.side_effect = [
            _upload(concentration_csv_content, 'conc.csv'),
            _upload(qpcr_csv_content, 'qpcr.csv'),
        ]
        app = import_module('streamlit_app')

        result = app.main()

        assert result is not None
        assert result.predictions['Sample'].tolist() == ['A1']
        mock_streamlit.success.assert_called_once()
        assert mock_streamlit.plotly_chart.call_count == 3
        assert mock_streamlit.download_button.call_count == 2
        mock_streamlit.error.assert_not_called()

    def test_reports_missing_column(self, mock_streamlit, concentration_csv_content):
        mock_streamlit.file_uploader.side_effect = [
            _upload(concentration_csv_content, 'conc.csv'),
            _upload('Well,Sample,Cq\nA1,ST1,20\n', 'qpcr.csv'),
        ]
        app = import_module('streamlit_app')

        assert app.main() is None
        mock_streamlit.error.assert_called_once()
        assert 'Quantity' in mock_streamlit.error.call_args[0][0]
