"""TableLoader — reads concentration and qPCR result tables.

Accepts CSV, tab-delimited text, and Excel workbooks, from a path or an
uploaded file object. Instrument exports often carry a metadata preamble
above the real header, so the header row is located by scanning for the
first row that holds every required column.
"""

import csv
import io
import logging
from pathlib import Path

import pandas as pd

from qpcr_quant.errors import InputFileError, MissingColumnError

logger = logging.getLogger(__name__)


class TableLoader:
    MAX_FILE_SIZE_MB = 50
    ENCODINGS = ["utf-8-sig", "utf-16", "latin-1", "cp1252"]
    DELIMITERS = [",", "\t", ";"]
    EXCEL_SUFFIXES = (".xlsx",)
    LEGACY_EXCEL_SUFFIXES = (".xls",)

    @staticmethod
    def _normalize(name) -> str:
        return str(name).strip().lower() if pd.notna(name) else ""

    @staticmethod
    def _match_columns(cells, required):
        """Map each required column to the cell label matching it, ignoring case."""
        lookup = {}
        for cell in cells:
            key = TableLoader._normalize(cell)
            if key and key not in lookup:
                lookup[key] = cell
        return {
            col: lookup[col.lower()] for col in required if col.lower() in lookup
        }

    @staticmethod
    def _read_bytes(source):
        """Return (raw bytes, display name) for a path or file-like object."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            size_mb = path.stat().st_size / (1024 * 1024)
            if size_mb > TableLoader.MAX_FILE_SIZE_MB:
                raise InputFileError(
                    f"File too large ({size_mb:.1f} MB). Maximum size is {TableLoader.MAX_FILE_SIZE_MB} MB."
                )
            return path.read_bytes(), path.name

        source.seek(0, 2)
        size_mb = source.tell() / (1024 * 1024)
        source.seek(0)
        if size_mb > TableLoader.MAX_FILE_SIZE_MB:
            raise InputFileError(
                f"File too large ({size_mb:.1f} MB). Maximum size is {TableLoader.MAX_FILE_SIZE_MB} MB."
            )
        data = source.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        return data, getattr(source, "name", "uploaded file")

    @staticmethod
    def _decode(data: bytes, name: str) -> str:
        for enc in TableLoader.ENCODINGS:
            # Without NUL bytes the payload cannot be UTF-16, but it would still "decode"
            if enc.startswith("utf-16") and b"\x00" not in data:
                continue
            try:
                text = data.decode(enc)
            except UnicodeError:
                continue
            if "\x00" in text:
                continue
            return text
        raise InputFileError(f"Could not decode {name} with any of: {', '.join(TableLoader.ENCODINGS)}")

    @staticmethod
    def locate_header(rows, required):
        """Find the header row among rows of cells.

        Returns:
            Tuple of (row index, column mapping). When no row holds every
            required column, the index is -1 and the mapping is the best
            partial match seen, so the caller can report what is missing.
        """
        best = {}
        for idx, cells in enumerate(rows):
            matched = TableLoader._match_columns(cells, required)
            if len(matched) == len(required):
                return idx, matched
            if len(matched) > len(best):
                best = matched
        return -1, best

    @staticmethod
    def _read_text(text: str, required, table_name: str) -> tuple:
        lines = text.splitlines()
        best = {}
        for delimiter in TableLoader.DELIMITERS:
            rows = (next(csv.reader([line], delimiter=delimiter), []) for line in lines)
            idx, mapping = TableLoader.locate_header(rows, required)
            if idx < 0:
                if len(mapping) > len(best):
                    best = mapping
                continue

            df = pd.read_csv(
                io.StringIO("\n".join(lines[idx:])),
                sep=delimiter,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
            df.columns = [str(c).strip() for c in df.columns]
            mapping = {col: str(label).strip() for col, label in mapping.items()}
            return df, mapping

        raise MissingColumnError(table_name, [c for c in required if c not in best])

    @staticmethod
    def _read_excel(data: bytes, required, table_name: str) -> tuple:
        try:
            raw = pd.read_excel(io.BytesIO(data), header=None, dtype=str, engine="openpyxl")
        except Exception as e:
            raise InputFileError(f"Could not read Excel workbook: {e}") from e

        rows = (row.tolist() for _, row in raw.iterrows())
        idx, mapping = TableLoader.locate_header(rows, required)
        if idx < 0:
            raise MissingColumnError(table_name, [c for c in required if c not in mapping])

        df = raw.iloc[idx + 1:].reset_index(drop=True)
        df.columns = [str(c).strip() if pd.notna(c) else "" for c in raw.iloc[idx]]
        df = df.dropna(how="all")
        mapping = {col: str(label).strip() for col, label in mapping.items()}
        return df, mapping

    @staticmethod
    def load(source, required_columns, table_name: str) -> pd.DataFrame:
        """Load a table and rename its required columns to canonical names.

        Args:
            source: Path (str/Path) or binary file-like object (e.g. a Streamlit upload)
            required_columns: Canonical column names that must be present
            table_name: Human-readable table name used in error messages

        Returns:
            DataFrame of strings; required columns carry their canonical names,
            other columns are kept as found.

        Raises:
            MissingColumnError: A required column is absent.
            InputFileError: The file is too large, cannot be decoded, is not a
                readable .xlsx workbook, or is a legacy .xls workbook.
            OSError: The path does not exist or cannot be opened.
        """
        data, name = TableLoader._read_bytes(source)

        if str(name).lower().endswith(TableLoader.LEGACY_EXCEL_SUFFIXES):
            raise InputFileError(f"{name}: legacy .xls workbooks are not supported, save the sheet as .xlsx or CSV")
        if str(name).lower().endswith(TableLoader.EXCEL_SUFFIXES):
            df, mapping = TableLoader._read_excel(data, required_columns, table_name)
        else:
            text = TableLoader._decode(data, name)
            df, mapping = TableLoader._read_text(text, required_columns, table_name)

        df = df.rename(columns={str(label).strip(): col for col, label in mapping.items()})
        logger.info("Loaded %d rows from %s table (%s)", len(df), table_name, name)
        return df
