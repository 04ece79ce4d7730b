# cstore/branch_performance/validators.py
"""
Upload validation for Branch Performance

Reads an uploaded CSV/Excel file and turns it into a clean records
DataFrame ready for SalesQueries.replace_sales_data(). Bad rows are
dropped and reported instead of failing the whole upload.
"""

import io
import logging
import re
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import BRANCHES, CHANNELS, NUMERIC_COLUMNS, RECORD_COLUMNS, UPLOAD_HEADERS
from .exceptions import UploadValidationError
from .filters import parse_dates

logger = logging.getLogger(__name__)


def _header_key(name) -> str:
    return re.sub(r'[^a-z0-9]', '', str(name).lower())


# "Sales Value", "sales_value", "SALES VALUE" → sales_value
HEADER_ALIASES = {}
for _col, _label in UPLOAD_HEADERS.items():
    HEADER_ALIASES[_header_key(_col)] = _col
    HEADER_ALIASES[_header_key(_label)] = _col
HEADER_ALIASES.update({
    'branchname': 'branch_name',
    'channelname': 'channel_name',
    'sales': 'sales_value',
    'orders': 'orders_count',
    'target': 'target_value',
})


class UploadValidator:
    """
    Validate uploaded sales files.

    Usage:
        validator = UploadValidator()
        records_df, issues = validator.validate_file(uploaded_file)
    """

    MAX_ISSUES_REPORTED = 50

    def __init__(self, branches: Sequence[str] = BRANCHES, channels: Sequence[str] = CHANNELS):
        self.branches = tuple(branches)
        self.channels = tuple(channels)
        self._branch_lookup = {b.lower(): b for b in self.branches}
        self._channel_lookup = {c.lower(): c for c in self.channels}

    # =========================================================================
    # FILE READING
    # =========================================================================

    def read_file(self, uploaded_file, filename: str = None) -> pd.DataFrame:
        """Read CSV or Excel content into a DataFrame (all cells as text)."""
        name = (filename or getattr(uploaded_file, 'name', '') or '').lower()
        data = uploaded_file.read() if hasattr(uploaded_file, 'read') else uploaded_file
        buffer = io.BytesIO(data)

        try:
            if name.endswith('.csv'):
                return pd.read_csv(buffer, dtype=str)
            return pd.read_excel(buffer, dtype=str, engine='openpyxl')
        except Exception as e:
            logger.error(f"Could not read upload {name}: {e}")
            raise UploadValidationError(f"Could not read file: {e}") from e

    def validate_file(self, uploaded_file, filename: str = None) -> Tuple[pd.DataFrame, List[str]]:
        return self.validate(self.read_file(uploaded_file, filename))

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def normalize_columns(self, raw_df: pd.DataFrame) -> pd.DataFrame:
        renamed = {}
        for col in raw_df.columns:
            target = HEADER_ALIASES.get(_header_key(col))
            if target and target not in renamed.values():
                renamed[col] = target
        df = raw_df.rename(columns=renamed)

        missing = [c for c in ('date', 'branch_name', 'channel_name', 'sales_value') if c not in df.columns]
        if missing:
            labels = [UPLOAD_HEADERS[c] for c in missing]
            raise UploadValidationError(f"Missing required column(s): {', '.join(labels)}")

        for col in ('orders_count', 'target_value'):
            if col not in df.columns:
                df[col] = 0
        return df[RECORD_COLUMNS].copy()

    def validate(self, raw_df: pd.DataFrame) -> Tuple[pd.DataFrame, List[str]]:
        """
        Validate and clean uploaded rows.

        Returns:
            (records_df, issues) - issues lists dropped rows by spreadsheet
            row number (header = row 1)

        Raises:
            UploadValidationError: missing columns or no valid rows
        """
        if raw_df is None or raw_df.empty:
            raise UploadValidationError("The uploaded file is empty")

        df = self.normalize_columns(raw_df)
        issues: List[str] = []
        keep = pd.Series(True, index=df.index)

        # Dates → ISO text
        parsed = parse_dates(df['date'])
        bad_date = parsed.isna()
        df['date'] = parsed.dt.strftime('%Y-%m-%d')

        # Branch / channel names (case-insensitive match to the enumeration)
        df['branch_name'] = df['branch_name'].map(
            lambda v: self._branch_lookup.get(str(v).strip().lower()) if pd.notna(v) else None
        )
        df['channel_name'] = df['channel_name'].map(
            lambda v: self._channel_lookup.get(str(v).strip().lower()) if pd.notna(v) else None
        )

        # Numbers: blank → 0, text → invalid
        invalid_number = pd.Series(False, index=df.index)
        for col in NUMERIC_COLUMNS:
            text = df[col].astype(str).str.replace(',', '', regex=False).str.strip()
            text = text.where(df[col].notna() & (text != ''), '0')
            values = pd.to_numeric(text, errors='coerce')
            bad = values.isna() | (values < 0) | np.isinf(values)
            invalid_number |= bad
            df[col] = values.where(~bad, 0)
        df['orders_count'] = df['orders_count'].round().astype('int64')

        checks = [
            (bad_date, "invalid date"),
            (df['branch_name'].isna(), "unknown branch"),
            (df['channel_name'].isna(), "unknown channel"),
            (invalid_number, "invalid or negative number"),
        ]
        for mask, reason in checks:
            for idx in df.index[mask & keep]:
                if len(issues) < self.MAX_ISSUES_REPORTED:
                    issues.append(f"Row {int(idx) + 2}: {reason}")
            keep &= ~mask

        dropped = int((~keep).sum())
        if dropped > self.MAX_ISSUES_REPORTED:
            issues.append(f"... and {dropped - self.MAX_ISSUES_REPORTED} more row(s) skipped")

        clean = df[keep].reset_index(drop=True)
        if clean.empty:
            raise UploadValidationError("No valid rows found in the uploaded file", issues)

        if dropped:
            logger.warning(f"Upload validation dropped {dropped} of {len(df)} row(s)")
        logger.info(f"Upload validated: {len(clean):,} valid row(s)")
        return clean, issues
