"""Extractor for facility spreadsheets (Excel workbooks or CSV files)."""
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union
import logging

import pandas as pd

from association_sync.extractors.base_extractor import BaseExtractor, SourceRecord
from association_sync.reconciliation.errors import InputSourceError
from association_sync.reconciliation.validator import DEFAULT_FIELDS, RecordFields
from association_sync.utils.validators import validate_required_columns

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {'.xlsx', '.xlsm', '.xls'}


def _clean_cell(value: Any) -> Optional[str]:
    """Trim a cell once; empty cells become None."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


class WorkbookExtractor(BaseExtractor):
    """
    Read facility records from an Excel workbook or a CSV file.

    Every cell is read as text and trimmed exactly once. Names are not
    normalized any further.
    """

    def __init__(self, path: Union[str, Path], fields: RecordFields = DEFAULT_FIELDS):
        """
        Initialize the workbook extractor.

        Args:
            path: Workbook (.xlsx/.xls) or CSV file
            fields: Column names expected in each sheet
        """
        super().__init__('workbook')
        self.path = Path(path)
        self.fields = fields

    def extract(self, sheets: Optional[Iterable[str]] = None, **kwargs) -> List[SourceRecord]:
        """
        Read records from the file.

        Args:
            sheets: Sheet names to read, in order (default: every sheet).
                Ignored for CSV files.

        Returns:
            Records from all requested sheets, in sheet then row order

        Raises:
            InputSourceError: If the file is missing or unreadable
        """
        if not self.path.exists():
            raise InputSourceError(f'Input file not found: {self.path}')

        try:
            if self.path.suffix.lower() in EXCEL_SUFFIXES:
                records = self._extract_workbook(sheets)
            else:
                df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
                records = self._frame_to_records(self.path.stem, df)
        except (OSError, ValueError) as e:
            raise InputSourceError(f'Could not read {self.path}: {e}') from e

        self.log_extraction(len(records))
        return records

    def _extract_workbook(self, sheets: Optional[Iterable[str]]) -> List[SourceRecord]:
        records: List[SourceRecord] = []
        with pd.ExcelFile(self.path) as workbook:
            wanted = list(sheets) if sheets else list(workbook.sheet_names)
            for sheet in wanted:
                if sheet not in workbook.sheet_names:
                    self.logger.warning(f"Sheet '{sheet}' not found in {self.path.name}")
                    continue
                df = workbook.parse(sheet, dtype=str, keep_default_na=False)
                sheet_records = self._frame_to_records(sheet, df)
                self.logger.info(f'Found {len(sheet_records)} rows in {sheet}')
                records.extend(sheet_records)
        return records

    def _frame_to_records(self, sheet: str, df: pd.DataFrame) -> List[SourceRecord]:
        df.columns = [str(c).strip() for c in df.columns]
        return [
            SourceRecord(
                sheet=sheet,
                index=idx,
                values={column: _clean_cell(value) for column, value in row.items()},
            )
            for idx, row in enumerate(df.to_dict('records'))
        ]

    def validate_extraction(self, records: List[SourceRecord]) -> bool:
        """
        Check that the required columns are present on every record.

        Missing columns are logged once per sheet; rows are still returned so
        that each one is rejected individually with context.
        """
        is_valid, errors = validate_required_columns(
            ((r.sheet, r.values) for r in records),
            set(self.fields.required_columns()),
        )
        for error in errors:
            self.logger.warning(error)
        return is_valid
