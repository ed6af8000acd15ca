"""
Excel Exporter Module.

This module provides XLSX generation for reconciled invoices using
openpyxl.

Features:
    - Master sheet with every row
    - One sheet per service category
    - Formatted headers and frozen header row
    - Column widths fitted to content within configured bounds
"""

from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from config import get_config
from invoice_engine.normalization.service_types import classify_service_type
from invoice_engine.utils.exceptions import ExcelExportError
from invoice_engine.utils.helpers import ensure_directory, generate_timestamp
from invoice_engine.utils.logger import get_logger

from .csv_exporter import export_columns

logger = get_logger(__name__)

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)

# Characters Excel rejects in sheet titles.
_SHEET_TITLE_BAD = str.maketrans({c: "_" for c in '[]:*?/\\'})


def sheet_key(row: Dict[str, Any]) -> str:
    """Category label a row is grouped under."""
    return row.get('category') or classify_service_type(row.get('serviceType')).label


def cell_value(value: Any) -> Any:
    """Value safe to store in a cell; control characters are dropped from text."""
    if value is None:
        return ''
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub('', value)
    return value


class ExcelExporter:
    """
    Exports invoice rows to Excel format.

    Attributes:
        output_dir: Directory for output files
        master_sheet: Title of the sheet holding all rows
        min_width: Minimum column width
        max_width: Maximum column width

    Example:
        >>> exporter = ExcelExporter()
        >>> filepath = exporter.export(rows, "invoices.xlsx")
        >>> print(f"Saved to: {filepath}")
    """

    def __init__(self) -> None:
        """Initialize the Excel exporter with configuration."""
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.master_sheet = get_config("export.excel.master_sheet", "Master")
        self.min_width = get_config("export.excel.min_column_width", 12)
        self.max_width = get_config("export.excel.max_column_width", 42)

        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def export(
        self,
        rows: List[Dict[str, Any]],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None,
        include_items: bool = True
    ) -> str:
        """
        Export rows to an Excel file.

        Args:
            rows: Export rows (see RowBuilder).
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses configured dir.
            include_items: Whether rows carry line-item columns.

        Returns:
            Path to the created Excel file.

        Raises:
            ExcelExportError: If there is nothing to write, a value cannot be
                stored in a cell, or saving fails.
        """
        out_dir = Path(output_dir) if output_dir else self.output_dir
        filepath = out_dir / (filename or self.get_default_filename())

        if not rows:
            raise ExcelExportError(str(filepath), "No rows to export")

        try:
            workbook = Workbook()
            master = workbook.active
            master.title = self.master_sheet
            self._write_sheet(master, export_columns(include_items), rows)

            for label, group in self.group_rows(rows).items():
                sheet = workbook.create_sheet(title=self._sheet_title(label))
                self._write_sheet(sheet, export_columns(include_items, label), group)

            ensure_directory(out_dir)
            workbook.save(filepath)
        except (OSError, ValueError, IllegalCharacterError) as e:
            logger.error(f"Excel export failed: {e}")
            raise ExcelExportError(str(filepath), str(e))

        logger.info(f"Excel file saved: {filepath} ({len(rows)} rows, {len(workbook.sheetnames)} sheets)")
        return str(filepath)

    @staticmethod
    def group_rows(rows: List[Dict[str, Any]]) -> "OrderedDict[str, List[Dict[str, Any]]]":
        """Rows grouped by category label, in first-seen order."""
        groups: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for row in rows:
            groups.setdefault(sheet_key(row), []).append(row)
        return groups

    def _sheet_title(self, label: str) -> str:
        title = label.translate(_SHEET_TITLE_BAD)[:31]
        # avoid clashing with the master sheet
        if title.lower() == self.master_sheet.lower():
            title = f"{title}_"[:31]
        return title

    def _write_sheet(self, sheet, columns: List[str], rows: List[Dict[str, Any]]) -> None:
        """
        Write a header row and data rows, then size the columns.

        Args:
            sheet: openpyxl Worksheet instance.
            columns: Column keys, also used as header labels.
            rows: Rows to write.
        """
        for col, name in enumerate(columns, 1):
            cell = sheet.cell(row=1, column=col, value=name)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = HEADER_ALIGNMENT
            cell.border = THIN_BORDER

        for row_num, row in enumerate(rows, 2):
            for col, name in enumerate(columns, 1):
                cell = sheet.cell(row=row_num, column=col, value=cell_value(row.get(name, '')))
                cell.border = THIN_BORDER

        for col, name in enumerate(columns, 1):
            max_length = len(name)
            for row in rows:
                value = row.get(name, '')
                if value not in (None, ''):
                    max_length = max(max_length, len(str(value)))

            width = min(max(max_length + 2, self.min_width), self.max_width)
            sheet.column_dimensions[get_column_letter(col)].width = width

        sheet.freeze_panes = 'A2'

    def get_default_filename(self) -> str:
        """
        Generate a default filename with timestamp.

        Returns:
            Default filename string.
        """
        pattern = get_config("export.excel.filename_pattern", "invoices_{timestamp}.xlsx")
        return pattern.format(timestamp=generate_timestamp())
