"""
Main Export Handler Module.

This module provides the unified ExportHandler class that turns stored
invoices into reconciled views and coordinates the CSV and XLSX
exporters.
"""

from typing import Any, Dict, Iterable, List, Optional

from config import get_config
from invoice_engine.engine import InvoiceEngine, InvoiceView
from invoice_engine.utils.exceptions import ExportError
from invoice_engine.utils.helpers import safe_filename
from invoice_engine.utils.logger import get_logger

from .csv_exporter import CsvExporter
from .excel_exporter import ExcelExporter
from .rows import RowBuilder

logger = get_logger(__name__)

FORMATS = ('csv', 'xlsx')


class ExportHandler:
    """
    Unified export handler for stored invoices.

    Attributes:
        engine: InvoiceEngine used to build reconciled views
        include_items: Whether exports carry one row per line item
        builder: RowBuilder flattening views into rows

    Example:
        >>> handler = ExportHandler()
        >>> handler.save(invoices, formats=['csv', 'xlsx'])
        >>>
        >>> # Or export to a specific format
        >>> handler.to_csv(invoices, "invoices.csv")
        >>> handler.to_excel(invoices, "invoices.xlsx")
    """

    def __init__(
        self,
        engine: Optional[InvoiceEngine] = None,
        include_items: Optional[bool] = None,
        builder: Optional[RowBuilder] = None
    ) -> None:
        """
        Initialize the export handler.

        Args:
            engine: Engine override.
            include_items: Override config for line-item rows.
            builder: Row builder override.
        """
        self.engine = engine or InvoiceEngine()
        self.include_items = include_items if include_items is not None else \
            get_config("export.include_items", True)
        self.builder = builder or RowBuilder()

        # Exporters (lazy loading)
        self._csv_exporter = None
        self._excel_exporter = None

        logger.info(f"ExportHandler initialized (include_items={self.include_items})")

    @property
    def csv_exporter(self) -> CsvExporter:
        """Get or create the CSV exporter."""
        if self._csv_exporter is None:
            self._csv_exporter = CsvExporter()
        return self._csv_exporter

    @property
    def excel_exporter(self) -> ExcelExporter:
        """Get or create the Excel exporter."""
        if self._excel_exporter is None:
            self._excel_exporter = ExcelExporter()
        return self._excel_exporter

    def views(self, invoices: Iterable[Any]) -> List[InvoiceView]:
        """Reconciled views of stored invoices (items stored inline)."""
        return [self.engine.view(invoice) for invoice in invoices]

    def rows(self, views: List[InvoiceView]) -> List[Dict[str, Any]]:
        """Flatten views into export rows."""
        rows = []
        for view in views:
            if self.include_items:
                rows.extend(self.builder.line_rows(view))
            else:
                rows.append(self.builder.summary(view))
        return rows

    def to_csv(
        self,
        invoices: Iterable[Any],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Export invoices to a CSV file.

        Returns:
            Path to created CSV file.
        """
        rows = self.rows(self.views(invoices))
        return self.csv_exporter.export(rows, filename, output_dir, self.include_items)

    def to_excel(
        self,
        invoices: Iterable[Any],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None
    ) -> str:
        """
        Export invoices to an Excel file.

        Returns:
            Path to created Excel file.
        """
        rows = self.rows(self.views(invoices))
        return self.excel_exporter.export(rows, filename, output_dir, self.include_items)

    def save(
        self,
        invoices: Iterable[Any],
        formats: Iterable[str] = FORMATS,
        output_dir: Optional[str] = None,
        basename: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Export invoices to every requested format.

        Args:
            invoices: Stored invoice records.
            formats: Any of 'csv' and 'xlsx'.
            output_dir: Output directory (configured dir if None).
            basename: Filename stem; timestamped names if None.

        Returns:
            Dictionary with output details:
            {
                'csv_path': 'path/to/file.csv',
                'excel_path': 'path/to/file.xlsx',
                'errors': []
            }

        Raises:
            ValueError: If an unknown format is requested.
        """
        return self.save_views(self.views(invoices), formats, output_dir, basename)

    def save_views(
        self,
        views: List[InvoiceView],
        formats: Iterable[str] = FORMATS,
        output_dir: Optional[str] = None,
        basename: Optional[str] = None
    ) -> Dict[str, Any]:
        """Export already reconciled views; see save()."""
        formats = [f.lower() for f in formats]
        unknown = [f for f in formats if f not in FORMATS]
        if unknown:
            raise ValueError(f"Unsupported export format(s): {', '.join(unknown)}")

        if basename:
            basename = safe_filename(basename)

        rows = self.rows(views)
        output_info = {'csv_path': None, 'excel_path': None, 'errors': []}

        if 'csv' in formats:
            try:
                output_info['csv_path'] = self.csv_exporter.export(
                    rows, f"{basename}.csv" if basename else None, output_dir, self.include_items
                )
            except ExportError as e:
                logger.error(f"CSV export failed: {e}")
                output_info['errors'].append(str(e))

        if 'xlsx' in formats:
            try:
                output_info['excel_path'] = self.excel_exporter.export(
                    rows, f"{basename}.xlsx" if basename else None, output_dir, self.include_items
                )
            except ExportError as e:
                logger.error(f"Excel export failed: {e}")
                output_info['errors'].append(str(e))

        return output_info
