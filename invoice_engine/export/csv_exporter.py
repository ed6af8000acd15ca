"""
CSV Exporter Module.

Writes export rows to a flat CSV file: one row per line item, or one
summary row per invoice when line items are excluded.
"""

import csv
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import get_config
from invoice_engine.normalization.service_types import ServiceCategory
from invoice_engine.utils.exceptions import CsvExportError
from invoice_engine.utils.helpers import ensure_directory, generate_timestamp
from invoice_engine.utils.logger import get_logger

from .rows import FLIGHT_COLUMNS, HOTEL_COLUMNS, INVOICE_COLUMNS, LINE_COLUMNS

logger = get_logger(__name__)


def export_columns(include_items: bool = True, label: Optional[str] = None) -> List[str]:
    """
    Column order for exported rows.

    Args:
        include_items: Whether rows carry line-item columns.
        label: Category display label of a per-category sheet; None for
            the combined layout carrying every descriptive column.
    """
    if not include_items:
        return list(INVOICE_COLUMNS)

    columns = INVOICE_COLUMNS + LINE_COLUMNS
    if label in (None, ServiceCategory.FLIGHT.label):
        columns = columns + FLIGHT_COLUMNS
    if label in (None, ServiceCategory.HOTEL.label):
        columns = columns + HOTEL_COLUMNS
    return columns


class CsvExporter:
    """
    Exports invoice rows to CSV.

    Example:
        >>> exporter = CsvExporter()
        >>> path = exporter.export(rows, "invoices.csv")
    """

    def __init__(self) -> None:
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.delimiter = get_config("export.csv.delimiter", ",")

        logger.debug(f"CsvExporter initialized (output_dir: {self.output_dir})")

    def export(
        self,
        rows: List[Dict[str, Any]],
        filename: Optional[str] = None,
        output_dir: Optional[str] = None,
        include_items: bool = True
    ) -> str:
        """
        Write rows to a CSV file.

        Args:
            rows: Export rows (see RowBuilder).
            filename: Output filename. If None, auto-generated.
            output_dir: Output directory. If None, uses configured dir.
            include_items: Whether rows carry line-item columns.

        Returns:
            Path to the created CSV file.

        Raises:
            CsvExportError: If there is nothing to write or writing fails.
        """
        out_dir = Path(output_dir) if output_dir else self.output_dir
        filepath = out_dir / (filename or self.get_default_filename())

        if not rows:
            raise CsvExportError(str(filepath), "No rows to export")

        try:
            ensure_directory(out_dir)
            with open(filepath, "w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(
                    handle,
                    fieldnames=export_columns(include_items),
                    delimiter=self.delimiter,
                    extrasaction="ignore",
                    restval="",
                )
                writer.writeheader()
                writer.writerows(rows)
        except (OSError, csv.Error) as e:
            logger.error(f"CSV export failed: {e}")
            raise CsvExportError(str(filepath), str(e))

        logger.info(f"CSV file saved: {filepath} ({len(rows)} rows)")
        return str(filepath)

    def get_default_filename(self) -> str:
        pattern = get_config("export.csv.filename_pattern", "invoices_{timestamp}.csv")
        return pattern.format(timestamp=generate_timestamp())
