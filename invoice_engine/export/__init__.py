"""
Export Module for the Invoice Engine.

This module provides functionality for:
    - Flattening reconciled invoices into summary and line rows
    - CSV export
    - XLSX export (Master sheet plus one sheet per category)
"""

from .csv_exporter import CsvExporter, export_columns
from .excel_exporter import ExcelExporter
from .handler import ExportHandler
from .rows import (
    FLIGHT_COLUMNS,
    HOTEL_COLUMNS,
    INVOICE_COLUMNS,
    LINE_COLUMNS,
    RowBuilder,
    format_date,
    split_origin_destination,
)

__all__ = [
    'CsvExporter',
    'ExcelExporter',
    'ExportHandler',
    'RowBuilder',
    'export_columns',
    'format_date',
    'split_origin_destination',
    'INVOICE_COLUMNS',
    'LINE_COLUMNS',
    'FLIGHT_COLUMNS',
    'HOTEL_COLUMNS',
]
