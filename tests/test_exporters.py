"""Tests for export rows and the CSV / XLSX exporters."""

import csv
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from invoice_engine.engine import InvoiceEngine
from invoice_engine.export import (
    INVOICE_COLUMNS,
    CsvExporter,
    ExcelExporter,
    ExportHandler,
    RowBuilder,
    export_columns,
    format_date,
    split_origin_destination,
)
from invoice_engine.utils.exceptions import CsvExportError, ExcelExportError


def D(value):
    return Decimal(value)


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        return reader.fieldnames, list(reader)


class TestHelpers:

    @pytest.mark.parametrize("raw, expected", [
        ("DEL-BOM", ("DEL", "BOM")),
        ("del / bom", ("DEL", "BOM")),
        ("DEL -> BOM", ("DEL", "BOM")),
        ("DEL/PNQ/PAT", ("DEL", "PAT")),
        ("Sector: DEL-BOM", ("DEL", "BOM")),
        ("Delhi to Mumbai", ("", "")),
        (None, ("", "")),
    ])
    def test_split_origin_destination(self, raw, expected):
        assert split_origin_destination(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("2024-03-05T10:00:00Z", "2024-03-05"),
        ("5 March 2024", "2024-03-05"),
        (date(2024, 1, 2), "2024-01-02"),
        ("not a date", ""),
        (None, ""),
    ])
    def test_format_date(self, raw, expected):
        assert format_date(raw) == expected

    def test_column_layouts(self):
        assert export_columns(False) == INVOICE_COLUMNS
        combined = export_columns(True)
        assert "pnr" in combined and "guest" in combined
        assert "pnr" in export_columns(True, "Flight") and "guest" not in export_columns(True, "Flight")
        assert "guest" in export_columns(True, "Hotel") and "pnr" not in export_columns(True, "Hotel")
        assert "pnr" not in export_columns(True, "Visa")


class TestRowBuilder:

    @pytest.fixture
    def builder(self):
        return RowBuilder()

    def test_summary(self, builder, hotel_invoice):
        summary = builder.summary(InvoiceEngine().view(hotel_invoice))
        assert summary["invoiceId"] == "inv-1"
        assert summary["issueDate"] == "2024-03-05"
        assert summary["dueDate"] == "2024-03-20"
        assert summary["currency"] == "INR"
        assert summary["billToName"] == "Acme Travels"
        assert summary["billToEmail"] == "ops@acme.test"
        assert summary["billToTaxId"] == "29ABCDE1234F1Z5"
        assert summary["documentKind"] == "Tax Invoice"
        assert summary["subtotal"] == D("27000.00")
        assert summary["taxPct"] == D("3.00")

    def test_bill_to_prefers_top_level(self, builder):
        invoice = {"billToName": "Direct", "billTo": {"name": "Nested", "phone": "+91 99"}}
        summary = builder.summary(InvoiceEngine().view(invoice))
        assert summary["billToName"] == "Direct"
        assert summary["billToPhone"] == "+91 99"

    def test_hotel_line(self, builder, hotel_invoice):
        [row] = builder.line_rows(InvoiceEngine().view(hotel_invoice))
        assert row["lineNo"] == 1
        assert row["category"] == "Hotel"
        assert row["description"] == "Deluxe room"
        assert row["qty"] == D(6)
        assert row["unitPrice"] == D(4500)
        assert row["lineTaxPct"] == D("3.00")
        assert row["lineTotal"] == D("28010.00")
        assert (row["guest"], row["hotel"], row["roomType"]) == ("R. Sharma", "Sea View", "Deluxe")
        assert row["pnr"] == ""

    def test_flight_lines(self, builder, flight_invoice):
        first, second = builder.line_rows(InvoiceEngine().view(flight_invoice))
        assert (first["passengerName"], first["from"], first["to"]) == ("A. Rao", "DEL", "BOM")
        assert (first["airline"], first["pnr"], first["baseFare"]) == ("6E", "XY12Z", D(12000))
        assert first["lineTaxPct"] == D("18.00")
        assert first["itemCurrency"] == "INR"
        assert (second["passengerName"], second["from"], second["to"]) == ("B. Rao", "BOM", "GOI")
        assert second["lineBase"] == D("8500.00")
        assert second["guest"] == ""

    def test_invoice_without_items_gives_summary_row(self, builder, proforma_invoice):
        [row] = builder.line_rows(InvoiceEngine().view(proforma_invoice))
        assert row["documentKind"] == "Proforma Invoice"
        assert row["lineNo"] == ""
        assert row["total"] == D("10000.00")

    def test_amount_in_words_uses_payable_total(self, builder, hotel_invoice, proforma_invoice):
        engine = InvoiceEngine()
        hotel = builder.summary(engine.view(hotel_invoice))
        assert hotel["amountInWords"] == "Twenty Eight Thousand Ten Rupees Only"
        proforma = builder.summary(engine.view(proforma_invoice))
        assert proforma["amountInWords"] == "Eleven Thousand Eight Hundred Rupees Only"


class TestCsvExport:

    def test_line_rows(self, tmp_path, mixed_invoices):
        path = ExportHandler().to_csv(mixed_invoices, "out.csv", str(tmp_path))
        header, rows = read_csv(path)
        assert header == export_columns(True)
        assert len(rows) == 5
        assert rows[-1]["category"] == "Visa"
        assert rows[-1]["lineTotal"] == "6200.00"
        assert rows[1]["from"] == "DEL"

    def test_summary_rows(self, tmp_path, mixed_invoices):
        path = ExportHandler(include_items=False).to_csv(mixed_invoices, "out.csv", str(tmp_path))
        header, rows = read_csv(path)
        assert header == INVOICE_COLUMNS
        assert [r["documentKind"] for r in rows] == ["Tax Invoice", "Tax Invoice", "Proforma Invoice", "Tax Invoice"]
        assert rows[2]["taxPct"] == "0.00"

    def test_nothing_to_export(self, tmp_path):
        with pytest.raises(CsvExportError):
            CsvExporter().export([], "empty.csv", str(tmp_path))

    def test_unwritable_directory(self, tmp_path, mixed_invoices):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(CsvExportError):
            ExportHandler().to_csv(mixed_invoices, "out.csv", str(blocker))


class TestExcelExport:

    def test_master_and_category_sheets(self, tmp_path, mixed_invoices):
        path = ExportHandler().to_excel(mixed_invoices, "out.xlsx", str(tmp_path))
        workbook = load_workbook(path)
        assert workbook.sheetnames == ["Master", "Hotel", "Flight", "Holiday", "Visa"]

        master = workbook["Master"]
        assert master.max_row == 6
        assert master["A1"].value == "invoiceId"
        assert master["A1"].font.bold
        assert master.freeze_panes == "A2"

        flight_header = [cell.value for cell in workbook["Flight"][1]]
        assert "pnr" in flight_header and "guest" not in flight_header
        hotel_header = [cell.value for cell in workbook["Hotel"][1]]
        assert "guest" in hotel_header and "pnr" not in hotel_header
        assert workbook["Flight"].max_row == 3

    def test_line_total_is_numeric(self, tmp_path, mixed_invoices):
        path = ExportHandler().to_excel(mixed_invoices, "out.xlsx", str(tmp_path))
        sheet = load_workbook(path)["Visa"]
        header = [cell.value for cell in sheet[1]]
        assert sheet.cell(row=2, column=header.index("lineTotal") + 1).value == 6200

    def test_column_width_bounds(self):
        exporter = ExcelExporter()
        sheet = Workbook().active
        rows = [{"invoiceId": "x", "notes": "n" * 100}]
        exporter._write_sheet(sheet, ["invoiceId", "notes"], rows)
        assert sheet.column_dimensions["A"].width == 12
        assert sheet.column_dimensions["B"].width == 42

    def test_nothing_to_export(self, tmp_path):
        with pytest.raises(ExcelExportError):
            ExcelExporter().export([], "empty.xlsx", str(tmp_path))

    def test_control_characters_are_dropped(self, tmp_path):
        invoice = {"invoiceNo": "INV-1", "serviceType": "VISAS",
                   "items": [{"description": "bad\x01text", "processingFee": 100}]}
        info = ExportHandler().save([invoice], formats=["xlsx"], output_dir=str(tmp_path), basename="dirty")
        assert info["errors"] == []
        sheet = load_workbook(info["excel_path"])["Visa"]
        header = [cell.value for cell in sheet[1]]
        assert sheet.cell(row=2, column=header.index("description") + 1).value == "badtext"

    def test_unsupported_value_raises_export_error(self, tmp_path):
        with pytest.raises(ExcelExportError):
            ExcelExporter().export([{"invoiceId": {"nested": 1}}], "bad.xlsx", str(tmp_path))


class TestExportHandler:

    def test_save_both_formats(self, tmp_path, mixed_invoices):
        info = ExportHandler().save(mixed_invoices, output_dir=str(tmp_path), basename="PI/2024:001")
        assert info["errors"] == []
        assert info["csv_path"].endswith("PI_2024_001.csv")
        assert info["excel_path"].endswith("PI_2024_001.xlsx")

    def test_errors_are_reported(self, tmp_path):
        info = ExportHandler().save([], formats=["csv"], output_dir=str(tmp_path))
        assert info["csv_path"] is None
        assert len(info["errors"]) == 1

    def test_unknown_format(self, mixed_invoices):
        with pytest.raises(ValueError):
            ExportHandler().save(mixed_invoices, formats=["pdf"])

    def test_oversized_amount_does_not_abort_batch(self, tmp_path, mixed_invoices):
        invoices = mixed_invoices + [{"invoiceNo": "INV-9", "serviceType": "FLIGHTS", "items": [{"fare": 1e30}]}]
        info = ExportHandler().save(invoices, output_dir=str(tmp_path), basename="batch")
        assert info["errors"] == []
        _, rows = read_csv(info["csv_path"])
        assert rows[-1]["invoiceNo"] == "INV-9"
        assert rows[-1]["lineTotal"] == "0.00"
