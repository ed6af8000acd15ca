"""Tests for proforma detection, GST derivation and amount in words."""

from decimal import Decimal

import pytest

from invoice_engine.documents import (
    PROFORMA_INVOICE,
    DocumentClassification,
    DocumentClassifier,
    GstContext,
    ProformaDetector,
    amount_in_words,
    classify_document,
    derive_total_tax_pct,
    is_proforma,
    split_gst_amounts,
)
from invoice_engine.documents.gst import from_first_item, from_grand_total, from_tax_total


def D(value):
    return Decimal(value)


class TestProformaDetector:

    @pytest.mark.parametrize("invoice, signal", [
        ({"meta": {"isProforma": "true"}}, "metadata flag"),
        ({"signatureJson": '{"isProforma": 1}'}, "metadata flag"),
        ({"status": "PROFORMA"}, "document kind"),
        ({"meta": {"docType": "Per-forma"}}, "document kind"),
        ({"invoiceNo": "INV-PROFORMA-12"}, "number word"),
        ({"invoiceNo": "PI-2024-007"}, "number prefix"),
        ({"invoiceNo": "qtn/55"}, "number prefix"),
        ({"invoiceNumber": "PF_9"}, "number prefix"),
        ({"invoiceNo": "QUO-1"}, "number prefix"),
    ])
    def test_signals(self, invoice, signal):
        assert ProformaDetector().detect(invoice) == signal

    @pytest.mark.parametrize("invoice", [
        {"invoiceNo": "INV-20240101-001", "status": "DRAFT"},
        {"invoiceNo": "PIX-1"},
        {"meta": {"isProforma": "no"}},
        {},
        None,
    ])
    def test_tax_invoices(self, invoice):
        assert not is_proforma(invoice)
        assert ProformaDetector().detect(invoice) is None

    def test_flag_wins_over_later_signals(self):
        invoice = {"meta": {"isProforma": True}, "invoiceNo": "PI-1"}
        assert ProformaDetector().detect(invoice) == "metadata flag"

    def test_custom_prefixes(self):
        detector = ProformaDetector(prefixes=["est"])
        assert detector.is_proforma({"invoiceNo": "EST-1"})
        assert not detector.is_proforma({"invoiceNo": "PI-1"})


class TestGstCascade:

    def test_explicit_gst_split(self, proforma_invoice):
        result = classify_document(proforma_invoice)
        assert result.is_proforma
        assert result.total_tax_pct == D("18.00")
        assert result.cgst_pct == D("9.00")
        assert result.sgst_pct == D("9.00")
        assert result.title == PROFORMA_INVOICE

    def test_tax_invoice_has_zero_percentages(self, hotel_invoice):
        result = classify_document(hotel_invoice)
        assert not result.is_proforma
        assert (result.total_tax_pct, result.cgst_pct, result.sgst_pct) == (D("0.00"),) * 3

    def test_explicit_gst_beats_tax_total(self):
        ctx = GstContext(invoice={"taxTotal": 1200}, meta={"gst": {"cgst": 900, "sgst": 900}}, subtotal=D(10000))
        assert derive_total_tax_pct(ctx) == D("18.00")

    def test_tax_total(self):
        ctx = GstContext(invoice={"taxTotal": 1200}, meta={}, subtotal=D(10000))
        assert from_tax_total(ctx) == D("12.00")
        assert derive_total_tax_pct(ctx) == D("12.00")

    @pytest.mark.parametrize("item, expected", [
        ({"taxPct": 5}, "5.00"),
        ({"details": {"tax_rate": "12"}}, "12.00"),
        ({"taxPct": 1800}, "18.00"),
        ({"tax": 500}, "5.00"),
    ])
    def test_first_item(self, item, expected):
        ctx = GstContext(invoice={}, meta={}, subtotal=D(10000), first_item=item)
        assert from_first_item(ctx) == D(expected)

    def test_grand_total(self):
        ctx = GstContext(invoice={"grandTotal": 11900, "serviceCharges": 100}, meta={}, subtotal=D(10000))
        assert from_grand_total(ctx) == D("18.00")

    def test_zero_subtotal_gives_zero(self):
        ctx = GstContext(invoice={"taxTotal": 1200}, meta={"gst": {"cgst": 1}}, subtotal=D(0))
        assert derive_total_tax_pct(ctx) == D("0.00")

    def test_first_item_through_classifier(self):
        invoice = {"invoiceNo": "QT-1", "serviceType": "FLIGHTS", "items": [{"fare": 10000, "taxPct": 5}]}
        result = DocumentClassifier().classify(invoice)
        assert (result.total_tax_pct, result.cgst_pct, result.sgst_pct) == (D("5.00"), D("2.50"), D("2.50"))

    def test_uneven_share(self):
        classifier = DocumentClassifier(cgst_share="0.6")
        assert classifier.split(D("18.00")) == (D("10.80"), D("7.20"))


class TestGstAmounts:

    def test_split_amounts(self):
        classification = DocumentClassification(True, D(18), D(9), D(9))
        amounts = split_gst_amounts(classification, 10000, [6000, 4000])
        assert amounts.lines == [(D("540.00"), D("540.00")), (D("360.00"), D("360.00"))]
        assert amounts.cgst_total == D("900.00")
        assert amounts.sgst_total == D("900.00")
        assert amounts.grand_total == D("11800.00")

    def test_classification_dict(self):
        classification = DocumentClassification(True, D("18.00"), D("9.00"), D("9.00"))
        assert classification.to_dict() == {
            "isProforma": True, "totalTaxPct": D("18.00"), "cgstPct": D("9.00"), "sgstPct": D("9.00"),
        }
        assert '"cgstPct": "9.00"' in classification.to_json()


class TestAmountInWords:

    @pytest.mark.parametrize("amount, words", [
        (120000, "One Lakh Twenty Thousand Rupees Only"),
        (0, "Zero Rupees Only"),
        (105, "One Hundred Five Rupees Only"),
        ("12,34,567.89", "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Rupees Only"),
        (1000000000, "One Hundred Crore Rupees Only"),
        ("abc", "Zero Rupees Only"),
    ])
    def test_indian_numbering(self, amount, words):
        assert amount_in_words(amount) == words

    def test_currency_word(self):
        assert amount_in_words(19, currency_word="Dollars") == "Nineteen Dollars Only"
