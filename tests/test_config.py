"""Tests for YAML configuration loading and override merging."""

from decimal import Decimal

import pytest

from config import ConfigurationManager, get_config
from invoice_engine.computation.totals import TotalsReconciler
from invoice_engine.documents.classifier import ProformaDetector
from invoice_engine.documents.gst import DocumentClassifier


def test_bundled_defaults():
    assert get_config("engine.reconciliation.tolerance") == 0.5
    assert get_config("engine.proforma.number_prefixes") == ["qt", "qtn", "quo", "pi", "pfi", "pf"]
    assert get_config("missing.key", "fallback") == "fallback"


def test_partial_override_is_merged(tmp_path):
    override = tmp_path / "custom.yaml"
    override.write_text(
        "engine:\n"
        "  reconciliation:\n"
        "    tolerance: 2\n"
        "  proforma:\n"
        "    number_prefixes: [est]\n",
        encoding="utf-8",
    )
    ConfigurationManager.reset()
    ConfigurationManager(str(override))

    assert get_config("engine.reconciliation.tolerance") == 2
    assert get_config("engine.gst.cgst_share") == 0.5
    assert TotalsReconciler().tolerance == Decimal(2)
    assert ProformaDetector().is_proforma({"invoiceNo": "EST-9"})
    assert not ProformaDetector().is_proforma({"invoiceNo": "PI-9"})


def test_cgst_share_from_config(tmp_path):
    override = tmp_path / "share.yaml"
    override.write_text("engine:\n  gst:\n    cgst_share: 0.6\n", encoding="utf-8")
    ConfigurationManager.reset()
    ConfigurationManager(str(override))

    assert DocumentClassifier().split(Decimal("18.00")) == (Decimal("10.80"), Decimal("7.20"))


def test_missing_override_file(tmp_path):
    ConfigurationManager.reset()
    with pytest.raises(FileNotFoundError):
        ConfigurationManager(str(tmp_path / "absent.yaml"))
