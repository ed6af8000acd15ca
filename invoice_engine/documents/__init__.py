"""
Documents Module for the Invoice Engine.

This module provides functionality for:
    - Tax Invoice vs Proforma classification
    - Combined GST percentage derivation and CGST/SGST split
    - Amount in words for rendered documents
"""

from .classifier import PROFORMA_INVOICE, TAX_INVOICE, ProformaDetector, is_proforma
from .gst import (
    DocumentClassification,
    DocumentClassifier,
    GstAmounts,
    GstContext,
    classify_document,
    derive_total_tax_pct,
    split_gst_amounts,
)
from .words import amount_in_words

__all__ = [
    'PROFORMA_INVOICE',
    'TAX_INVOICE',
    'ProformaDetector',
    'is_proforma',
    'DocumentClassification',
    'DocumentClassifier',
    'GstAmounts',
    'GstContext',
    'classify_document',
    'derive_total_tax_pct',
    'split_gst_amounts',
    'amount_in_words',
]
