"""
Computation Module for the Invoice Engine.

This module provides functionality for:
    - Per-category line amount computation
    - Creation-time invoice totals
    - Read-time reconciliation of stored header totals with line sums
"""

from .line_amounts import LineAmountCalculator, LineAmounts, absolute_or_percentage, compute_line
from .totals import (
    InvoiceTotals,
    NewInvoiceSummary,
    TotalsReconciler,
    reconcile_totals,
    summarize_new_invoice,
)

__all__ = [
    'LineAmountCalculator',
    'LineAmounts',
    'absolute_or_percentage',
    'compute_line',
    'InvoiceTotals',
    'NewInvoiceSummary',
    'TotalsReconciler',
    'reconcile_totals',
    'summarize_new_invoice',
]
