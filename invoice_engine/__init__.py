"""
Invoice Engine - Travel-Agency Invoice Computation Package.

Turns heterogeneous, inconsistently-shaped invoice line items into
trustworthy monetary figures, classifies documents (Tax Invoice vs
Proforma) and reconciles totals for persistence, tabular export and
document rendering.

Modules:
    - normalization: key matching, field resolution, amounts, service types
    - computation: line amounts, creation totals, reconciliation
    - documents: proforma detection, GST split, amount in words
    - export: CSV and XLSX exports of reconciled invoices
    - utils: logging, exceptions, helpers

Architecture:
    Line items → Resolver → Classifier → Calculator → Reconciliator
                                                         ↓
                                     Document Classifier & GST Splitter
"""

__version__ = "1.0.0"

__all__ = [
    'normalization',
    'computation',
    'documents',
    'export',
    'utils',
]
