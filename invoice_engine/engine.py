"""
Invoice Engine Module.

This module provides the InvoiceEngine class that coordinates the
normalization and computation components for the two consumers of the
engine: invoice creation and read-time views (exports, documents).

Operations:
    - Compute line amounts and totals for a new invoice
    - Reconcile stored invoices into a consistent view
    - Classify the document kind and derive the GST split
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from invoice_engine.computation.line_amounts import LineAmountCalculator, LineAmounts
from invoice_engine.computation.totals import (
    InvoiceTotals,
    NewInvoiceSummary,
    TotalsReconciler,
    summarize_new_invoice,
)
from invoice_engine.documents.gst import (
    DocumentClassification,
    DocumentClassifier,
    GstAmounts,
    split_gst_amounts,
)
from invoice_engine.normalization.service_types import ServiceCategory, resolve_item_category
from invoice_engine.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class InvoiceView:
    """
    Consistent read-time view of one stored invoice.

    Attributes:
        invoice: The stored invoice record.
        items: Line items as mappings.
        categories: Category per line item.
        lines: LineAmounts per line item.
        totals: Reconciled invoice totals.
        classification: Document kind and tax split.
        gst: CGST/SGST amounts (proforma only).
    """
    invoice: Any
    items: List[Dict[str, Any]] = field(default_factory=list)
    categories: List[ServiceCategory] = field(default_factory=list)
    lines: List[LineAmounts] = field(default_factory=list)
    totals: Optional[InvoiceTotals] = None
    classification: Optional[DocumentClassification] = None
    gst: Optional[GstAmounts] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totals': self.totals.to_dict() if self.totals else {},
            'classification': self.classification.to_dict() if self.classification else {},
            'lines': [
                dict(category=c.value, **line.to_dict())
                for c, line in zip(self.categories, self.lines)
            ],
        }


class InvoiceEngine:
    """
    Facade over the calculator, reconciler and document classifier.

    Example:
        >>> engine = InvoiceEngine()
        >>> summary = engine.create("VISAS", [{"details": {"processingFee": 5000,
        ...                                                "embassyFee": 1200}}])
        >>> summary.grand_total
        Decimal('6200.00')
        >>> view = engine.view(stored_invoice)
        >>> view.totals.total, view.classification.title
    """

    def __init__(
        self,
        calculator: Optional[LineAmountCalculator] = None,
        reconciler: Optional[TotalsReconciler] = None,
        classifier: Optional[DocumentClassifier] = None
    ) -> None:
        self.calculator = calculator or LineAmountCalculator()
        self.reconciler = reconciler or TotalsReconciler(calculator=self.calculator)
        self.classifier = classifier or DocumentClassifier(reconciler=self.reconciler)

        logger.info("InvoiceEngine initialized")

    def create(self, service_type: Any, items: Any) -> NewInvoiceSummary:
        """Line totals and header totals for a create-invoice request."""
        return summarize_new_invoice(service_type, items, calculator=self.calculator)

    def view(self, invoice: Any, line_items: Any = None) -> InvoiceView:
        """
        Build the consistent view of a stored invoice.

        Args:
            invoice: Stored invoice header record.
            line_items: Line items fetched separately; when empty, items
                stored inline on the invoice are used.

        Returns:
            InvoiceView.
        """
        view = InvoiceView(invoice=invoice)
        view.items = self.reconciler.line_items(invoice, line_items)

        header_type = self.reconciler.header_resolver.resolve(invoice, ['serviceType', 'type'], None)
        for item in view.items:
            category = resolve_item_category(item, header_type, resolver=self.calculator.resolver)
            view.categories.append(category)
            view.lines.append(self.calculator.compute(category, item))

        view.totals = self.reconciler.reconcile(invoice, view.items)
        view.classification = self.classifier.classify(
            invoice, view.items, subtotal=view.totals.subtotal
        )

        if view.classification.is_proforma:
            view.gst = split_gst_amounts(
                view.classification,
                view.totals.subtotal,
                [line.base for line in view.lines]
            )

        self._log_view_summary(view)
        return view

    def _log_view_summary(self, view: InvoiceView) -> None:
        logger.debug(
            f"{view.classification.title}: {len(view.items)} lines, "
            f"subtotal={view.totals.subtotal}, total={view.totals.total}"
        )
        if not view.totals.consistent:
            logger.info("Header totals were overridden by line-item amounts")
