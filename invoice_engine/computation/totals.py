"""
Invoice Totals Reconciliation.

Two flows produce invoice-level totals:

    - Creation: every line item is computed and the rounded components
      are summed (``summarize_new_invoice``). The result is what the
      persistence layer caches on the invoice header.
    - Read/export: the cached header totals may be stale, partial or
      stored under legacy names, and line items may be missing or
      stringified. ``TotalsReconciler`` recomputes line bases and
      reconciles them with the header into one trustworthy figure.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from config import get_config
from invoice_engine.normalization.amounts import ZERO, money, percent_of, round2, to_number
from invoice_engine.normalization.fields import FieldResolver, inline_items, parse_array_maybe, parse_json_maybe
from invoice_engine.normalization.service_types import resolve_item_category
from invoice_engine.utils.logger import get_logger
from .line_amounts import HUNDRED, LineAmountCalculator, LineAmounts

logger = get_logger(__name__)

DEFAULT_TOLERANCE = Decimal("0.5")

# Header fields under every name earlier schema versions used.
HEADER_ALIASES = {
    'subtotal': ('subtotal', 'subTotal', 'sub_total'),
    'taxAmt': ('taxAmt', 'taxTotal', 'tax_total', 'tax', 'taxAmount'),
    'svcAmt': ('svcAmt', 'serviceCharges', 'serviceCharge', 'service_total', 'serviceTotal'),
    'taxPct': ('taxPct', 'taxPercent', 'tax_percentage'),
    'svcPct': ('svcPct', 'servicePct', 'servicePercent', 'service_percentage'),
    'total': ('total', 'grandTotal', 'grand_total'),
    'serviceType': ('serviceType', 'type'),
}


@dataclass(frozen=True)
class InvoiceTotals:
    """
    Reconciled invoice totals.

    Attributes:
        subtotal: Sum of line bases, or the header subtotal as fallback.
        tax_pct: Stored or back-computed tax percentage; None when the
            subtotal is zero.
        tax_amt: Tax amount.
        svc_pct: Stored or back-computed service percentage, or None.
        svc_amt: Service charge amount.
        total: Grand total.
        subtotal_from_items: Sum of freshly computed line bases.
        consistent: False when header total and components disagreed
            beyond tolerance.
    """
    subtotal: Decimal
    tax_pct: Optional[Decimal]
    tax_amt: Decimal
    svc_pct: Optional[Decimal]
    svc_amt: Decimal
    total: Decimal
    subtotal_from_items: Decimal = ZERO
    consistent: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Export-facing keys; a missing percentage becomes ''."""
        return {
            'subtotal': self.subtotal,
            'taxPct': '' if self.tax_pct is None else self.tax_pct,
            'taxAmt': self.tax_amt,
            'svcPct': '' if self.svc_pct is None else self.svc_pct,
            'svcAmt': self.svc_amt,
            'total': self.total,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


@dataclass
class NewInvoiceSummary:
    """
    Totals computed when an invoice is created.

    Attributes:
        lines: LineAmounts per line item, in input order.
        subtotal: Sum of line bases.
        tax_total: Sum of line taxes.
        service_charges: Sum of line service charges.
        grand_total: subtotal + tax_total + service_charges.
    """
    lines: List[LineAmounts] = field(default_factory=list)
    subtotal: Decimal = ZERO
    tax_total: Decimal = ZERO
    service_charges: Decimal = ZERO
    grand_total: Decimal = ZERO

    @property
    def line_totals(self) -> List[Decimal]:
        return [line.total for line in self.lines]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': self.subtotal,
            'taxTotal': self.tax_total,
            'serviceCharges': self.service_charges,
            'grandTotal': self.grand_total,
            'lineTotals': self.line_totals,
        }


def summarize_new_invoice(
    service_type: Any,
    items: Sequence[Any],
    calculator: Optional[LineAmountCalculator] = None
) -> NewInvoiceSummary:
    """
    Compute per-line and invoice totals for a create-invoice request.

    Each item may carry its own service type; otherwise the invoice's
    ``service_type`` applies.

    Example:
        >>> summary = summarize_new_invoice("HOTELS", [
        ...     {"sNo": 1, "details": {"rooms": 2, "nights": 3, "rate": 4500}}])
        >>> summary.grand_total
        Decimal('27000.00')
    """
    calculator = calculator or LineAmountCalculator()
    summary = NewInvoiceSummary()

    for item in parse_array_maybe(items):
        category = resolve_item_category(item, service_type, resolver=calculator.resolver)
        summary.lines.append(calculator.compute(category, item))

    summary.subtotal = money(sum((line.base for line in summary.lines), ZERO))
    summary.tax_total = money(sum((line.tax for line in summary.lines), ZERO))
    summary.service_charges = money(sum((line.service for line in summary.lines), ZERO))
    summary.grand_total = summary.subtotal + summary.tax_total + summary.service_charges

    logger.info(
        f"New invoice: {len(summary.lines)} lines, grand total {summary.grand_total}"
    )
    return summary


class TotalsReconciler:
    """
    Reconciles stored header totals with freshly computed line sums.

    Steps:
        1. Sum line bases (each line classified, then computed).
        2. Subtotal is that sum when positive, else the header subtotal.
        3. Tax and service: stored positive amounts, else stored
           percentages applied to the subtotal, else zero.
        4. Total: stored positive grand total, else the component sum.
        5. When components and total differ by more than the tolerance,
           line-item truth wins: the line sum, or total - tax - service
           when there are no line amounts.
        6. Percentages are the stored ones, else back-computed from the
           amounts; omitted when the subtotal is zero.

    Attributes:
        tolerance: Allowed drift in currency units.
        calculator: LineAmountCalculator for the line items.
    """

    def __init__(
        self,
        tolerance: Any = None,
        calculator: Optional[LineAmountCalculator] = None
    ) -> None:
        if tolerance is None:
            tolerance = get_config("engine.reconciliation.tolerance", DEFAULT_TOLERANCE)
        self.tolerance = to_number(tolerance, DEFAULT_TOLERANCE)
        self.calculator = calculator or LineAmountCalculator()
        # header totals live on the record itself, never in nested containers
        self.header_resolver = FieldResolver(containers=())

        logger.debug(f"TotalsReconciler initialized (tolerance: {self.tolerance})")

    def header_number(self, header: Any, name: str, default: Any = 0) -> Optional[Decimal]:
        return self.header_resolver.number(header, HEADER_ALIASES[name], default)

    def line_items(self, header: Any, line_items: Any = None) -> List[Dict[str, Any]]:
        """Explicit items (list or JSON string), else items stored inline."""
        items = [i for i in map(parse_json_maybe, parse_array_maybe(line_items)) if i is not None]
        return items or inline_items(header)

    def subtotal_from_items(self, header: Any, items: Sequence[Any]) -> Decimal:
        default_type = self.header_resolver.resolve(header, HEADER_ALIASES['serviceType'], None)
        bases = []
        for item in items:
            category = resolve_item_category(item, default_type, resolver=self.calculator.resolver)
            bases.append(self.calculator.compute(category, item).base)
        return money(sum(bases, ZERO))

    def _component(self, header: Any, amount_key: str, pct_key: str, subtotal: Decimal) -> Decimal:
        amount = self.header_number(header, amount_key)
        if amount > 0:
            return money(amount)
        pct = self.header_number(header, pct_key)
        if pct > 0:
            return money(pct / HUNDRED * subtotal)
        return money(ZERO)

    def _percentage(self, header: Any, pct_key: str, amount: Decimal, subtotal: Decimal) -> Optional[Decimal]:
        stored = self.header_number(header, pct_key)
        if stored > 0:
            return round2(stored)
        return percent_of(amount, subtotal)

    def reconcile(self, header: Any, line_items: Any = None) -> InvoiceTotals:
        """
        Reconcile one invoice.

        Args:
            header: Stored invoice record (mapping or JSON string).
            line_items: Line items; when empty, items stored on the
                header itself are used.

        Returns:
            InvoiceTotals.
        """
        items = self.line_items(header, line_items)
        from_items = self.subtotal_from_items(header, items)

        subtotal = from_items if from_items > 0 else money(self.header_number(header, 'subtotal'))
        tax_amt = self._component(header, 'taxAmt', 'taxPct', subtotal)
        svc_amt = self._component(header, 'svcAmt', 'svcPct', subtotal)

        stored_total = self.header_number(header, 'total')
        total = money(stored_total) if stored_total > 0 else subtotal + tax_amt + svc_amt

        consistent = abs(subtotal + tax_amt + svc_amt - total) <= self.tolerance
        if not consistent:
            logger.warning(
                f"Header totals disagree beyond {self.tolerance}: "
                f"subtotal={subtotal} tax={tax_amt} service={svc_amt} total={total}"
            )
            if from_items > 0:
                subtotal = from_items
            else:
                subtotal = money(total - tax_amt - svc_amt)

        return InvoiceTotals(
            subtotal=subtotal,
            tax_pct=self._percentage(header, 'taxPct', tax_amt, subtotal),
            tax_amt=tax_amt,
            svc_pct=self._percentage(header, 'svcPct', svc_amt, subtotal),
            svc_amt=svc_amt,
            total=total,
            subtotal_from_items=from_items,
            consistent=consistent,
        )


def reconcile_totals(header: Any, line_items: Any = None) -> InvoiceTotals:
    """
    Module-level shortcut for :meth:`TotalsReconciler.reconcile`.

    Example:
        >>> reconcile_totals({"subtotal": 1000, "taxAmt": 180}).total
        Decimal('1180.00')
    """
    return TotalsReconciler().reconcile(header, line_items)
