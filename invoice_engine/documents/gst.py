"""
GST Percentage Derivation and CGST/SGST Split.

For proforma documents the combined tax rate is derived through a
cascade of attempts, each used only when the previous ones produced
nothing:

    1. explicit CGST/SGST amounts in metadata, over the subtotal
    2. the invoice's stored tax total, over the subtotal
    3. the first line item's tax percentage (values above 100 are
       treated as amounts), or its absolute tax amount
    4. grand total - subtotal - service charges, over the subtotal
    5. zero

The combined rate is then split into CGST and SGST (evenly by default).
Inter-state IGST is not handled.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, List, Optional, Sequence, Tuple

from config import get_config
from invoice_engine.computation.totals import TotalsReconciler
from invoice_engine.normalization.amounts import ZERO, money, percent_of, round2, to_number
from invoice_engine.normalization.fields import FieldResolver, default_resolver, parse_json_maybe
from invoice_engine.utils.logger import get_logger
from .classifier import (
    PROFORMA_INVOICE,
    TAX_INVOICE,
    ProformaDetector,
    invoice_metadata,
)

logger = get_logger(__name__)

DEFAULT_CGST_SHARE = Decimal("0.5")
HUNDRED = Decimal(100)

ITEM_TAX_PCT_ALIASES = ("taxPct", "taxPercent", "tax_rate", "taxRate")
ITEM_TAX_AMOUNT_ALIASES = ("tax", "taxAmt", "taxAmount")
HEADER_TAX_ALIASES = ("taxTotal", "taxAmt", "tax_total", "tax")
HEADER_SERVICE_ALIASES = ("serviceCharges", "svcAmt", "serviceCharge", "service_total")
HEADER_GRAND_ALIASES = ("grandTotal", "total", "grand_total")

_top_level = FieldResolver(containers=())


@dataclass(frozen=True)
class DocumentClassification:
    """
    Document kind and tax split for rendering.

    Attributes:
        is_proforma: True for a proforma, False for a tax invoice.
        total_tax_pct: Combined tax rate in percent.
        cgst_pct: Central share of the rate.
        sgst_pct: State share of the rate.
    """
    is_proforma: bool
    total_tax_pct: Decimal
    cgst_pct: Decimal
    sgst_pct: Decimal

    @property
    def title(self) -> str:
        return PROFORMA_INVOICE if self.is_proforma else TAX_INVOICE

    def to_dict(self) -> dict:
        return {
            'isProforma': self.is_proforma,
            'totalTaxPct': self.total_tax_pct,
            'cgstPct': self.cgst_pct,
            'sgstPct': self.sgst_pct,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


@dataclass
class GstContext:
    """Inputs shared by every derivation attempt."""
    invoice: Any
    meta: dict
    subtotal: Decimal
    first_item: Any = None


@dataclass
class GstAmounts:
    """
    CGST/SGST amounts for a proforma.

    Attributes:
        lines: (cgst, sgst) per line base, in input order.
        cgst_total: subtotal x cgst_pct / 100.
        sgst_total: subtotal x sgst_pct / 100.
        grand_total: subtotal + cgst_total + sgst_total.
    """
    lines: List[Tuple[Decimal, Decimal]] = field(default_factory=list)
    cgst_total: Decimal = ZERO
    sgst_total: Decimal = ZERO
    grand_total: Decimal = ZERO


# =============================================================================
# DERIVATION ATTEMPTS
# =============================================================================

def from_explicit_gst(ctx: GstContext) -> Optional[Decimal]:
    gst = parse_json_maybe(_top_level.resolve(ctx.meta, ["gst"], None)) or {}
    cgst = _top_level.number(gst, ["cgst"])
    sgst = _top_level.number(gst, ["sgst"])
    if ctx.subtotal > 0 and (cgst or sgst):
        return percent_of(cgst + sgst, ctx.subtotal)
    return None


def from_tax_total(ctx: GstContext) -> Optional[Decimal]:
    tax_total = _top_level.number(ctx.invoice, HEADER_TAX_ALIASES)
    if ctx.subtotal > 0 and tax_total > 0:
        return percent_of(tax_total, ctx.subtotal)
    return None


def from_first_item(ctx: GstContext) -> Optional[Decimal]:
    if ctx.first_item is None:
        return None

    resolver = default_resolver()
    raw_pct = resolver.number(ctx.first_item, ITEM_TAX_PCT_ALIASES)
    if 0 < raw_pct <= 100:
        return round2(raw_pct)
    if raw_pct > 100 and ctx.subtotal > 0:
        # a "percentage" above 100 is really an amount
        return percent_of(raw_pct, ctx.subtotal)

    raw_amount = resolver.number(ctx.first_item, ITEM_TAX_AMOUNT_ALIASES)
    if raw_amount > 0 and ctx.subtotal > 0:
        return percent_of(raw_amount, ctx.subtotal)
    return None


def from_grand_total(ctx: GstContext) -> Optional[Decimal]:
    if ctx.subtotal <= 0:
        return None
    grand = _top_level.number(ctx.invoice, HEADER_GRAND_ALIASES)
    service = _top_level.number(ctx.invoice, HEADER_SERVICE_ALIASES)
    approx_tax = max(grand - ctx.subtotal - service, ZERO)
    return percent_of(approx_tax, ctx.subtotal)


GST_ATTEMPTS: Sequence[Callable[[GstContext], Optional[Decimal]]] = (
    from_explicit_gst,
    from_tax_total,
    from_first_item,
    from_grand_total,
)


def derive_total_tax_pct(ctx: GstContext) -> Decimal:
    """First attempt that yields a value, else zero."""
    for attempt in GST_ATTEMPTS:
        value = attempt(ctx)
        if value is not None:
            logger.debug(f"Total tax % {value} via {attempt.__name__}")
            return value
    return round2(ZERO)


# =============================================================================
# CLASSIFIER
# =============================================================================

class DocumentClassifier:
    """
    Builds a DocumentClassification for a stored invoice.

    Attributes:
        detector: ProformaDetector.
        reconciler: TotalsReconciler used to obtain the subtotal.
        cgst_share: Fraction of the combined rate assigned to CGST.

    Example:
        >>> classifier = DocumentClassifier()
        >>> result = classifier.classify(
        ...     {"invoiceNo": "PI-001", "subtotal": 10000,
        ...      "meta": {"gst": {"cgst": 900, "sgst": 900}}})
        >>> result.cgst_pct, result.sgst_pct
        (Decimal('9.00'), Decimal('9.00'))
    """

    def __init__(
        self,
        detector: Optional[ProformaDetector] = None,
        reconciler: Optional[TotalsReconciler] = None,
        cgst_share: Any = None
    ) -> None:
        if cgst_share is None:
            cgst_share = get_config("engine.gst.cgst_share", DEFAULT_CGST_SHARE)
        self.cgst_share = to_number(cgst_share, DEFAULT_CGST_SHARE)
        self.detector = detector or ProformaDetector()
        self.reconciler = reconciler or TotalsReconciler()

    def split(self, total_tax_pct: Decimal) -> Tuple[Decimal, Decimal]:
        """(cgst_pct, sgst_pct), each rounded to 2 dp."""
        cgst = round2(total_tax_pct * self.cgst_share)
        sgst = round2(total_tax_pct * (1 - self.cgst_share))
        return cgst, sgst

    def classify(
        self,
        invoice: Any,
        line_items: Any = None,
        subtotal: Any = None
    ) -> DocumentClassification:
        """
        Classify ``invoice`` and, for proformas, derive its tax split.

        Args:
            invoice: Stored invoice record.
            line_items: Line items; defaults to items stored on the invoice.
            subtotal: Known subtotal; reconciled from the invoice when None.

        Returns:
            DocumentClassification. Tax invoices carry zero percentages.
        """
        if not self.detector.is_proforma(invoice):
            zero = round2(ZERO)
            return DocumentClassification(False, zero, zero, zero)

        items = self.reconciler.line_items(invoice, line_items)
        if subtotal is None:
            subtotal = self.reconciler.reconcile(invoice, items).subtotal

        ctx = GstContext(
            invoice=invoice,
            meta=invoice_metadata(invoice),
            subtotal=money(subtotal),
            first_item=items[0] if items else None,
        )
        total_pct = derive_total_tax_pct(ctx)
        cgst_pct, sgst_pct = self.split(total_pct)

        return DocumentClassification(True, total_pct, cgst_pct, sgst_pct)


def classify_document(invoice: Any, line_items: Any = None, subtotal: Any = None) -> DocumentClassification:
    """Module-level shortcut for :meth:`DocumentClassifier.classify`."""
    return DocumentClassifier().classify(invoice, line_items, subtotal)


def split_gst_amounts(
    classification: DocumentClassification,
    subtotal: Any,
    line_bases: Sequence[Any] = ()
) -> GstAmounts:
    """
    Apply the CGST/SGST percentages to each line base and to the subtotal.

    Example:
        >>> c = DocumentClassification(True, Decimal(18), Decimal(9), Decimal(9))
        >>> split_gst_amounts(c, 10000).grand_total
        Decimal('11800.00')
    """
    subtotal = money(subtotal)

    def share(base: Any, pct: Decimal) -> Decimal:
        return round2(money(base) * pct / HUNDRED)

    amounts = GstAmounts(
        lines=[(share(b, classification.cgst_pct), share(b, classification.sgst_pct)) for b in line_bases],
        cgst_total=share(subtotal, classification.cgst_pct),
        sgst_total=share(subtotal, classification.sgst_pct),
    )
    amounts.grand_total = subtotal + amounts.cgst_total + amounts.sgst_total
    return amounts
