"""
Document Kind Classifier.

Decides whether a stored invoice is a Proforma (a price quotation issued
before the tax invoice) or a Tax Invoice. Signals are checked in order
and the first positive one wins:

    1. an explicit ``isProforma`` flag in the invoice metadata
    2. "proforma"/"performa" in status, document kind or doc type
       (top level, then metadata)
    3. the word "proforma"/"performa" inside the invoice number
    4. a known proforma prefix on the invoice number (QT-, PI/, PF_ ...)

No signal means Tax Invoice.
"""

import re
from typing import Any, Callable, List, Optional, Sequence, Tuple

from config import get_config
from invoice_engine.normalization.fields import FieldResolver, is_truthy, parse_json_maybe, to_text
from invoice_engine.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIXES = ("qt", "qtn", "quo", "pi", "pfi", "pf")

META_ALIASES = ("meta", "metadata", "signatureJson")
FLAG_ALIASES = ("isProforma",)
KIND_FIELDS = ("status", "documentKind", "docType")
NUMBER_ALIASES = ("invoiceNo", "invoiceNumber", "number")

KIND_PATTERN = re.compile(r"pro-?forma|per-?forma", re.IGNORECASE)
NUMBER_WORD_PATTERN = re.compile(r"\b(proforma|performa)\b", re.IGNORECASE)

TAX_INVOICE = "Tax Invoice"
PROFORMA_INVOICE = "Proforma Invoice"

_top_level = FieldResolver(containers=())


def invoice_metadata(invoice: Any) -> dict:
    """The invoice's metadata mapping (possibly stored as JSON), or {}."""
    meta = _top_level.resolve(invoice, META_ALIASES, None)
    return parse_json_maybe(meta) or {}


def invoice_number(invoice: Any) -> str:
    return to_text(_top_level.resolve(invoice, NUMBER_ALIASES, "")).strip()


class ProformaDetector:
    """
    Ordered proforma signal checks.

    Example:
        >>> detector = ProformaDetector()
        >>> detector.is_proforma({"invoiceNo": "PI-2024-007"})
        True
        >>> detector.detect({"invoiceNo": "INV-20240101-001", "status": "DRAFT"}) is None
        True
    """

    def __init__(self, prefixes: Optional[Sequence[str]] = None) -> None:
        if prefixes is None:
            prefixes = get_config("engine.proforma.number_prefixes", list(DEFAULT_PREFIXES))
        alternatives = "|".join(re.escape(p.lower()) for p in prefixes)
        self.prefix_pattern = re.compile(rf"^({alternatives})[-_/]", re.IGNORECASE)

        self.signals: List[Tuple[str, Callable[[Any, dict], bool]]] = [
            ("metadata flag", self._flag_signal),
            ("document kind", self._kind_signal),
            ("number word", self._number_word_signal),
            ("number prefix", self._number_prefix_signal),
        ]

    @staticmethod
    def _flag_signal(invoice: Any, meta: dict) -> bool:
        return is_truthy(_top_level.resolve(meta, FLAG_ALIASES, False))

    @staticmethod
    def _kind_signal(invoice: Any, meta: dict) -> bool:
        for source in (invoice, meta):
            for name in KIND_FIELDS:
                if KIND_PATTERN.search(to_text(_top_level.resolve(source, [name], ""))):
                    return True
        return False

    @staticmethod
    def _number_word_signal(invoice: Any, meta: dict) -> bool:
        return bool(NUMBER_WORD_PATTERN.search(invoice_number(invoice)))

    def _number_prefix_signal(self, invoice: Any, meta: dict) -> bool:
        return bool(self.prefix_pattern.match(invoice_number(invoice)))

    def detect(self, invoice: Any) -> Optional[str]:
        """Name of the first signal that marks ``invoice`` as proforma, or None."""
        meta = invoice_metadata(invoice)
        for name, signal in self.signals:
            if signal(invoice, meta):
                logger.debug(f"Invoice '{invoice_number(invoice)}' is proforma ({name})")
                return name
        return None

    def is_proforma(self, invoice: Any) -> bool:
        return self.detect(invoice) is not None


def is_proforma(invoice: Any) -> bool:
    """Module-level shortcut for :meth:`ProformaDetector.is_proforma`."""
    return ProformaDetector().is_proforma(invoice)
