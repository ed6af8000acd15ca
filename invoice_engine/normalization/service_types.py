"""
Canonical Service-Type Classification.

Maps free-text and enum service-type labels ("FLIGHTS", "Air Ticket",
"Gift_Items", "Package Tour", ...) to one of nine fixed categories.

The mapping is an ordered table of ``(predicate, category)`` rules,
evaluated top to bottom; the first match wins. All exact-alias rules
come before the prefix/substring heuristics, and the heuristics keep a
fixed category order, so overlapping inputs such as ``"hotelpackage"``
(Hotel) or ``"packagetour"`` (Holiday) resolve predictably.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from invoice_engine.utils.logger import get_logger
from .fields import FieldResolver, default_resolver, normalize_key

logger = get_logger(__name__)


class ServiceCategory(str, Enum):
    """Closed set of service categories used for all computation."""

    FLIGHT = "Flight"
    HOTEL = "Hotel"
    HOLIDAY = "Holiday"
    VISA = "Visa"
    MICE = "MICE"
    STATIONERY = "Stationery"
    GIFT_ITEMS = "GiftItems"
    GOODIES = "Goodies"
    OTHER = "Other"

    @property
    def legacy_code(self) -> str:
        """Upper-case code stored by older records (``FLIGHTS``, ``GIFT_ITEMS``...)."""
        return LEGACY_CODES[self]

    @property
    def label(self) -> str:
        """Human label, also used as the spreadsheet sheet name."""
        return DISPLAY_LABELS[self]


LEGACY_CODES = {
    ServiceCategory.FLIGHT: "FLIGHTS",
    ServiceCategory.HOTEL: "HOTELS",
    ServiceCategory.HOLIDAY: "HOLIDAYS",
    ServiceCategory.VISA: "VISAS",
    ServiceCategory.MICE: "MICE",
    ServiceCategory.STATIONERY: "STATIONERY",
    ServiceCategory.GIFT_ITEMS: "GIFT_ITEMS",
    ServiceCategory.GOODIES: "GOODIES",
    ServiceCategory.OTHER: "OTHER",
}

DISPLAY_LABELS = {
    ServiceCategory.FLIGHT: "Flight",
    ServiceCategory.HOTEL: "Hotel",
    ServiceCategory.HOLIDAY: "Holiday",
    ServiceCategory.VISA: "Visa",
    ServiceCategory.MICE: "MICE",
    ServiceCategory.STATIONERY: "Stationery",
    ServiceCategory.GIFT_ITEMS: "Gift Items",
    ServiceCategory.GOODIES: "Goodies",
    ServiceCategory.OTHER: "Others",
}

# Fields on a line item that may carry its own service type.
SERVICE_TYPE_ALIASES = ("serviceType", "type", "category", "svcType")


# =============================================================================
# PREDICATES
# =============================================================================

@dataclass(frozen=True)
class Exact:
    """Normalized key equals one of the aliases."""
    aliases: Tuple[str, ...]

    def matches(self, key: str) -> bool:
        return key in {normalize_key(a) for a in self.aliases}


@dataclass(frozen=True)
class StartsWith:
    prefixes: Tuple[str, ...]

    def matches(self, key: str) -> bool:
        return any(key.startswith(p) for p in self.prefixes)


@dataclass(frozen=True)
class Contains:
    fragments: Tuple[str, ...]

    def matches(self, key: str) -> bool:
        return any(f in key for f in self.fragments)


C = ServiceCategory

CLASSIFICATION_RULES = (
    # exact aliases, including legacy codes
    (Exact(("flight", "flights", "air", "airticket", "ticket")), C.FLIGHT),
    (Exact(("hotel", "hotels", "stay")), C.HOTEL),
    (Exact(("holiday", "holidays", "tour", "package", "packages")), C.HOLIDAY),
    (Exact(("visa", "visas")), C.VISA),
    (Exact(("mice", "conference", "event", "meeting")), C.MICE),
    (Exact(("stationary", "stationery")), C.STATIONERY),
    (Exact(("gift", "gifts", "giftitems", "gift_items")), C.GIFT_ITEMS),
    (Exact(("goodies", "goodie")), C.GOODIES),
    (Exact(("other", "others", "misc", "miscellaneous")), C.OTHER),
    # heuristics
    (StartsWith(("flight", "air")), C.FLIGHT),
    (StartsWith(("hotel",)), C.HOTEL),
    (Contains(("stay",)), C.HOTEL),
    (StartsWith(("holiday",)), C.HOLIDAY),
    (Contains(("tour", "package")), C.HOLIDAY),
    (StartsWith(("visa",)), C.VISA),
    (StartsWith(("mice",)), C.MICE),
    (Contains(("conference", "event", "meeting")), C.MICE),
    (StartsWith(("stationary", "stationery")), C.STATIONERY),
    (Contains(("gift",)), C.GIFT_ITEMS),
    (Contains(("goodie",)), C.GOODIES),
)


def classify_service_type(raw: Any) -> ServiceCategory:
    """
    Classify any label into a ServiceCategory. Total and deterministic.

    Example:
        >>> classify_service_type("FLIGHTS")
        <ServiceCategory.FLIGHT: 'Flight'>
        >>> classify_service_type("Package Tour")
        <ServiceCategory.HOLIDAY: 'Holiday'>
        >>> classify_service_type(None)
        <ServiceCategory.OTHER: 'Other'>
    """
    if isinstance(raw, ServiceCategory):
        return raw

    key = normalize_key(raw)
    if key:
        for predicate, category in CLASSIFICATION_RULES:
            if predicate.matches(key):
                return category

    return ServiceCategory.OTHER


def resolve_item_category(
    item: Any,
    default: Any = None,
    aliases: Sequence[str] = SERVICE_TYPE_ALIASES,
    resolver: Optional[FieldResolver] = None
) -> ServiceCategory:
    """
    Category of one line item.

    Each alias that resolves on the item is classified in turn and the
    first non-Other result wins. Flight items use ``type`` for the trip
    kind ("One-way"), which must not hide the invoice's service type, so
    when no alias gives a concrete category the ``default`` (normally the
    invoice header's service type) is classified instead.
    """
    resolver = resolver or default_resolver()

    for alias in aliases:
        value = resolver.resolve(item, [alias], None)
        if value is None:
            continue
        category = classify_service_type(value)
        if category is not ServiceCategory.OTHER:
            return category

    category = classify_service_type(default)
    logger.debug(f"Line item category from default '{default}': {category.value}")
    return category
