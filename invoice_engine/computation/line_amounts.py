"""
Line Amount Calculator.

Computes base, tax, service charge and total for a single line item.

Each service category has a base formula (pre-tax, pre-service amount).
Tax and service charge follow the same rule everywhere: a positive
absolute amount is used verbatim, otherwise a positive percentage is
applied to the base, otherwise the component is zero. Components are
rounded half-up to 2 dp independently and then summed.

Missing or non-numeric inputs fall back to their defaults (1 for
quantity, rooms and nights, 0 for everything else).
"""

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from invoice_engine.normalization.amounts import ZERO, round2
from invoice_engine.normalization.fields import FieldResolver, default_resolver
from invoice_engine.normalization.service_types import ServiceCategory, classify_service_type
from invoice_engine.utils.logger import get_logger

logger = get_logger(__name__)

ONE = Decimal(1)
HUNDRED = Decimal(100)

# Field name -> accepted spellings, in priority order.
FIELD_ALIASES = {
    # flights
    'fare': ('fare', 'baseFare', 'basicFare', 'base_amount', 'base'),
    'otTax': ('otTax', 'airportTax'),
    'k3gst': ('k3gst', 'k3Tax'),
    'yqTax': ('yqTax', 'yq'),
    'yrTax': ('yrTax', 'yr'),
    'bagCharges': ('bagCharges', 'baggageCharges'),
    'mealCharges': ('mealCharges',),
    'seatCharges': ('seatCharges',),
    'spServiceCharges': ('spServiceCharges', 'specialServiceCharges'),
    'globalPrCharges': ('globalPrCharges', 'globalHandlingCharges'),
    # hotels
    'rooms': ('rooms', 'noOfRooms', 'roomCount', 'room'),
    'nights': ('nights', 'noOfNights', 'stayNights', 'night'),
    'rate': ('rate', 'roomRate', 'unitPrice', 'price'),
    'discount': ('discount', 'disc'),
    # holidays
    'paxCount': ('paxCount', 'noOfPax', 'paxNo'),
    'basePrice': ('basePrice', 'pricePerPax'),
    # visas
    'processingFee': ('processingFee', 'visaFee'),
    'embassyFee': ('embassyFee', 'consulateFee'),
    # mice
    'baseCost': ('baseCost', 'cost'),
    'additionalCharges': ('additionalCharges',),
    # quantity-priced goods
    'quantity': ('quantity', 'qty', 'units'),
    'unitPrice': ('unitPrice', 'price', 'rate'),
    'additionalFees': ('additionalFees', 'additionalFee'),
    'customizationCharges': ('customizationCharges', 'customisationCharges'),
    'brandingCharges': ('brandingCharges',),
    # tax / service charge
    'tax': ('tax', 'taxAmt', 'taxAmount', 'taxTotal'),
    'taxPct': ('taxPct', 'taxPercent', 'tax_percentage', 'taxRate', 'tax_rate'),
    'serviceCharges': ('serviceCharges', 'serviceCharge', 'svcAmt', 'serviceAmount'),
    'servicePct': ('servicePct', 'svcPct', 'servicePercent', 'service_percentage'),
}

FLIGHT_SURCHARGES = (
    'otTax', 'k3gst', 'yqTax', 'yrTax',
    'bagCharges', 'mealCharges', 'seatCharges', 'spServiceCharges', 'globalPrCharges',
)

# Category-specific extra charge added to quantity x unit price.
QUANTITY_EXTRAS = {
    ServiceCategory.STATIONERY: None,
    ServiceCategory.GIFT_ITEMS: 'customizationCharges',
    ServiceCategory.GOODIES: 'brandingCharges',
    ServiceCategory.OTHER: 'additionalFees',
}


@dataclass(frozen=True)
class LineAmounts:
    """
    Computed amounts for one line item.

    All values are Decimals rounded to 2 dp, and
    ``total == base + tax + service`` exactly.

    Attributes:
        base: Pre-tax, pre-service amount.
        tax: Tax component.
        service: Service charge component.
        total: Sum of the three rounded components.
    """
    base: Decimal
    tax: Decimal
    service: Decimal
    total: Decimal

    @classmethod
    def from_components(cls, base: Any, tax: Any, service: Any) -> 'LineAmounts':
        base_r, tax_r, service_r = round2(base), round2(tax), round2(service)
        return cls(base=base_r, tax=tax_r, service=service_r, total=base_r + tax_r + service_r)

    @classmethod
    def zero(cls) -> 'LineAmounts':
        return cls.from_components(ZERO, ZERO, ZERO)

    def to_dict(self) -> Dict[str, Decimal]:
        return {
            'base': self.base,
            'tax': self.tax,
            'service': self.service,
            'total': self.total,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


def absolute_or_percentage(absolute: Decimal, percentage: Decimal, base: Decimal) -> Decimal:
    """
    Positive absolute amount wins; else a positive percentage of base;
    else zero.

    Example:
        >>> absolute_or_percentage(Decimal(810), Decimal(18), Decimal(27000))
        Decimal('810')
        >>> absolute_or_percentage(ZERO, Decimal(18), Decimal(12000))
        Decimal('2160')
    """
    if absolute > 0:
        return absolute
    if percentage > 0:
        return percentage / HUNDRED * base
    return ZERO


class LineAmountCalculator:
    """
    Per-category line amount computation.

    Field values are read through a FieldResolver, so any alias spelling
    and any of the nested containers are accepted.

    Example:
        >>> calc = LineAmountCalculator()
        >>> calc.compute("HOTELS", {"rooms": 2, "nights": 3, "rate": 4500,
        ...                         "tax": 810, "serviceCharges": 200}).total
        Decimal('28010.00')
    """

    def __init__(self, resolver: Optional[FieldResolver] = None) -> None:
        self.resolver = resolver or default_resolver()
        self._base_formulas: Dict[ServiceCategory, Callable[[Any], Decimal]] = {
            ServiceCategory.FLIGHT: self._flight_base,
            ServiceCategory.HOTEL: self._hotel_base,
            ServiceCategory.HOLIDAY: self._holiday_base,
            ServiceCategory.VISA: self._visa_base,
            ServiceCategory.MICE: self._mice_base,
        }

    def field(self, fields: Any, name: str, default: Any = 0) -> Decimal:
        """Numeric value of a named field, resolved through its aliases."""
        return self.resolver.number(fields, FIELD_ALIASES[name], default)

    # -------------------------------------------------------------------------
    # base formulas
    # -------------------------------------------------------------------------

    def _flight_base(self, fields: Any) -> Decimal:
        surcharges = sum((self.field(fields, name) for name in FLIGHT_SURCHARGES), ZERO)
        return self.field(fields, 'fare') + surcharges

    def _hotel_base(self, fields: Any) -> Decimal:
        rooms = self.field(fields, 'rooms', ONE)
        nights = self.field(fields, 'nights', ONE)
        return rooms * nights * self.field(fields, 'rate') - self.field(fields, 'discount')

    def _holiday_base(self, fields: Any) -> Decimal:
        per_pax = self.field(fields, 'paxCount') * self.field(fields, 'basePrice')
        if per_pax != 0:
            return per_pax
        return (
            self.field(fields, 'quantity', ONE) * self.field(fields, 'unitPrice')
            + self.field(fields, 'additionalFees')
        )

    def _visa_base(self, fields: Any) -> Decimal:
        return self.field(fields, 'processingFee') + self.field(fields, 'embassyFee')

    def _mice_base(self, fields: Any) -> Decimal:
        return self.field(fields, 'baseCost') + self.field(fields, 'additionalCharges')

    def _quantity_base(self, category: ServiceCategory, fields: Any) -> Decimal:
        base = self.field(fields, 'quantity', ONE) * self.field(fields, 'unitPrice')
        extra = QUANTITY_EXTRAS.get(category)
        if extra:
            base += self.field(fields, extra)
        return base

    def base(self, category: Any, fields: Any) -> Decimal:
        """Unrounded base amount; negative results clamp to zero."""
        category = classify_service_type(category)
        formula = self._base_formulas.get(category)
        base = formula(fields) if formula else self._quantity_base(category, fields)
        return max(base, ZERO)

    # -------------------------------------------------------------------------
    # tax / service charge
    # -------------------------------------------------------------------------

    def tax(self, fields: Any, base: Decimal) -> Decimal:
        return absolute_or_percentage(
            self.field(fields, 'tax'), self.field(fields, 'taxPct'), base
        )

    def service(self, fields: Any, base: Decimal) -> Decimal:
        return absolute_or_percentage(
            self.field(fields, 'serviceCharges'), self.field(fields, 'servicePct'), base
        )

    def compute(self, category: Any, fields: Any) -> LineAmounts:
        """
        Compute LineAmounts for one line item.

        Args:
            category: ServiceCategory or any service-type label.
            fields: The line item (or its details mapping).

        Returns:
            LineAmounts with independently rounded components.
        """
        base = self.base(category, fields)
        amounts = LineAmounts.from_components(
            base, self.tax(fields, base), self.service(fields, base)
        )
        logger.debug(
            f"Line {classify_service_type(category).value}: base={amounts.base} "
            f"tax={amounts.tax} service={amounts.service} total={amounts.total}"
        )
        return amounts


_calculator: Optional[LineAmountCalculator] = None


def compute_line(category: Any, fields: Any) -> LineAmounts:
    """
    Module-level shortcut for :meth:`LineAmountCalculator.compute`.

    Example:
        >>> compute_line("Flight", {"fare": 12000, "taxPct": 18}).to_dict()
        {'base': Decimal('12000.00'), 'tax': Decimal('2160.00'),
         'service': Decimal('0.00'), 'total': Decimal('14160.00')}
    """
    global _calculator
    if _calculator is None:
        _calculator = LineAmountCalculator()
    return _calculator.compute(category, fields)
