"""
Export Row Builders.

Flattens an InvoiceView into rows for the tabular exporters: one
invoice summary per invoice, and one row per line item carrying the
summary columns, generic line columns, the line's computed amounts and
category-specific descriptive columns (flight and hotel).
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from config import get_config
from invoice_engine.computation.line_amounts import FIELD_ALIASES, LineAmounts
from invoice_engine.documents.words import amount_in_words
from invoice_engine.engine import InvoiceView
from invoice_engine.normalization.amounts import percent_of
from invoice_engine.normalization.fields import FieldResolver, default_resolver, parse_json_maybe, to_text
from invoice_engine.normalization.service_types import ServiceCategory
from invoice_engine.utils.logger import get_logger

logger = get_logger(__name__)

INVOICE_COLUMNS = [
    'invoiceId', 'invoiceNo', 'documentKind', 'issueDate', 'dueDate', 'status',
    'serviceType', 'currency', 'billToName', 'billToCompany', 'billToEmail',
    'billToPhone', 'billToTaxId', 'paymentTerms', 'notes',
    'subtotal', 'taxPct', 'taxAmt', 'svcPct', 'svcAmt', 'total', 'amountInWords',
]

LINE_COLUMNS = [
    'lineNo', 'category', 'description', 'qty', 'unitPrice', 'discount',
    'lineBase', 'lineTaxPct', 'lineTaxAmt', 'lineSvcPct', 'lineSvcAmt',
    'lineTotal', 'itemCurrency',
]

FLIGHT_COLUMNS = ['passengerName', 'from', 'to', 'airline', 'pnr', 'baseFare']
HOTEL_COLUMNS = ['guest', 'hotel', 'roomType', 'rooms', 'nights', 'rate']

HEADER_ALIASES = {
    'invoiceId': ('id', '_id', 'invoiceId'),
    'invoiceNo': ('invoiceNo', 'invoiceNumber', 'number'),
    'issueDate': ('issueDate', 'invoiceDate', 'date'),
    'dueDate': ('dueDate', 'paymentDueDate'),
    'status': ('status',),
    'serviceType': ('serviceType', 'type'),
    'currency': ('currency',),
    'billToName': ('billToName', 'customerName', 'clientName'),
    'billToCompany': ('billToCompany', 'company'),
    'billToEmail': ('billToEmail', 'email'),
    'billToPhone': ('billToPhone', 'phone'),
    'billToTaxId': ('billToTaxId', 'gst', 'gstin', 'taxId', 'vatNo'),
    'paymentTerms': ('paymentTerms', 'terms'),
    'notes': ('notes', 'remarks'),
}

# Fallbacks looked up inside the client / billTo record.
CLIENT_RECORDS = ('client', 'billTo', 'customer')
CLIENT_ALIASES = {
    'billToName': ('name',),
    'billToCompany': ('company',),
    'billToEmail': ('email',),
    'billToPhone': ('phone',),
    'billToTaxId': ('gstin', 'gst', 'taxId'),
}

ITEM_ALIASES = {
    'description': ('description', 'title', 'name', 'serviceDescription', 'itemName', 'packageName'),
    'currency': ('currency', 'curr'),
    'passengerName': ('passengerName', 'passenger', 'paxName', 'pax', 'traveller', 'traveler', 'guest'),
    'from': ('from', 'origin', 'fromCity', 'fromCode', 'fromAirport', 'originCity', 'originCode', 'fromCityCode'),
    'to': ('to', 'destination', 'toCity', 'toCode', 'toAirport', 'destinationCity', 'destinationCode', 'toCityCode'),
    'route': ('originDestination', 'sector', 'route', 'fromTo'),
    'airline': ('airline', 'carrier', 'airlineName', 'airlineCode', 'carrierCode', 'operator'),
    'pnr': ('pnr', 'recordLocator', 'bookingRef', 'bookingReference', 'pnrNo', 'pnrNumber', 'locator'),
    'guest': ('guest', 'guestName', 'customerName', 'passenger', 'paxName'),
    'hotel': ('hotel', 'hotelName', 'property', 'hotel_name'),
    'roomType': ('roomType', 'room_type', 'roomCategory'),
}

_IATA_PAIR = re.compile(r"\b([A-Za-z]{3})\s*[-/>]+\s*([A-Za-z]{3})\b")
_IATA_CODE = re.compile(r"^[A-Za-z]{3}$")

_header = FieldResolver(containers=())


def format_date(value: Any) -> str:
    """
    ISO date (YYYY-MM-DD) for any parseable date value, else ''.

    Example:
        >>> format_date("2024-03-05T10:00:00Z")
        '2024-03-05'
        >>> format_date("not a date")
        ''
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = to_text(value).strip()
    if not text:
        return ""
    try:
        return date_parser.parse(text).date().isoformat()
    except (ValueError, OverflowError):
        logger.debug(f"Could not parse date: {text}")
        return ""


def split_origin_destination(value: Any) -> Tuple[str, str]:
    """
    First and last airport codes of a route string.

    Example:
        >>> split_origin_destination("DEL -> BOM")
        ('DEL', 'BOM')
        >>> split_origin_destination("DEL/PNQ/PAT")
        ('DEL', 'PAT')
        >>> split_origin_destination("Delhi to Mumbai")
        ('', '')
    """
    text = to_text(value).strip()
    if not text:
        return "", ""

    parts = [p.strip() for p in re.split(r"[-/>]+", text) if p.strip()]
    if len(parts) >= 2 and _IATA_CODE.match(parts[0]) and _IATA_CODE.match(parts[-1]):
        return parts[0].upper(), parts[-1].upper()

    # codes embedded in longer text, e.g. "Sector: DEL-BOM"
    match = _IATA_PAIR.search(text)
    if match:
        return match.group(1).upper(), match.group(2).upper()

    return "", ""


class RowBuilder:
    """
    Builds export rows from InvoiceViews.

    Example:
        >>> builder = RowBuilder()
        >>> summary = builder.summary(view)
        >>> rows = builder.line_rows(view)
    """

    def __init__(
        self,
        default_currency: Optional[str] = None,
        resolver: Optional[FieldResolver] = None
    ) -> None:
        self.default_currency = default_currency or get_config("export.default_currency", "INR")
        self.resolver = resolver or default_resolver()

    # -------------------------------------------------------------------------
    # invoice summary
    # -------------------------------------------------------------------------

    def _header_text(self, invoice: Any, name: str) -> str:
        value = _header.resolve(invoice, HEADER_ALIASES[name], None)
        if value is None and name in CLIENT_ALIASES:
            client = parse_json_maybe(_header.resolve(invoice, CLIENT_RECORDS, None)) or {}
            value = _header.resolve(client, CLIENT_ALIASES[name], None)
        return to_text(value)

    def summary(self, view: InvoiceView) -> Dict[str, Any]:
        """Flat, schema-tolerant summary of one invoice."""
        invoice = view.invoice
        row = {name: self._header_text(invoice, name) for name in HEADER_ALIASES}

        row['issueDate'] = format_date(row['issueDate'])
        row['dueDate'] = format_date(row['dueDate'])
        row['currency'] = row['currency'] or self.default_currency
        if not row['serviceType'] and view.categories:
            row['serviceType'] = view.categories[0].legacy_code

        row['documentKind'] = view.classification.title if view.classification else ''
        row.update(view.totals.to_dict() if view.totals else {})
        row['amountInWords'] = amount_in_words(self.payable(view))
        return row

    @staticmethod
    def payable(view: InvoiceView) -> Decimal:
        """Amount due on the document: the GST grand total for proformas."""
        if view.gst is not None:
            return view.gst.grand_total
        return view.totals.total if view.totals else Decimal(0)

    # -------------------------------------------------------------------------
    # line rows
    # -------------------------------------------------------------------------

    def _number(self, item: Any, name: str, default: Any = 0) -> Decimal:
        return self.resolver.number(item, FIELD_ALIASES[name], default)

    def _text(self, item: Any, name: str) -> str:
        return self.resolver.text(item, ITEM_ALIASES[name])

    def quantity_and_price(
        self,
        category: ServiceCategory,
        item: Any,
        amounts: LineAmounts
    ) -> Tuple[Decimal, Decimal]:
        """Display quantity and unit price for a line, per category."""
        if category is ServiceCategory.FLIGHT:
            return self._number(item, 'quantity', 1), self._number(item, 'fare')

        if category is ServiceCategory.HOTEL:
            rooms = self._number(item, 'rooms', 1)
            nights = self._number(item, 'nights', 1)
            return rooms * nights, self._number(item, 'rate')

        if category is ServiceCategory.HOLIDAY:
            pax = self._number(item, 'paxCount')
            price = self._number(item, 'basePrice')
            if pax * price != 0:
                return pax, price

        if category in (ServiceCategory.VISA, ServiceCategory.MICE):
            return Decimal(1), amounts.base

        return self._number(item, 'quantity', 1), self._number(item, 'unitPrice')

    def _flight_columns(self, item: Any) -> Dict[str, Any]:
        origin, destination = self._text(item, 'from'), self._text(item, 'to')
        if not origin or not destination:
            parsed_from, parsed_to = split_origin_destination(self._text(item, 'route'))
            origin = origin or parsed_from
            destination = destination or parsed_to

        return {
            'passengerName': self._text(item, 'passengerName'),
            'from': origin,
            'to': destination,
            'airline': self._text(item, 'airline'),
            'pnr': self._text(item, 'pnr'),
            'baseFare': self._number(item, 'fare'),
        }

    def _hotel_columns(self, item: Any) -> Dict[str, Any]:
        return {
            'guest': self._text(item, 'guest'),
            'hotel': self._text(item, 'hotel'),
            'roomType': self._text(item, 'roomType'),
            'rooms': self._number(item, 'rooms', 1),
            'nights': self._number(item, 'nights', 1),
            'rate': self._number(item, 'rate'),
        }

    def line_row(
        self,
        summary: Dict[str, Any],
        line_no: int,
        category: ServiceCategory,
        item: Any,
        amounts: LineAmounts
    ) -> Dict[str, Any]:
        qty, unit_price = self.quantity_and_price(category, item, amounts)
        tax_pct = percent_of(amounts.tax, amounts.base)
        svc_pct = percent_of(amounts.service, amounts.base)

        row = dict(summary)
        row.update({
            'lineNo': line_no,
            'category': category.label,
            'description': self._text(item, 'description'),
            'qty': qty,
            'unitPrice': unit_price,
            'discount': self._number(item, 'discount'),
            'lineBase': amounts.base,
            'lineTaxPct': '' if tax_pct is None else tax_pct,
            'lineTaxAmt': amounts.tax,
            'lineSvcPct': '' if svc_pct is None else svc_pct,
            'lineSvcAmt': amounts.service,
            'lineTotal': amounts.total,
            'itemCurrency': self._text(item, 'currency') or summary.get('currency', ''),
        })
        row.update({name: '' for name in FLIGHT_COLUMNS + HOTEL_COLUMNS})

        if category is ServiceCategory.FLIGHT:
            row.update(self._flight_columns(item))
        elif category is ServiceCategory.HOTEL:
            row.update(self._hotel_columns(item))

        return row

    def line_rows(self, view: InvoiceView) -> List[Dict[str, Any]]:
        """
        One row per line item; an invoice without items gives a single
        summary-only row with blank line columns.
        """
        summary = self.summary(view)

        if not view.items:
            row = dict(summary)
            row.update({name: '' for name in LINE_COLUMNS + FLIGHT_COLUMNS + HOTEL_COLUMNS})
            return [row]

        return [
            self.line_row(summary, idx, category, item, amounts)
            for idx, (item, category, amounts) in enumerate(
                zip(view.items, view.categories, view.lines), 1
            )
        ]
