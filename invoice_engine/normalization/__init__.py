"""
Normalization Module for the Invoice Engine.

This module provides functionality for:
    - Case/punctuation-insensitive key matching
    - Tolerant field resolution over nested, legacy-shaped records
    - Numeric coercion and half-up money rounding
    - Canonical service-type classification
"""

from .amounts import AmountNormalizer, money, percent_of, round2, to_number
from .fields import (
    FieldResolver,
    inline_items,
    is_falsy,
    is_truthy,
    normalize_key,
    parse_array_maybe,
    parse_json_maybe,
    resolve_field,
    to_text,
)
from .service_types import (
    ServiceCategory,
    classify_service_type,
    resolve_item_category,
)

__all__ = [
    'AmountNormalizer',
    'money',
    'percent_of',
    'round2',
    'to_number',
    'FieldResolver',
    'inline_items',
    'is_falsy',
    'is_truthy',
    'normalize_key',
    'parse_array_maybe',
    'parse_json_maybe',
    'resolve_field',
    'to_text',
    'ServiceCategory',
    'classify_service_type',
    'resolve_item_category',
]
