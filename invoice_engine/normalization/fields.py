"""
Key Normalization and Tolerant Field Resolution.

Line items reach the engine in many shapes: camelCase request bodies,
snake_case legacy rows, values tucked under ``details``/``meta``/``data``,
or whole containers stored as JSON strings. Everything here resolves
those shapes without raising.

Functions:
    - normalize_key: case/punctuation-insensitive key form
    - resolve_field: first present, non-null value for a list of aliases
    - parse_json_maybe / parse_array_maybe: lenient JSON decoding
    - inline_items: line items stored on the invoice record itself
"""

import json
import re
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from config import get_config
from invoice_engine.utils.logger import get_logger
from .amounts import to_number

logger = get_logger(__name__)

DEFAULT_CONTAINERS = ("details", "meta", "data")

# Pools that may hold line items on a stored invoice, in search order.
ITEM_POOLS = ("items", "lines")
META_ITEM_POOLS = ("items", "lines", "flights", "hotels", "services")

_NON_ALNUM = re.compile(r"[^a-z0-9]")

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}


def normalize_key(value: Any) -> str:
    """
    Lower-case the string form of ``value`` and strip everything that is
    not ``[a-z0-9]``.

    Example:
        >>> normalize_key("Tax Pct"), normalize_key("tax_pct"), normalize_key("TAXPCT")
        ('taxpct', 'taxpct', 'taxpct')
        >>> normalize_key(None)
        ''
    """
    if value is None:
        return ""
    return _NON_ALNUM.sub("", str(value).lower())


def to_text(value: Any) -> str:
    """String form of a scalar; ``None`` becomes the empty string."""
    return "" if value is None else str(value)


def is_truthy(value: Any) -> bool:
    """Loose boolean used for flags stored as text, numbers or booleans."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return isinstance(value, str) and value.strip().lower() in _TRUTHY


def is_falsy(value: Any) -> bool:
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return isinstance(value, str) and value.strip().lower() in _FALSY


def parse_json_maybe(value: Any) -> Optional[Dict[str, Any]]:
    """
    Return ``value`` as a mapping when it is one, or when it is a string
    holding a JSON object. Anything else yields ``None``.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip().startswith("{"):
        try:
            decoded = json.loads(value)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def parse_array_maybe(value: Any) -> List[Any]:
    """
    Return ``value`` as a list: lists pass through, JSON-encoded arrays
    are decoded, and everything else (including bad JSON) is ``[]``.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list) else []
    return []


class FieldResolver:
    """
    Looks up values by alias over a record and its nested containers.

    Aliases are tried in caller priority order. For each alias the record
    itself is searched first, then each configured container
    (``details``, ``meta``, ``data`` by default). Keys are compared in
    their normalized form, so ``"Tax Pct"`` matches ``taxPct``.

    Example:
        >>> resolver = FieldResolver()
        >>> item = {"details": {"no_of_rooms": "2"}, "rate": 4500}
        >>> resolver.resolve(item, ["rooms", "noOfRooms"], 1)
        '2'
    """

    def __init__(self, containers: Optional[Sequence[str]] = None) -> None:
        if containers is None:
            containers = get_config("engine.field_containers", list(DEFAULT_CONTAINERS))
        self.containers = tuple(normalize_key(c) for c in containers)

    def blobs(self, record: Any) -> List[Dict[str, Any]]:
        """The record followed by its nested containers, all as mappings."""
        root = parse_json_maybe(record)
        if root is None:
            return []

        found = {}
        for key, value in root.items():
            norm = normalize_key(key)
            if norm in self.containers and norm not in found:
                nested = parse_json_maybe(value)
                if nested is not None:
                    found[norm] = nested

        return [root] + [found[c] for c in self.containers if c in found]

    @staticmethod
    def _index(blob: Dict[str, Any]) -> Dict[str, Any]:
        # normalized key -> first non-null value under any spelling
        index = {}
        for key, value in blob.items():
            if value is None:
                continue
            index.setdefault(normalize_key(key), value)
        return index

    def resolve(self, record: Any, aliases: Sequence[str], fallback: Any = "") -> Any:
        """
        Return the first present, non-null value for ``aliases``.

        Args:
            record: Mapping (or JSON object string) to search.
            aliases: Field names in priority order.
            fallback: Value returned when nothing matches.

        Returns:
            The resolved value, or ``fallback``.
        """
        indexes = [self._index(blob) for blob in self.blobs(record)]
        if not indexes:
            return fallback

        for alias in aliases:
            wanted = normalize_key(alias)
            for index in indexes:
                if wanted in index:
                    return index[wanted]

        return fallback

    def number(self, record: Any, aliases: Sequence[str], default: Any = 0) -> Decimal:
        """Resolve and coerce to a number; missing or non-numeric gives ``default``."""
        return to_number(self.resolve(record, aliases, None), default)

    def text(self, record: Any, aliases: Sequence[str], fallback: str = "") -> str:
        return to_text(self.resolve(record, aliases, fallback))

    def has(self, record: Any, aliases: Sequence[str]) -> bool:
        """True when any alias resolves to a non-null value."""
        marker = object()
        return self.resolve(record, aliases, marker) is not marker


@lru_cache(maxsize=1)
def default_resolver() -> FieldResolver:
    """Shared resolver built from configuration."""
    return FieldResolver()


def resolve_field(record: Any, aliases: Sequence[str], fallback: Any = "") -> Any:
    """
    Module-level shortcut for :meth:`FieldResolver.resolve`.

    Example:
        >>> resolve_field({"meta": {"Tax Pct": 18}}, ["taxPct"], 0)
        18
    """
    return default_resolver().resolve(record, aliases, fallback)


def inline_items(invoice: Any) -> List[Dict[str, Any]]:
    """
    Collect line items stored on the invoice record itself.

    Pools are ``items`` and ``lines`` on the invoice, then the
    ``items``, ``lines``, ``flights``, ``hotels`` and ``services`` pools
    of its first ``meta``/``details``/``data`` container. Each pool may
    be a list or a JSON-encoded string. Entries that are not objects are
    dropped.

    Example:
        >>> inline_items({"items": '[{"fare": 100}]', "meta": {"hotels": [{"rate": 50}]}})
        [{'fare': 100}, {'rate': 50}]
    """
    record = parse_json_maybe(invoice)
    if record is None:
        return []

    meta = {}
    for container in DEFAULT_CONTAINERS:
        candidate = parse_json_maybe(record.get(container))
        if candidate:
            meta = candidate
            break

    pools = [record.get(name) for name in ITEM_POOLS]
    pools += [meta.get(name) for name in META_ITEM_POOLS]

    items = []
    for pool in pools:
        for entry in parse_array_maybe(pool):
            item = parse_json_maybe(entry)
            if item is not None:
                items.append(item)

    logger.debug(f"Found {len(items)} inline line items")
    return items
