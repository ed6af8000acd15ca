"""Tests for canonical service-type classification."""

import pytest

from invoice_engine.normalization.service_types import (
    CLASSIFICATION_RULES,
    ServiceCategory,
    classify_service_type,
    resolve_item_category,
)


@pytest.mark.parametrize("raw, expected", [
    ("FLIGHTS", ServiceCategory.FLIGHT),
    ("Air Ticket", ServiceCategory.FLIGHT),
    ("airfare", ServiceCategory.FLIGHT),
    ("hotels", ServiceCategory.HOTEL),
    ("Hotel Package", ServiceCategory.HOTEL),
    ("Home Stay", ServiceCategory.HOTEL),
    ("Package Tour", ServiceCategory.HOLIDAY),
    ("HOLIDAYS", ServiceCategory.HOLIDAY),
    ("Visa Services", ServiceCategory.VISA),
    ("Annual Conference", ServiceCategory.MICE),
    ("STATIONARY", ServiceCategory.STATIONERY),
    ("Gift_Items", ServiceCategory.GIFT_ITEMS),
    ("corporate gifting", ServiceCategory.GIFT_ITEMS),
    ("GOODIES", ServiceCategory.GOODIES),
    ("misc", ServiceCategory.OTHER),
])
def test_classify_labels(raw, expected):
    assert classify_service_type(raw) is expected


@pytest.mark.parametrize("raw", [None, "", "   ", 42, 3.5, "One-way", "???", [], {}])
def test_classifier_is_total(raw):
    assert classify_service_type(raw) in set(ServiceCategory)


def test_unmatched_is_other():
    assert classify_service_type("One-way") is ServiceCategory.OTHER
    assert classify_service_type(None) is ServiceCategory.OTHER


def test_category_passes_through():
    assert classify_service_type(ServiceCategory.VISA) is ServiceCategory.VISA


def test_exact_rules_precede_heuristics():
    kinds = [type(predicate).__name__ for predicate, _ in CLASSIFICATION_RULES]
    last_exact = max(i for i, k in enumerate(kinds) if k == "Exact")
    first_heuristic = min(i for i, k in enumerate(kinds) if k != "Exact")
    assert last_exact < first_heuristic


class TestLegacyCodes:

    def test_round_trip_every_category(self):
        for category in ServiceCategory:
            assert classify_service_type(category.legacy_code) is category

    def test_labels(self):
        assert ServiceCategory.GIFT_ITEMS.label == "Gift Items"
        assert ServiceCategory.OTHER.label == "Others"
        assert classify_service_type("Gift Items").legacy_code == "GIFT_ITEMS"
        assert classify_service_type("tour").legacy_code == "HOLIDAYS"


class TestResolveItemCategory:

    def test_item_service_type_wins(self):
        item = {"serviceType": "HOTELS"}
        assert resolve_item_category(item, "FLIGHTS") is ServiceCategory.HOTEL

    def test_trip_kind_does_not_hide_header_type(self):
        item = {"type": "One-way", "fare": 100}
        assert resolve_item_category(item, "FLIGHTS") is ServiceCategory.FLIGHT

    def test_nested_category(self):
        item = {"details": {"category": "visa"}}
        assert resolve_item_category(item, None) is ServiceCategory.VISA

    def test_default_when_nothing_on_item(self):
        assert resolve_item_category({}, "GOODIES") is ServiceCategory.GOODIES
        assert resolve_item_category({}, None) is ServiceCategory.OTHER
