"""Shared fixtures: default configuration and sample stored invoices."""

import pytest

from config import ConfigurationManager


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the bundled settings."""
    ConfigurationManager.reset()
    ConfigurationManager()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def hotel_invoice():
    return {
        "id": "inv-1",
        "invoiceNo": "INV-20240305-001",
        "issueDate": "2024-03-05T10:00:00Z",
        "dueDate": "2024-03-20",
        "status": "SENT",
        "serviceType": "HOTELS",
        "client": {"name": "Acme Travels", "email": "ops@acme.test", "gstin": "29ABCDE1234F1Z5"},
        "subtotal": 27000,
        "taxAmt": 810,
        "svcAmt": 200,
        "total": 28010,
        "items": [
            {
                "description": "Deluxe room",
                "details": {"guestName": "R. Sharma", "hotelName": "Sea View", "roomType": "Deluxe",
                            "rooms": 2, "nights": 3, "rate": 4500, "tax": 810, "serviceCharges": 200},
            }
        ],
    }


@pytest.fixture
def flight_invoice():
    return {
        "invoiceNo": "INV-20240401-002",
        "serviceType": "FLIGHTS",
        "currency": "INR",
        "items": [
            {"type": "One-way", "passengerName": "A. Rao", "sector": "DEL -> BOM",
             "airline": "6E", "pnr": "XY12Z", "fare": 12000, "taxPct": 18},
            {"type": "Return", "passenger": "B. Rao", "origin": "BOM", "destination": "GOI",
             "fare": 8000, "yqTax": 500, "tax": 1530},
        ],
    }


@pytest.fixture
def proforma_invoice():
    return {
        "invoiceNo": "PI-2024-007",
        "serviceType": "HOLIDAYS",
        "subtotal": 10000,
        "meta": {"gst": {"cgst": 900, "sgst": 900}},
    }


@pytest.fixture
def mixed_invoices(hotel_invoice, flight_invoice, proforma_invoice):
    visa = {
        "invoiceNo": "INV-20240410-003",
        "serviceType": "VISAS",
        "items": '[{"details": {"processingFee": 5000, "embassyFee": 1200}}]',
    }
    return [hotel_invoice, flight_invoice, proforma_invoice, visa]
