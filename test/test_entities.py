import pytest

from lumina.entities import (
    AppSettings,
    Client,
    Invoice,
    InvoiceStatus,
    SettingsError,
)


# --------------------------------------------------------------------
# INVOICE SERIALIZATION
# --------------------------------------------------------------------
def test_invoice_round_trips_camel_case_shape():
    raw = {
        "id": "inv_9",
        "number": "INV-9",
        "date": "2026-05-01",
        "dueDate": "2026-05-15",
        "status": "Pending",
        "clientId": "c2",
        "items": [{"id": "i1", "description": "Design", "quantity": 2, "price": 50}],
        "currency": "EUR",
        "taxRate": 19,
        "notes": "Thanks",
    }
    inv = Invoice.from_dict(raw)
    assert inv.status == InvoiceStatus.PENDING
    assert inv.due_date == "2026-05-15"
    assert inv.client_id == "c2"
    assert inv.items[0].price == 50
    assert inv.to_dict() == raw


def test_invoice_from_dict_defaults_missing_and_ignores_unknown():
    inv = Invoice.from_dict({"number": "X", "status": "Archived", "legacy": True, "items": "nope"})
    assert inv.id
    assert inv.status == InvoiceStatus.DRAFT
    assert inv.items == []
    assert inv.notes is None
    assert inv.currency == "USD"
    assert "notes" not in inv.to_dict()


def test_status_parse():
    assert InvoiceStatus.parse("paid") == InvoiceStatus.PAID
    with pytest.raises(ValueError):
        InvoiceStatus.parse("Archived")


def test_invoice_accepts_plain_string_status():
    inv = Invoice(id="inv", number="INV-1", date="2026-05-01", due_date="2026-05-15", status="paid")
    assert inv.status is InvoiceStatus.PAID
    assert inv.to_dict()["status"] == "Paid"


def test_invoice_rejects_unknown_status():
    with pytest.raises(ValueError):
        Invoice(id="inv", number="INV-1", date="2026-05-01", due_date="2026-05-15", status="Archived")


def test_client_from_dict():
    client = Client.from_dict({"id": "c9", "name": "Initech", "phone": "ignored"})
    assert client.to_dict() == {"id": "c9", "name": "Initech", "email": "", "address": ""}


# --------------------------------------------------------------------
# SETTINGS
# --------------------------------------------------------------------
def test_settings_defaults_serialize_to_camel_case():
    data = AppSettings().to_dict()
    assert data["invoicePrefix"] == "INV-"
    assert data["nextInvoiceNumber"] == 1001
    assert data["nextPurchaseReturnNumber"] == 1001
    assert data["currencySymbol"] == "$"
    assert data["showLogo"] is True


def test_settings_from_dict_tolerates_partial_and_unknown():
    settings = AppSettings.from_dict({"companyName": "Lumina", "nextInvoiceNumber": "1003", "legacyFlag": 1})
    assert settings.company_name == "Lumina"
    assert settings.next_invoice_number == 1003
    assert settings.estimate_prefix == "EST-"


def test_settings_update_is_typed():
    settings = AppSettings()
    updated = settings.update({"salesReturnPrefix": "RET-", "next_sales_return_number": "abc", "showLogo": "false"})
    assert updated.sales_return_prefix == "RET-"
    assert updated.next_sales_return_number == 0
    assert updated.show_logo is False
    # the original record is untouched
    assert settings.sales_return_prefix == "SR-"


def test_settings_update_rejects_unknown_field():
    with pytest.raises(SettingsError):
        AppSettings().update({"fontSize": 12})
