from datetime import date

import pytest

from lumina import calculations
from lumina.calculations import coerce_number
from lumina.entities import Client, Invoice, InvoiceItem, InvoiceStatus


def make_invoice(items, tax_rate=0, status=InvoiceStatus.DRAFT, due_date="2026-01-31", date_="2026-01-01", client_id="c1"):
    return Invoice(
        id="inv",
        number="INV-1",
        date=date_,
        due_date=due_date,
        status=status,
        client_id=client_id,
        items=[InvoiceItem(id=f"i{n}", description="x", quantity=q, price=p) for n, (q, p) in enumerate(items)],
        tax_rate=tax_rate,
    )


# --------------------------------------------------------------------
# TOTALS
# --------------------------------------------------------------------
def test_documented_example_totals():
    inv = make_invoice([(10, 150), (1, 500)], tax_rate=10)
    assert calculations.subtotal(inv) == pytest.approx(2000)
    assert calculations.tax_amount(inv) == pytest.approx(200)
    assert calculations.total(inv) == pytest.approx(2200)


@pytest.mark.parametrize("tax_rate", [0, 7.5, 19, 100, 150])
def test_total_is_subtotal_plus_tax(tax_rate):
    inv = make_invoice([(3, 19.99), (0.5, 80), (12, 1.25)], tax_rate=tax_rate)
    sub = calculations.subtotal(inv)
    assert calculations.total(inv) == pytest.approx(sub + sub * tax_rate / 100)


def test_total_independent_of_item_order():
    forward = make_invoice([(3, 19.99), (0.5, 80), (12, 1.25)], tax_rate=8)
    backward = make_invoice([(12, 1.25), (0.5, 80), (3, 19.99)], tax_rate=8)
    assert calculations.total(forward) == pytest.approx(calculations.total(backward))


@pytest.mark.parametrize("tax_rate", [0, 10, 250])
def test_empty_invoice_is_zero(tax_rate):
    inv = make_invoice([], tax_rate=tax_rate)
    assert calculations.subtotal(inv) == 0
    assert calculations.total(inv) == 0


def test_totals_follow_edits():
    inv = make_invoice([(1, 100)], tax_rate=10)
    assert calculations.total(inv) == pytest.approx(110)
    inv.items[0].quantity = 2
    inv.tax_rate = 20
    assert calculations.total(inv) == pytest.approx(240)


def test_format_money_rounds_at_presentation():
    assert calculations.format_money(1234.5) == "1,234.50"
    assert calculations.format_money(0.125 + 0.0001, "$") == "$0.13"


# --------------------------------------------------------------------
# NUMERIC INPUT
# --------------------------------------------------------------------
@pytest.mark.parametrize("raw, expected", [
    (3, 3.0),
    ("2.5", 2.5),
    (" 4 ", 4.0),
    ("abc", 0.0),
    ("", 0.0),
    (None, 0.0),
    (float("nan"), 0.0),
    ("inf", 0.0),
    (True, 0.0),
    (10**400, 0.0),
    ("1e400", 0.0),
])
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


def test_non_numeric_item_values_do_not_break_totals():
    inv = make_invoice([], tax_rate="oops")
    inv.items = [InvoiceItem.from_dict({"id": "a", "quantity": "ten", "price": "5"})]
    assert calculations.subtotal(inv) == 0
    assert calculations.total(inv) == 0


# --------------------------------------------------------------------
# STATUS & CLIENTS
# --------------------------------------------------------------------
def test_pending_past_due_displays_overdue_without_mutation():
    inv = make_invoice([], status=InvoiceStatus.PENDING, due_date="2026-03-01")
    assert calculations.effective_status(inv, date(2026, 3, 2)) == InvoiceStatus.OVERDUE
    assert inv.status == InvoiceStatus.PENDING


def test_pending_on_due_date_is_still_pending():
    inv = make_invoice([], status=InvoiceStatus.PENDING, due_date="2026-03-01")
    assert calculations.effective_status(inv, date(2026, 3, 1)) == InvoiceStatus.PENDING


@pytest.mark.parametrize("status", [InvoiceStatus.DRAFT, InvoiceStatus.PAID])
def test_other_statuses_never_become_overdue(status):
    inv = make_invoice([], status=status, due_date="2000-01-01")
    assert calculations.effective_status(inv, date(2026, 1, 1)) == status


def test_unparseable_due_date_keeps_status():
    inv = make_invoice([], status=InvoiceStatus.PENDING, due_date="soon")
    assert calculations.effective_status(inv, date(2026, 1, 1)) == InvoiceStatus.PENDING


def test_client_name_falls_back_to_unknown():
    inv = make_invoice([], client_id="gone")
    clients = [Client(id="c1", name="Acme Corp")]
    assert calculations.client_name(inv, clients) == "Unknown Client"
    inv.client_id = "c1"
    assert calculations.client_name(inv, clients) == "Acme Corp"


# --------------------------------------------------------------------
# SUMMARY
# --------------------------------------------------------------------
def test_summarize_partitions_by_status():
    invoices = [
        make_invoice([(10, 150), (1, 500)], tax_rate=10, status=InvoiceStatus.PAID, date_="2026-01-15"),
        make_invoice([(1, 100)], status=InvoiceStatus.PAID, date_="2026-02-03"),
        make_invoice([(40, 85)], status=InvoiceStatus.PENDING),
        make_invoice([(1, 50)], tax_rate=10, status=InvoiceStatus.OVERDUE),
        make_invoice([(1, 999)], status=InvoiceStatus.DRAFT),
    ]
    summary = calculations.summarize(invoices)
    assert summary.total_revenue == pytest.approx(2300)
    assert summary.pending_amount == pytest.approx(3400 + 55)
    assert summary.invoice_count == 5
    assert summary.pending_count == 1
    assert summary.overdue_count == 1
    assert list(summary.revenue_by_month) == ["2026-01", "2026-02"]
    assert summary.revenue_by_month["2026-01"] == pytest.approx(2200)


def test_summarize_empty():
    data = calculations.summarize([]).to_dict()
    assert data["totalRevenue"] == 0
    assert data["revenueByMonth"] == []
