"""Invoice arithmetic and reporting.

Totals are always derived from the current items and tax rate. They are
never stored, and rounding only happens in ``format_money``.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date

from .entities import InvoiceStatus
from .utils import coerce_number, parse_date

UNKNOWN_CLIENT = "Unknown Client"

__all__ = [
    "coerce_number",
    "line_amount",
    "subtotal",
    "tax_amount",
    "total",
    "format_money",
    "effective_status",
    "client_name",
    "Summary",
    "summarize",
]


def line_amount(item):
    return coerce_number(item.quantity) * coerce_number(item.price)


def subtotal(invoice):
    return sum((line_amount(item) for item in invoice.items), 0.0)


def tax_amount(invoice):
    return subtotal(invoice) * (coerce_number(invoice.tax_rate) / 100)


def total(invoice):
    return subtotal(invoice) + tax_amount(invoice)


def format_money(value, symbol=""):
    return f"{symbol}{value:,.2f}"


def effective_status(invoice, today=None):
    """Status to display: a Pending invoice past its due date shows as Overdue.

    The stored status is left untouched.
    """
    if invoice.status != InvoiceStatus.PENDING:
        return invoice.status
    due = parse_date(invoice.due_date)
    if due is None:
        return invoice.status
    if due < (today or date.today()):
        return InvoiceStatus.OVERDUE
    return invoice.status


def client_name(invoice, clients):
    for client in clients:
        if client.id == invoice.client_id:
            return client.name
    return UNKNOWN_CLIENT


@dataclass
class Summary:
    total_revenue: float = 0.0
    pending_amount: float = 0.0
    invoice_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    revenue_by_month: dict = field(default_factory=OrderedDict)

    def to_dict(self):
        return {
            "totalRevenue": self.total_revenue,
            "pendingAmount": self.pending_amount,
            "invoiceCount": self.invoice_count,
            "pendingCount": self.pending_count,
            "overdueCount": self.overdue_count,
            "revenueByMonth": [
                {"month": month, "revenue": revenue}
                for month, revenue in self.revenue_by_month.items()
            ],
        }


def summarize(invoices):
    """Partition invoices by stored status and sum their totals."""
    summary = Summary()
    monthly = {}
    for invoice in invoices:
        summary.invoice_count += 1
        amount = total(invoice)
        if invoice.status == InvoiceStatus.PAID:
            summary.total_revenue += amount
            issued = parse_date(invoice.date)
            if issued is not None:
                month = issued.strftime("%Y-%m")
                monthly[month] = monthly.get(month, 0.0) + amount
        elif invoice.status in (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE):
            summary.pending_amount += amount
        if invoice.status == InvoiceStatus.PENDING:
            summary.pending_count += 1
        elif invoice.status == InvoiceStatus.OVERDUE:
            summary.overdue_count += 1
    summary.revenue_by_month = OrderedDict(sorted(monthly.items()))
    return summary
