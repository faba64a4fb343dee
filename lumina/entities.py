"""Domain entities for clients, invoices and application settings.

Entities are plain dataclasses. ``to_dict`` produces the camelCase JSON shape
kept in storage and served by the API; ``from_dict`` accepts that shape,
ignores unknown keys and defaults missing ones.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional

from .utils import coerce_bool, coerce_int, coerce_number


class InvoiceStatus(str, Enum):
    DRAFT = 'Draft'
    PENDING = 'Pending'
    PAID = 'Paid'
    OVERDUE = 'Overdue'

    @classmethod
    def parse(cls, value, default=None):
        if isinstance(value, cls):
            return value
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        if default is not None:
            return default
        raise ValueError(f"Unknown invoice status: {value!r}")


class DocumentType(str, Enum):
    INVOICE = 'invoice'
    ESTIMATE = 'estimate'
    PROFORMA = 'proforma'
    SALES_RETURN = 'salesReturn'
    PURCHASE_ORDER = 'purchaseOrder'
    PURCHASE_RETURN = 'purchaseReturn'


class SettingsError(ValueError):
    """Raised when a settings update names a field that does not exist."""


def new_id():
    return str(uuid.uuid4())


def _camel(name):
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


@dataclass
class Client:
    id: str
    name: str = ''
    email: str = ''
    address: str = ''

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'email': self.email, 'address': self.address}

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get('id') or new_id()),
            name=str(data.get('name') or ''),
            email=str(data.get('email') or ''),
            address=str(data.get('address') or ''),
        )


@dataclass
class InvoiceItem:
    id: str
    description: str = ''
    quantity: float = 1.0
    price: float = 0.0

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'quantity': self.quantity,
            'price': self.price,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get('id') or new_id()),
            description=str(data.get('description') or ''),
            quantity=coerce_number(data.get('quantity')),
            price=coerce_number(data.get('price')),
        )


@dataclass
class Invoice:
    id: str
    number: str
    date: str
    due_date: str
    status: InvoiceStatus = InvoiceStatus.DRAFT
    client_id: str = ''
    items: list = field(default_factory=list)
    notes: Optional[str] = None
    currency: str = 'USD'
    tax_rate: float = 0.0

    def __post_init__(self):
        self.status = InvoiceStatus.parse(self.status)

    @staticmethod
    def new_item(description='', quantity=1, price=0):
        return InvoiceItem(
            id=new_id(),
            description=description,
            quantity=coerce_number(quantity),
            price=coerce_number(price),
        )

    def to_dict(self):
        data = {
            'id': self.id,
            'number': self.number,
            'date': self.date,
            'dueDate': self.due_date,
            'status': self.status.value,
            'clientId': self.client_id,
            'items': [item.to_dict() for item in self.items],
            'currency': self.currency,
            'taxRate': self.tax_rate,
        }
        if self.notes is not None:
            data['notes'] = self.notes
        return data

    @classmethod
    def from_dict(cls, data):
        items = data.get('items')
        if not isinstance(items, list):
            items = []
        notes = data.get('notes')
        return cls(
            id=str(data.get('id') or new_id()),
            number=str(data.get('number') or ''),
            date=str(data.get('date') or ''),
            due_date=str(data.get('dueDate') or ''),
            status=InvoiceStatus.parse(data.get('status', ''), default=InvoiceStatus.DRAFT),
            client_id=str(data.get('clientId') or ''),
            items=[InvoiceItem.from_dict(item) for item in items if isinstance(item, dict)],
            notes=None if notes is None else str(notes),
            currency=str(data.get('currency') or 'USD'),
            tax_rate=coerce_number(data.get('taxRate')),
        )


@dataclass
class AppSettings:
    # Company profile
    company_name: str = 'My Company'
    company_email: str = 'billing@mycompany.com'
    company_address: str = '123 Business Rd, Suite 100'
    currency: str = 'USD'
    currency_symbol: str = '$'

    # Document sequences
    invoice_prefix: str = 'INV-'
    next_invoice_number: int = 1001
    estimate_prefix: str = 'EST-'
    next_estimate_number: int = 1001
    proforma_prefix: str = 'PRO-'
    next_proforma_number: int = 1001
    sales_return_prefix: str = 'SR-'
    next_sales_return_number: int = 1001
    purchase_order_prefix: str = 'PO-'
    next_purchase_order_number: int = 1001
    purchase_return_prefix: str = 'PR-'
    next_purchase_return_number: int = 1001

    # Appearance
    accent_color: str = '#4f46e5'
    show_logo: bool = True
    theme: str = 'light'

    @classmethod
    def field_names(cls):
        return {f.name: f.type for f in fields(cls)}

    @classmethod
    def resolve_field(cls, key):
        """Map a camelCase or snake_case key onto a field name."""
        for f in fields(cls):
            if key in (f.name, _camel(f.name)):
                return f.name
        raise SettingsError(f"Unknown settings field: {key}")

    def to_dict(self):
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data):
        settings = cls()
        for f in fields(cls):
            for key in (_camel(f.name), f.name):
                if key in data:
                    setattr(settings, f.name, _coerce_field(f.type, data[key], getattr(settings, f.name)))
                    break
        return settings

    def update(self, changes):
        """Return a copy with ``changes`` applied, coerced to each field's type."""
        values = {}
        for key, value in changes.items():
            name = self.resolve_field(key)
            values[name] = _coerce_field(self.field_names()[name], value, getattr(self, name))
        return replace(self, **values)


def _coerce_field(type_name, value, current):
    # annotations are strings under postponed evaluation
    if type_name == 'bool':
        return coerce_bool(value)
    if type_name == 'int':
        return coerce_int(value)
    if value is None:
        return current
    return str(value)
