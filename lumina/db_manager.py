import json
import logging
from datetime import date, timedelta
from enum import Enum

from .entities import (
    AppSettings,
    Client,
    DocumentType,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    new_id,
)
from .sequences import SequenceAllocator

logger = logging.getLogger(__name__)

SETTINGS_KEY = 'lumina_settings'


class Collection(Enum):
    CLIENTS = ('lumina_clients', Client)
    INVOICES = ('lumina_invoices', Invoice)

    def __init__(self, key, entity):
        self.key = key
        self.entity = entity

    @classmethod
    def resolve(cls, value):
        if isinstance(value, cls):
            return value
        for collection in cls:
            if value in (collection.name.lower(), collection.key):
                return collection
        raise ValueError(f"Unknown collection: {value!r}")


def seed_clients():
    return [
        Client(id='c1', name='Acme Corp', email='billing@acme.com', address='123 Industrial Way, Tech City'),
        Client(id='c2', name='Globex Inc', email='accounts@globex.com', address='456 Global Ave, Metropolis'),
    ]


def seed_invoices(today=None):
    today = today or date.today()
    return [
        Invoice(
            id='inv_1',
            number='INV-001',
            date=today.isoformat(),
            due_date=(today + timedelta(days=7)).isoformat(),
            status=InvoiceStatus.PAID,
            client_id='c1',
            items=[
                InvoiceItem(id='i1', description='Q1 Consultation', quantity=10, price=150),
                InvoiceItem(id='i2', description='Server Setup', quantity=1, price=500),
            ],
            currency='USD',
            tax_rate=10,
            notes='Thank you for your business!',
        ),
        Invoice(
            id='inv_2',
            number='INV-002',
            date=today.isoformat(),
            due_date=(today + timedelta(days=14)).isoformat(),
            status=InvoiceStatus.PENDING,
            client_id='c2',
            items=[
                InvoiceItem(id='i3', description='Frontend Development', quantity=40, price=85),
            ],
            currency='USD',
            tax_rate=0,
            notes='Payment due within 14 days.',
        ),
    ]


SEEDS = {
    Collection.CLIENTS: seed_clients,
    Collection.INVOICES: seed_invoices,
}


class StorageService:
    """Clients, invoices and settings persisted as JSON blobs in a key-value store.

    Every write rewrites the whole collection. Reads never raise: missing keys
    are seeded and corrupt content falls back to the seed data.
    """

    def __init__(self, store):
        self.store = store
        self.sequences = SequenceAllocator(self)

    # ------------------------------------------------------------------
    # Generic collection access
    # ------------------------------------------------------------------
    def list(self, collection):
        collection = Collection.resolve(collection)
        stored = self.store.get(collection.key)
        if stored is None:
            seeded = SEEDS[collection]()
            self._write(collection, seeded)
            return seeded
        try:
            raw = json.loads(stored)
            if not isinstance(raw, list) or not all(isinstance(row, dict) for row in raw):
                raise ValueError("expected a list of objects")
            return [collection.entity.from_dict(row) for row in raw]
        except (ValueError, OverflowError) as e:
            # JSONDecodeError is a ValueError
            logger.warning("Stored %s are unreadable (%s); using defaults", collection.key, e)
            return SEEDS[collection]()

    def upsert(self, collection, entity):
        collection = Collection.resolve(collection)
        entities = self.list(collection)
        for index, existing in enumerate(entities):
            if existing.id == entity.id:
                entities[index] = entity
                break
        else:
            entities.append(entity)
        self._write(collection, entities)
        return entity

    def remove(self, collection, entity_id):
        collection = Collection.resolve(collection)
        entities = self.list(collection)
        remaining = [e for e in entities if e.id != entity_id]
        if len(remaining) != len(entities):
            self._write(collection, remaining)
        return len(entities) - len(remaining)

    def find(self, collection, entity_id):
        for entity in self.list(collection):
            if entity.id == entity_id:
                return entity
        return None

    def _write(self, collection, entities):
        self.store.set(collection.key, json.dumps([e.to_dict() for e in entities]))

    # ------------------------------------------------------------------
    # Settings singleton
    # ------------------------------------------------------------------
    def get_settings(self):
        stored = self.store.get(SETTINGS_KEY)
        if stored is None:
            settings = AppSettings()
            self.save_settings(settings)
            return settings
        try:
            raw = json.loads(stored)
            if not isinstance(raw, dict):
                raise ValueError("expected an object")
            return AppSettings.from_dict(raw)
        except (ValueError, OverflowError) as e:
            logger.warning("Stored settings are unreadable (%s); using defaults", e)
            return AppSettings()

    def save_settings(self, settings):
        self.store.set(SETTINGS_KEY, json.dumps(settings.to_dict()))
        return settings

    def update_settings(self, changes):
        settings = self.get_settings().update(changes)
        return self.save_settings(settings)

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------
    def get_clients(self):
        return self.list(Collection.CLIENTS)

    def get_client(self, client_id):
        return self.find(Collection.CLIENTS, client_id)

    def save_client(self, client):
        return self.upsert(Collection.CLIENTS, client)

    def delete_client(self, client_id):
        # Invoices keep their clientId; it simply stops resolving
        return self.remove(Collection.CLIENTS, client_id)

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------
    def get_invoices(self, status=None):
        invoices = self.list(Collection.INVOICES)
        if status and status.strip().lower() != "all":
            wanted = InvoiceStatus.parse(status)
            invoices = [i for i in invoices if i.status == wanted]
        return invoices

    def get_invoice(self, invoice_id):
        return self.find(Collection.INVOICES, invoice_id)

    def save_invoice(self, invoice):
        return self.upsert(Collection.INVOICES, invoice)

    def delete_invoice(self, invoice_id):
        return self.remove(Collection.INVOICES, invoice_id)

    def update_invoice_status(self, invoice_id, new_status):
        invoice = self.get_invoice(invoice_id)
        if invoice is None:
            return None
        invoice.status = InvoiceStatus.parse(new_status)
        return self.save_invoice(invoice)

    def number_in_use(self, number, exclude_id=None):
        return any(
            i.number == number and i.id != exclude_id
            for i in self.get_invoices()
        )

    def new_invoice_draft(self, doc_type=DocumentType.INVOICE, today=None):
        today = today or date.today()
        settings = self.get_settings()
        return Invoice(
            id=new_id(),
            number=self.sequences.peek_number(doc_type),
            date=today.isoformat(),
            due_date=(today + timedelta(days=14)).isoformat(),
            status=InvoiceStatus.DRAFT,
            client_id='',
            items=[Invoice.new_item()],
            notes='',
            currency=settings.currency,
            tax_rate=0,
        )

    def create_invoice(self, invoice, doc_type=DocumentType.INVOICE):
        """Save a newly created document, then advance its sequence."""
        if self.number_in_use(invoice.number, exclude_id=invoice.id):
            logger.warning("Invoice number %s is already used by another invoice", invoice.number)
        self.save_invoice(invoice)
        self.sequences.advance(doc_type)
        return invoice

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------
    def export_data(self):
        """Export all data to a dictionary."""
        return {
            'clients': [c.to_dict() for c in self.get_clients()],
            'invoices': [i.to_dict() for i in self.get_invoices()],
            'settings': self.get_settings().to_dict(),
        }

    def import_data(self, data):
        """Import data from dictionary, replacing existing data."""
        try:
            if not isinstance(data, dict):
                raise ValueError("Backup must be a JSON object.")
            clients = data.get('clients', [])
            invoices = data.get('invoices', [])
            settings = data.get('settings', {})
            if not isinstance(clients, list) or not isinstance(invoices, list):
                raise ValueError("'clients' and 'invoices' must be lists.")
            if not isinstance(settings, dict):
                raise ValueError("'settings' must be an object.")
            parsed_clients = [Client.from_dict(c) for c in clients]
            parsed_invoices = [Invoice.from_dict(i) for i in invoices]
            parsed_settings = AppSettings.from_dict(settings)
        except (AttributeError, ValueError, OverflowError) as e:
            logger.warning("Rejected data import: %s", e)
            return False, str(e)

        self._write(Collection.CLIENTS, parsed_clients)
        self._write(Collection.INVOICES, parsed_invoices)
        self.save_settings(parsed_settings)
        return True, "Data imported successfully."
