import logging

from .entities import DocumentType

logger = logging.getLogger(__name__)

# DocumentType -> (prefix field, counter field) on AppSettings
SEQUENCE_FIELDS = {
    DocumentType.INVOICE: ('invoice_prefix', 'next_invoice_number'),
    DocumentType.ESTIMATE: ('estimate_prefix', 'next_estimate_number'),
    DocumentType.PROFORMA: ('proforma_prefix', 'next_proforma_number'),
    DocumentType.SALES_RETURN: ('sales_return_prefix', 'next_sales_return_number'),
    DocumentType.PURCHASE_ORDER: ('purchase_order_prefix', 'next_purchase_order_number'),
    DocumentType.PURCHASE_RETURN: ('purchase_return_prefix', 'next_purchase_return_number'),
}


def resolve_type(doc_type):
    if isinstance(doc_type, DocumentType):
        return doc_type
    try:
        return DocumentType(doc_type)
    except ValueError:
        raise ValueError(f"Unknown document type: {doc_type!r}") from None


def format_number(settings, doc_type):
    prefix_field, counter_field = SEQUENCE_FIELDS[resolve_type(doc_type)]
    return f"{getattr(settings, prefix_field)}{getattr(settings, counter_field)}"


class SequenceAllocator:
    """Hands out document numbers from the counters kept in AppSettings.

    Single writer, no locking. Numbers may have gaps but the counter only
    ever moves forward.
    """

    def __init__(self, storage):
        self.storage = storage

    def peek_number(self, doc_type):
        return format_number(self.storage.get_settings(), doc_type)

    def advance(self, doc_type):
        doc_type = resolve_type(doc_type)
        _, counter_field = SEQUENCE_FIELDS[doc_type]
        settings = self.storage.get_settings()
        next_value = getattr(settings, counter_field) + 1
        setattr(settings, counter_field, next_value)
        self.storage.save_settings(settings)
        logger.info("Advanced %s sequence to %s", doc_type.value, next_value)
        return next_value
