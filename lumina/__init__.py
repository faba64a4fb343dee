"""Lumina Invoices.

Client invoicing core: domain model, invoice arithmetic, document numbering
and a JSON persistence facade over a pluggable key-value store.
"""

from .db_manager import StorageService
from .sequences import SequenceAllocator
from .store import MemoryStore, DatabaseStore

__all__ = ["StorageService", "SequenceAllocator", "MemoryStore", "DatabaseStore"]
