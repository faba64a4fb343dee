"""Key-value backends for the storage facade.

A backend only needs ``get(key)`` returning the stored string (or ``None``)
and ``set(key, value)``. Values are JSON text; the facade owns serialization.
"""

from .models import db, KeyValue


class MemoryStore:
    """Process-local store, one instance per caller."""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value


class DatabaseStore:
    """Durable store on the ``kv_store`` table. Needs an app context."""

    def get(self, key):
        row = db.session.get(KeyValue, key)
        if row is None:
            return None
        return row.value

    def set(self, key, value):
        row = db.session.get(KeyValue, key)
        if row:
            row.value = value
        else:
            db.session.add(KeyValue(key=key, value=value))
        db.session.commit()
