from lumina.db_manager import StorageService
from lumina.entities import Client
from lumina.store import DatabaseStore, MemoryStore


def test_memory_store():
    store = MemoryStore({"a": "1"})
    assert store.get("a") == "1"
    assert store.get("b") is None
    store.set("b", "2")
    assert store.get("b") == "2"


def test_database_store_overwrites(app):
    with app.app_context():
        store = DatabaseStore()
        assert store.get("lumina_clients") is None
        store.set("lumina_clients", "[]")
        store.set("lumina_clients", '[{"id": "c7"}]')
        assert store.get("lumina_clients") == '[{"id": "c7"}]'


def test_storage_on_database_store(app):
    with app.app_context():
        storage = StorageService(DatabaseStore())
        storage.save_client(Client(id="c3", name="Initech"))
        storage.sequences.advance("invoice")

    with app.app_context():
        storage = StorageService(DatabaseStore())
        assert [c.id for c in storage.get_clients()] == ["c1", "c2", "c3"]
        assert storage.sequences.peek_number("invoice") == "INV-1002"
