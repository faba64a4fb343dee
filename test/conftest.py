import pytest

from lumina.app import create_app
from lumina.db_manager import StorageService
from lumina.store import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def storage(store):
    return StorageService(store)


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })
    yield app


@pytest.fixture
def http(app):
    return app.test_client()
