"""Pytest configuration for the Aurora shop tests."""

import pytest
from fastapi.testclient import TestClient

from aurora.analytics import CartMirror, DataLayer, LocalStorage
from aurora.core.config import settings
from aurora.db.catalog import CatalogStore
from aurora.db.session import SessionStore
from aurora.main import create_app
from aurora.services.cart import CartService
from aurora.services.checkout import CheckoutService


@pytest.fixture(scope="session")
def catalog():
    return CatalogStore.from_file(settings.CATALOG_PATH)


# Every test gets a fresh app, so session state never bleeds between tests.
@pytest.fixture
def app(catalog):
    return create_app(catalog=catalog)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def session(store):
    _, visitor = store.resolve(None)
    return visitor


@pytest.fixture
def cart_service(catalog):
    return CartService(catalog)


@pytest.fixture
def checkout_service():
    return CheckoutService()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def mirror(client, storage):
    return CartMirror(http=client, base_url="http://testserver", data_layer=DataLayer(), storage=storage)
