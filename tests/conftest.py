"""Shared fixtures: a JSON collection store in a temporary directory and record builders."""

import pytest

from storefront.database.collection_store import JsonFileCollectionStore
from storefront.entities.product import Product
from storefront.entities.user import User
from storefront.repositories.product import ProductRepository
from storefront.repositories.user import UserRepository
from storefront.utils.passwords import hash_password

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def store(data_dir):
    return JsonFileCollectionStore(data_dir)


@pytest.fixture
def make_user(store):
    """Insert a user; keyword arguments override the defaults."""

    def _make(email="customer@example.com", password=DEFAULT_PASSWORD, **fields):
        user = User(
            email=email,
            username=email.split("@")[0],
            first_name="Test",
            last_name="Customer",
            password=hash_password(password),
            **fields,
        )
        return UserRepository(store).insert_one(user)

    return _make


@pytest.fixture
def make_product(store):
    def _make(name="LED Bulb", price=19.99, stock=50, **fields):
        product = Product(name=name, price=price, stock=stock, **fields)
        return ProductRepository(store).insert_one(product)

    return _make
