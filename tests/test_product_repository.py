"""Tests for ProductRepository against an in-memory SQLite database."""
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from catalog.exceptions import (
    DuplicateNameError,
    ProductValidationError,
    StorageUnavailableError,
)
from catalog.models.product import Product
from catalog.repositories.product_repository import ProductRepository


@pytest.fixture
def repository(db_session):
    repository = ProductRepository(db_session)
    repository.save(Product(
        name="Test Product",
        description="Test Description",
        price=Decimal("99.99"),
        stock_quantity=10,
    ))
    repository.save(Product(
        name="Another Product",
        description="Another Description",
        price=Decimal("149.99"),
        stock_quantity=5,
    ))
    return repository


def test_save_assigns_id_and_timestamps(repository):
    product = repository.save(Product(name="New Product", price=Decimal("199.99"), stock_quantity=15))

    assert product.id is not None
    assert product.created_at is not None
    assert product.updated_at is not None

    retrieved = repository.find_by_id(product.id)
    assert retrieved.name == "New Product"
    assert retrieved.price == Decimal("199.99")


def test_save_updates_in_place(repository):
    product = repository.find_by_name("Test Product")
    product.price = Decimal("89.99")
    product.stock_quantity = 20

    updated = repository.save(product)

    assert updated.id == product.id
    assert updated.price == Decimal("89.99")
    assert updated.stock_quantity == 20
    assert len(repository.find_all()) == 2


def test_find_by_name(repository):
    result = repository.find_by_name("Test Product")

    assert result is not None
    assert result.price == Decimal("99.99")
    assert repository.find_by_name("Non-existent Product") is None


def test_find_by_id_missing(repository):
    assert repository.find_by_id(9999) is None


def test_exists_by_name(repository):
    assert repository.exists_by_name("Test Product")
    assert not repository.exists_by_name("Non-existent Product")


def test_find_by_price_less_than_equal(repository):
    result = repository.find_by_price_less_than_equal(Decimal("100.00"))

    assert [p.name for p in result] == ["Test Product"]
    assert repository.find_by_price_less_than_equal(Decimal("149.99"))[-1].name == "Another Product"


def test_find_low_stock(repository):
    result = repository.find_low_stock(5)

    assert [p.name for p in result] == ["Another Product"]
    assert repository.find_low_stock(4) == []


def test_delete_by_id(repository):
    product = repository.find_by_name("Test Product")

    repository.delete_by_id(product.id)

    assert not repository.exists_by_id(product.id)
    assert repository.exists_by_id(repository.find_by_name("Another Product").id)


def test_duplicate_name_rejected_by_storage(repository):
    with pytest.raises(DuplicateNameError):
        repository.save(Product(name="Test Product", price=Decimal("1.00"), stock_quantity=1))

    # Session is usable again after the rollback
    assert len(repository.find_all()) == 2


def test_negative_stock_rejected_by_storage(repository):
    with pytest.raises(ProductValidationError):
        repository.save(Product(name="Broken", price=Decimal("1.00"), stock_quantity=-1))


def test_storage_failure_is_translated(repository):
    with patch.object(
        repository.db, "scalars", side_effect=OperationalError("SELECT", {}, Exception("down"))
    ):
        with pytest.raises(StorageUnavailableError):
            repository.find_all()


def test_ping(repository):
    repository.ping()
