"""In-memory fake repository for service tests.

Implements the same interface as ProductRepository but keeps everything
in a dict and records every call, so tests can tell cache hits from
storage reads.
"""

from collections import Counter
from datetime import datetime, timezone

from catalog.exceptions import DuplicateNameError


class FakeProductRepository:

    def __init__(self, products=None):
        self._store = {}
        self._next_id = 1
        self.calls = Counter()
        for p in products or []:
            self.save(p)
        self.calls.clear()

    def save(self, product):
        self.calls["save"] += 1
        for other in self._store.values():
            if other.name == product.name and other.id != product.id:
                raise DuplicateNameError("A product with this name already exists")
        now = datetime.now(timezone.utc)
        if product.id is None:
            product.id = self._next_id
            self._next_id += 1
            product.created_at = now
        product.updated_at = now
        self._store[product.id] = product
        return product

    def find_by_id(self, product_id):
        self.calls["find_by_id"] += 1
        return self._store.get(product_id)

    def find_by_name(self, name):
        self.calls["find_by_name"] += 1
        for p in self._store.values():
            if p.name == name:
                return p
        return None

    def exists_by_name(self, name):
        self.calls["exists_by_name"] += 1
        return any(p.name == name for p in self._store.values())

    def exists_by_id(self, product_id):
        self.calls["exists_by_id"] += 1
        return product_id in self._store

    def delete_by_id(self, product_id):
        self.calls["delete_by_id"] += 1
        self._store.pop(product_id, None)

    def find_all(self):
        self.calls["find_all"] += 1
        return list(self._store.values())

    def find_by_price_less_than_equal(self, max_price):
        self.calls["find_by_price_less_than_equal"] += 1
        return [p for p in self._store.values() if p.price <= max_price]

    def find_low_stock(self, threshold):
        self.calls["find_low_stock"] += 1
        return [p for p in self._store.values() if p.stock_quantity <= threshold]
