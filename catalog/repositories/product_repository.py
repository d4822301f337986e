from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, List, Optional
import logging

from sqlalchemy import select, exists, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from catalog.exceptions import (
    DuplicateNameError,
    ProductValidationError,
    StorageUnavailableError,
)
from catalog.models.product import Product

logger = logging.getLogger(__name__)


class ProductRepository:
    """
    Persistence gateway for Product records.

    Every storage failure is rolled back and re-raised as
    StorageUnavailableError; nothing is retried here. Integrity violations
    are translated into the matching domain error instead.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage_errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig).lower()
            if "unique" in message or "duplicate" in message:
                logger.warning(f"Unique constraint violated: {e.orig}")
                raise DuplicateNameError("A product with this name already exists") from e
            logger.warning(f"Integrity error saving product: {e.orig}")
            raise ProductValidationError("Product violates a storage constraint") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storage error: {e}")
            raise StorageUnavailableError("Product storage is unavailable") from e

    def save(self, product: Product) -> Product:
        """
        Insert the product if it has no id yet, otherwise update it in place.

        Returns:
            The persisted product, refreshed with its id and timestamps
        """
        with self._storage_errors():
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        return product

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with self._storage_errors():
            return self.db.get(Product, product_id)

    def find_by_name(self, name: str) -> Optional[Product]:
        with self._storage_errors():
            return self.db.scalars(
                select(Product).where(Product.name == name)
            ).first()

    def exists_by_name(self, name: str) -> bool:
        with self._storage_errors():
            return bool(self.db.scalar(select(exists().where(Product.name == name))))

    def exists_by_id(self, product_id: int) -> bool:
        with self._storage_errors():
            return bool(self.db.scalar(select(exists().where(Product.id == product_id))))

    def delete_by_id(self, product_id: int) -> None:
        """Delete a product. The caller is responsible for checking it exists."""
        with self._storage_errors():
            product = self.db.get(Product, product_id)
            if product is not None:
                self.db.delete(product)
                self.db.commit()

    def find_all(self) -> List[Product]:
        with self._storage_errors():
            return list(self.db.scalars(select(Product).order_by(Product.id)))

    def find_by_price_less_than_equal(self, max_price: Decimal) -> List[Product]:
        """Products priced at or below max_price."""
        with self._storage_errors():
            return list(
                self.db.scalars(
                    select(Product)
                    .where(Product.price <= max_price)
                    .order_by(Product.id)
                )
            )

    def find_low_stock(self, threshold: int) -> List[Product]:
        """Products with stock_quantity at or below threshold."""
        with self._storage_errors():
            return list(
                self.db.scalars(
                    select(Product)
                    .where(Product.stock_quantity <= threshold)
                    .order_by(Product.id)
                )
            )

    def ping(self) -> None:
        with self._storage_errors():
            self.db.execute(text("SELECT 1"))
