from decimal import Decimal
from typing import Optional, List
import logging

from catalog.exceptions import (
    DuplicateNameError,
    ProductNotFoundError,
    ProductValidationError,
)
from catalog.models.product import Product
from catalog.repositories.product_repository import ProductRepository
from catalog.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from catalog.utils.cache import CacheService, cached, evicts_all

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for Product CRUD operations.

    This service handles:
    - Creating products (names must be unique)
    - Reading and searching products (with read-through caching)
    - Partial updates
    - Deleting products
    - Wholesale cache invalidation after every mutation

    The cache is shared by all requests and is passed in rather than
    looked up, so tests and the API can hand in the same instance.
    """

    def __init__(self, repository: ProductRepository, cache: CacheService):
        self.repository = repository
        self.cache = cache

    @evicts_all
    def create_product(self, product_data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Args:
            product_data: Product creation data

        Returns:
            The stored product with its assigned ID

        Raises:
            ProductValidationError: If the name is blank or a value is negative
            DuplicateNameError: If a product with the same name already exists
        """
        self._validate(
            name=product_data.name,
            price=product_data.price,
            stock_quantity=product_data.stock_quantity,
        )

        if self.repository.exists_by_name(product_data.name):
            raise DuplicateNameError(f"Product with name {product_data.name} already exists")

        product = Product(
            name=product_data.name,
            description=product_data.description,
            price=product_data.price,
            stock_quantity=product_data.stock_quantity,
        )
        product = self.repository.save(product)

        logger.info(f"Product #{product.id} '{product.name}' created")
        return ProductResponse.model_validate(product)

    @cached("id:{product_id}", Optional[ProductResponse])
    def get_product_by_id(self, product_id: int) -> Optional[ProductResponse]:
        product = self.repository.find_by_id(product_id)
        return ProductResponse.model_validate(product) if product else None

    @cached("all", List[ProductResponse])
    def get_all_products(self) -> List[ProductResponse]:
        return self._to_responses(self.repository.find_all())

    @cached("name:{name}", Optional[ProductResponse])
    def get_product_by_name(self, name: str) -> Optional[ProductResponse]:
        product = self.repository.find_by_name(name)
        return ProductResponse.model_validate(product) if product else None

    @cached("price:{max_price}", List[ProductResponse])
    def get_products_by_price_less_than_equal(self, max_price: Decimal) -> List[ProductResponse]:
        """Products priced at or below max_price."""
        return self._to_responses(self.repository.find_by_price_less_than_equal(max_price))

    @cached("lowStock:{threshold}", List[ProductResponse])
    def get_low_stock_products(self, threshold: int) -> List[ProductResponse]:
        """Products with stock at or below threshold."""
        return self._to_responses(self.repository.find_low_stock(threshold))

    @evicts_all
    def update_product(self, product_id: int, product_data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product.

        Only fields present in the patch are overwritten; see
        ProductUpdate.changes for how nulls are treated. Name uniqueness is
        not checked here, but the storage constraint still rejects a
        colliding name.

        Args:
            product_id: ID of product to update
            product_data: Partial update data

        Returns:
            The merged product

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        product = self.repository.find_by_id(product_id)

        if not product:
            raise ProductNotFoundError(f"Product not found with id: {product_id}")

        changes = product_data.changes()
        self._validate(**{k: v for k, v in changes.items() if k != "description"})

        for field, value in changes.items():
            setattr(product, field, value)

        product = self.repository.save(product)

        logger.info(f"Product #{product_id} updated ({', '.join(changes) or 'no changes'})")
        return ProductResponse.model_validate(product)

    @evicts_all
    def delete_product(self, product_id: int) -> None:
        """
        Delete a product.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        if not self.repository.exists_by_id(product_id):
            raise ProductNotFoundError(f"Product not found with id: {product_id}")

        self.repository.delete_by_id(product_id)
        logger.info(f"Product #{product_id} deleted")

    def exists_by_name(self, name: str) -> bool:
        return self.repository.exists_by_name(name)

    @staticmethod
    def _validate(
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        stock_quantity: Optional[int] = None,
    ) -> None:
        if name is not None and not name.strip():
            raise ProductValidationError("Product name must not be blank")
        if price is not None and price < 0:
            raise ProductValidationError("Product price must be non-negative")
        if stock_quantity is not None and stock_quantity < 0:
            raise ProductValidationError("Stock quantity must be non-negative")

    @staticmethod
    def _to_responses(products: List[Product]) -> List[ProductResponse]:
        return [ProductResponse.model_validate(p) for p in products]
