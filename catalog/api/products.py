from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from catalog.api.dependencies import get_product_service, require_user
from catalog.schemas.error import ErrorResponse
from catalog.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from catalog.services.product_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    dependencies=[Depends(require_user)],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid credentials"}},
)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new product with a unique name, price and initial stock.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        409: {"model": ErrorResponse, "description": "Product with same name already exists"},
    },
)
def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """
    Create a new product.

    - **name**: Product name, must be unique (required)
    - **description**: Free-form description (optional)
    - **price**: Product price, must be non-negative (required)
    - **stockQuantity**: Initial stock quantity, must be non-negative (required)
    """
    return service.create_product(product_data)


@router.get(
    "",
    response_model=List[ProductResponse],
    summary="List all products",
    description="Get every product in the catalog. Results are cached until the next change.",
)
def list_products(service: ProductService = Depends(get_product_service)):
    """Get all products."""
    return service.get_all_products()


@router.get(
    "/search",
    response_model=List[ProductResponse],
    summary="Search products",
    description="Search by maximum price or low-stock threshold. maxPrice wins when both are given.",
)
def search_products(
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", description="Maximum price (inclusive)"),
    low_stock_threshold: Optional[int] = Query(
        None, alias="lowStockThreshold", description="Stock threshold (inclusive)"
    ),
    service: ProductService = Depends(get_product_service),
):
    """
    Search products.

    With neither parameter this returns every product.
    """
    if max_price is not None:
        return service.get_products_by_price_less_than_equal(max_price)

    if low_stock_threshold is not None:
        return service.get_low_stock_products(low_stock_threshold)

    return service.get_all_products()


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product. Results are cached.",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
def get_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    """Get a product by ID."""
    product = service.get_product_by_id(product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )

    return product


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update product details. Only provided fields will be updated.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        404: {"model": ErrorResponse, "description": "Product not found"},
        409: {"model": ErrorResponse, "description": "Name collides with another product"},
    },
)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    """
    Update a product.

    Partial updates are supported - only include fields you want to change.
    The cache is cleared after the update.
    """
    return service.update_product(product_id, product_data)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Delete a product by ID. The cache is cleared as well.",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
def delete_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    """Delete a product."""
    service.delete_product(product_id)
    return None
