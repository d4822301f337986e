from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductBase(CamelModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name (unique)")
    description: Optional[str] = Field(None, description="Product description")
    price: Decimal = Field(
        ..., ge=0, max_digits=12, decimal_places=2, description="Product price (must be non-negative)"
    )
    stock_quantity: int = Field(..., ge=0, description="Available stock (must be non-negative)")


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    pass


class ProductUpdate(CamelModel):
    """
    Schema for a partial product update. All fields are optional.

    A field left out of the payload keeps its current value, and so does
    a field sent as null. To remove a description, send
    ``clearDescription: true`` instead.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Optional[Decimal] = Field(
        None, ge=0, max_digits=12, decimal_places=2, description="Product price"
    )
    stock_quantity: Optional[int] = Field(None, ge=0, description="Available stock")
    clear_description: bool = Field(
        False, description="Remove the description (ignored when a new description is given)"
    )

    def changes(self) -> Dict[str, Any]:
        """Return the fields this patch overwrites, keyed by attribute name."""
        provided = self.model_dump(exclude_unset=True, exclude={"clear_description"})
        changes = {field: value for field, value in provided.items() if value is not None}
        if self.clear_description and "description" not in changes:
            changes["description"] = None
        return changes


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
