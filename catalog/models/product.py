from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from catalog.database import Base


class Product(Base):
    """
    Product model representing items in the catalog.

    Attributes:
        id: Unique identifier for the product
        name: Product name (unique)
        description: Optional free-form description
        price: Product price as a fixed-point decimal (must be non-negative)
        stock_quantity: Available quantity (must be non-negative)
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        UniqueConstraint("name", name="uq_products_name"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="check_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock_quantity={self.stock_quantity})>"
