"""
Catalog Backend — Product SQLAlchemy Model
==========================================

What:  ORM model representing the `products` table.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by ProductStore for every CRUD operation.

Table Design Rationale:
    - pk: store-internal surrogate key. Never leaves the service.
    - id: application-level integer the clients address products by.
      UNIQUE so two products can never share an id, even when two creates
      race for the same "next" id.
    - title / description / category / image: NOT NULL strings; the API
      schemas additionally reject empty strings.
    - price: floating point, matching the JSON `number` the API accepts.
"""

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog.database import Base


class Product(Base):
    """A catalog product as persisted by ProductStore."""

    __tablename__ = "products"

    pk: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-internal surrogate key",
    )

    id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
        comment="Application-level product identifier",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    # URLs can be long (CDN query strings); 2048 is the practical browser limit
    image: Mapped[str] = mapped_column(String(2048), nullable=False)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title}')>"
