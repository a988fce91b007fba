"""
SQLAlchemy 2.0 ORM models for ASIN Lookup.

All models use the modern Mapped/mapped_column syntax.
Products are keyed by ASIN. The derived eBay sub-record is stored as flat
``ebay_*`` columns so listing content writes never touch the
operator-owned ``ebay_price`` / ``ebay_item_id``.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Unicode,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SAEnum,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def new_uuid() -> uuid.UUID:
    """Generate a new UUID4."""
    return uuid.uuid4()


def empty_spreadsheet() -> dict:
    return {"columns": [], "rows": []}


# ─── Accounts & Categories ────────────────────────────────────


class Account(Base):
    """A seller account that products and categories are grouped under."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(Unicode(200), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Unicode(320), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(
        SAEnum("active", "inactive", name="record_status"),
        default="active",
        nullable=False,
    )
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class Category(Base):
    """A product category under an account, carrying the template columns."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(Unicode(200), nullable=False)
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(
        SAEnum("active", "inactive", name="record_status"),
        default="active",
        nullable=False,
    )
    template_columns: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("name", "account_id", name="uq_categories_name_account"),
        Index("ix_categories_account_id", "account_id"),
    )


# ─── Products ─────────────────────────────────────────────────


class Product(Base):
    """Cached Amazon product data plus derived eBay listing content."""

    __tablename__ = "products"

    asin: Mapped[str] = mapped_column(String(10), primary_key=True)
    title: Mapped[str] = mapped_column(Unicode(1000), default="", nullable=False)
    brand: Mapped[str] = mapped_column(Unicode(200), default="", nullable=False)
    price: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    source: Mapped[str] = mapped_column(
        SAEnum("amazon-helper", "manual", "api", name="product_source"),
        default="amazon-helper",
        nullable=False,
    )

    # eBay sub-record
    ebay_title: Mapped[str] = mapped_column(Unicode(200), default="", nullable=False)
    ebay_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ebay_image: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ebay_image_links: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ebay_price: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    ebay_item_id: Mapped[str] = mapped_column(String(50), default="", nullable=False)

    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Operator-owned associations
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    template_values: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    spreadsheet: Mapped[dict] = mapped_column(JSON, default=empty_spreadsheet, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_products_account_id", "account_id"),
        Index("ix_products_category_id", "category_id"),
        Index("ix_products_last_updated", "last_updated"),
    )
