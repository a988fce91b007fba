"""
Pydantic domain models for ASIN Lookup.

These models represent the data flowing through the lookup pipeline:
ProviderResult → Product (+ ListingContent) → LookupResult

Attributes are snake_case; every model serializes with camelCase aliases
(``reviewCount``, ``lastUpdated``, ``imageLinks``) to keep the frontend's
wire contract.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")

IMAGE_LINK_SEPARATOR = " | "

# Opaque operator-owned cell value: the pipeline copies it through untouched.
TemplateValue = str | int | float | bool | None


class ProductSource(StrEnum):
    """Provenance tag for a product record."""
    AMAZON_HELPER = "amazon-helper"
    MANUAL = "manual"
    API = "api"


class ProductState(StrEnum):
    """Cache state of a single ASIN at lookup time."""
    ABSENT = "absent"
    STALE = "stale"
    FRESH_INCOMPLETE = "fresh_incomplete"
    FRESH_COMPLETE = "fresh_complete"


class LookupStatus(StrEnum):
    """What the lookup pipeline did for an ASIN."""
    CACHED = "cached"          # served from the store, no write
    FETCHED = "fetched"        # fetched from the provider and upserted
    GENERATED = "generated"    # listing content (re)generated on a cached record
    NOT_FOUND = "not_found"    # provider had no item (or was unreachable)


class FetchOutcome(StrEnum):
    """Result kinds of a provider fetch."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class RecordStatus(StrEnum):
    """Lifecycle status for accounts and categories."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ColumnType(StrEnum):
    """Allowed category template column types."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    URL = "url"
    TEXTAREA = "textarea"


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Product ──────────────────────────────────────────────────


class EbayListing(CamelModel):
    """Derived eBay sub-record. Empty strings mean "not yet generated"."""

    title: str = ""
    description: str = ""
    image: str = ""
    image_links: str = ""
    price: str = ""
    item_id: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_generated(self) -> bool:
        return bool(self.title)


class SpreadsheetColumn(CamelModel):
    id: str
    name: str = ""
    type: str = "text"
    width: int | None = None


class SpreadsheetRow(CamelModel):
    id: str
    cells: dict[str, str] = Field(default_factory=dict)


class Spreadsheet(CamelModel):
    """Per-product spreadsheet: ordered columns and ordered rows of cells."""

    columns: list[SpreadsheetColumn] = Field(default_factory=list)
    rows: list[SpreadsheetRow] = Field(default_factory=list)


class Product(CamelModel):
    """A cached Amazon product with its derived eBay listing content."""

    asin: str = Field(..., pattern=ASIN_RE.pattern)
    title: str = ""
    brand: str = ""
    price: str = ""
    description: str = ""
    images: list[str] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    source: ProductSource = ProductSource.AMAZON_HELPER
    ebay: EbayListing = Field(default_factory=EbayListing)
    last_updated: datetime | None = None

    # Operator-owned associations, never interpreted by the lookup pipeline
    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    template_values: dict[str, TemplateValue] = Field(default_factory=dict)
    spreadsheet: Spreadsheet = Field(default_factory=Spreadsheet)

    @property
    def has_images(self) -> bool:
        return len(self.images) > 0

    @classmethod
    def placeholder(cls, asin: str) -> "Product":
        """Synthetic "not found" record that keeps batch positions aligned."""
        return cls(asin=asin, title="Not found")

    def to_response(self) -> dict:
        """Serialize for API responses (camelCase, JSON-safe)."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class ListingContent:
    """eBay listing copy derived from a product."""

    title: str
    description: str
    image: str = ""
    image_links: list[str] = field(default_factory=list)

    @property
    def image_links_text(self) -> str:
        return IMAGE_LINK_SEPARATOR.join(self.image_links)

    def to_ebay_fields(self) -> dict[str, str]:
        """Store columns written by content generation (price/item_id excluded)."""
        return {
            "ebay_title": self.title,
            "ebay_description": self.description,
            "ebay_image": self.image,
            "ebay_image_links": self.image_links_text,
        }

    @classmethod
    def empty(cls) -> "ListingContent":
        return cls(title="", description="")


# ─── Pipeline Results ─────────────────────────────────────────


@dataclass
class ProviderResult:
    """Outcome of fetching one ASIN from the catalog provider."""

    asin: str
    outcome: FetchOutcome
    fields: dict[str, Any] = field(default_factory=dict)
    error: str = ""

    @property
    def found(self) -> bool:
        return self.outcome == FetchOutcome.FOUND


@dataclass
class LookupResult:
    """Outcome of running the cache state machine for one ASIN."""

    asin: str
    status: LookupStatus
    state: ProductState
    product: Product | None = None
    content_error: str = ""

    @property
    def found(self) -> bool:
        return self.product is not None and self.status != LookupStatus.NOT_FOUND

    def to_dict(self) -> dict:
        return {
            "asin": self.asin,
            "status": self.status.value,
            "state": self.state.value,
            "product": self.product.to_response() if self.product else None,
            "content_error": self.content_error,
        }


# ─── Accounts & Categories ────────────────────────────────────


class Account(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    description: str = ""
    status: RecordStatus = RecordStatus.ACTIVE
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TemplateColumn(CamelModel):
    column_id: str
    column_name: str
    column_type: ColumnType = ColumnType.TEXT
    order: int = 0


class Category(CamelModel):
    id: uuid.UUID
    name: str
    account_id: uuid.UUID
    description: str = ""
    status: RecordStatus = RecordStatus.ACTIVE
    template_columns: list[TemplateColumn] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


def normalize_asin(asin: str) -> str:
    """Strip and upper-case an ASIN as received from a caller."""
    return (asin or "").strip().upper()


def is_valid_asin(asin: str) -> bool:
    return bool(ASIN_RE.match(asin))
