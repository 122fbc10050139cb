"""Pydantic schemas for catalog records consumed by the configurator."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CategoryKind(str, Enum):
    """Dimension a variation category belongs to."""
    SIZE = "size"
    ADDON = "addon"
    FLAVOR = "flavor"


class Product(BaseModel):
    """A purchasable product with its variation flags."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    store_id: str = ""
    category: Optional[str] = Field(None, description="Storefront category name (e.g., 'Pizzas')")
    price: Decimal = Field(..., ge=0, description="Base price")
    promotional_price: Optional[Decimal] = Field(None, ge=0)
    has_sizes: bool = False
    has_colors: bool = False
    is_multi_flavor: bool = False
    max_flavor_count: int = Field(1, ge=1)
    flavors_required: bool = True


class VariationCategory(BaseModel):
    """Cardinality rules for a group of sizes, add-ons or flavors.

    Categories are store-scoped and may be shared by several products.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: CategoryKind = CategoryKind.ADDON
    is_exclusive: bool = False
    min_items: int = Field(0, ge=0)
    max_items: Optional[int] = Field(None, ge=1, description="None = unbounded")
    display_order: int = 0
    is_active: bool = True
    store_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "VariationCategory":
        limit = self.effective_max_items
        if limit is not None and self.min_items > limit:
            raise ValueError(
                f"Category '{self.id}': min_items={self.min_items} exceeds max of {limit}"
            )
        return self

    @property
    def effective_max_items(self) -> Optional[int]:
        """Exclusive categories always cap at one item."""
        if self.is_exclusive:
            return 1
        return self.max_items


class Variant(BaseModel):
    """A size option or an add-on item."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: CategoryKind = CategoryKind.ADDON
    category_id: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    is_available: bool = True
    allow_quantity: bool = False
    display_order: int = 0
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_kind(self) -> "Variant":
        if self.kind == CategoryKind.FLAVOR:
            raise ValueError(f"Variant '{self.id}': flavors are modeled as Flavor records")
        return self


class ColorOption(BaseModel):
    """A color swatch. price_adjustment is a signed delta, not an absolute price."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    hex_code: str = Field(..., description="Color value (e.g., '#1A1A1A')")
    price_adjustment: Decimal = Decimal("0")
    image_url: Optional[str] = None
    is_available: bool = True
    display_order: int = 0


class ColorSizeCompatibility(BaseModel):
    """Explicit availability of one (color, size) pair."""
    model_config = ConfigDict(frozen=True)

    color_id: str
    size_id: str
    is_available: bool = True


class Flavor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal = Field(Decimal("0"), ge=0)
    is_available: bool = True
    allow_quantity: bool = False
    display_order: int = 0
    description: Optional[str] = None
