"""Shared fixtures for the configurator test suite.

Catalog entries are built in code so each test pins exact prices and flags.
The demo_store fixtures load the REAL tenant files (tenants/demo_store/).
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure the project root is importable
PACKAGE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = PACKAGE_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from configurator.catalog import CatalogEntry, InMemoryCatalog
from configurator.config_loader import get_config, load_catalog
from configurator.logic.state import SelectionState
from configurator.models import (
    CategoryKind,
    ColorOption,
    ColorSizeCompatibility,
    Flavor,
    Product,
    Variant,
    VariationCategory,
)


class RecordingCartStore:
    """CartStore double that records every appended line."""

    def __init__(self):
        self.lines = []

    def append(self, line):
        self.lines.append(line)
        return f"line-{len(self.lines)}"


# =============================================================================
# CATALOG ENTRY FIXTURES
# =============================================================================

@pytest.fixture
def tee_entry():
    """T-shirt: sizes S/M/L (10/12/14), colors white/black(+2)/red(-1), red+L unavailable."""
    return CatalogEntry(
        product=Product(
            id="tee", name="Tee", store_id="shop", category="Apparel",
            price=Decimal("50.00"), has_sizes=True, has_colors=True,
        ),
        categories=[
            VariationCategory(id="sizes", name="Size", kind=CategoryKind.SIZE, is_exclusive=True, display_order=0),
            VariationCategory(id="extras", name="Extras", max_items=2, display_order=1),
        ],
        variants=[
            Variant(id="s", name="S", kind=CategoryKind.SIZE, category_id="sizes", price=Decimal("10.00"), display_order=0),
            Variant(id="m", name="M", kind=CategoryKind.SIZE, category_id="sizes", price=Decimal("12.00"), display_order=1),
            Variant(id="l", name="L", kind=CategoryKind.SIZE, category_id="sizes", price=Decimal("14.00"), display_order=2),
            Variant(id="patch", name="Patch", category_id="extras", price=Decimal("1.50"), allow_quantity=True),
            Variant(id="gift-wrap", name="Gift wrap", price=Decimal("3.00")),
        ],
        colors=[
            ColorOption(id="white", name="White", hex_code="#FFFFFF", display_order=0),
            ColorOption(id="black", name="Black", hex_code="#1A1A1A", price_adjustment=Decimal("2.00"), display_order=1),
            ColorOption(id="red", name="Red", hex_code="#C0392B", price_adjustment=Decimal("-1.00"), display_order=2),
        ],
        compatibility=[
            ColorSizeCompatibility(color_id="red", size_id="l", is_available=False),
            ColorSizeCompatibility(color_id="black", size_id="s", is_available=True),
        ],
    )


@pytest.fixture
def pizza_entry():
    """Pizza: up to 2 flavors, exclusive crust, toppings max 2, sauces min 2, uncategorized soda."""
    return CatalogEntry(
        product=Product(
            id="pizza", name="Pizza", store_id="shop", category="Pizzas",
            price=Decimal("40.00"), is_multi_flavor=True, max_flavor_count=2,
        ),
        categories=[
            VariationCategory(id="crust", name="Crust", is_exclusive=True, display_order=1),
            VariationCategory(id="toppings", name="Toppings", max_items=2, display_order=2),
            VariationCategory(id="sauces", name="Sauces", min_items=2, display_order=3),
        ],
        variants=[
            Variant(id="thin", name="Thin", category_id="crust", price=Decimal("0"), display_order=0),
            Variant(id="stuffed", name="Stuffed", category_id="crust", price=Decimal("8.00"), display_order=1),
            Variant(id="cheese", name="Cheese", category_id="toppings", price=Decimal("4.50"), display_order=0),
            Variant(id="bacon", name="Bacon", category_id="toppings", price=Decimal("5.00"), display_order=1),
            Variant(id="olives", name="Olives", category_id="toppings", price=Decimal("3.00"), display_order=2),
            Variant(id="bbq", name="BBQ", category_id="sauces", price=Decimal("1.00"), display_order=0),
            Variant(id="garlic", name="Garlic", category_id="sauces", price=Decimal("1.00"), display_order=1),
            Variant(id="pesto", name="Pesto", category_id="sauces", price=Decimal("2.00"), display_order=2),
            Variant(id="soda", name="Soda", price=Decimal("6.00"), allow_quantity=True),
        ],
        flavors=[
            Flavor(id="margherita", name="Margherita", price=Decimal("0"), display_order=0),
            Flavor(id="pepperoni", name="Pepperoni", price=Decimal("4.00"), display_order=1),
            Flavor(id="veggie", name="Veggie", price=Decimal("3.00"), is_available=False, display_order=2),
            Flavor(id="tuna", name="Tuna", price=Decimal("5.00"), allow_quantity=True, display_order=3),
        ],
    )


@pytest.fixture
def trivial_entry():
    """Sticker: no sizes, colors, add-ons or flavors."""
    return CatalogEntry(
        product=Product(id="sticker", name="Sticker", store_id="shop", price=Decimal("4.90")),
    )


@pytest.fixture
def promo_entry():
    """Product priced 10.00 with a promotional price of 8.00."""
    return CatalogEntry(
        product=Product(id="mug", name="Mug", price=Decimal("10.00"), promotional_price=Decimal("8.00")),
    )


@pytest.fixture
def catalog(tee_entry, pizza_entry, trivial_entry):
    catalog = InMemoryCatalog()
    for entry in (tee_entry, pizza_entry, trivial_entry):
        catalog.add(entry)
    return catalog


# =============================================================================
# STATE FIXTURES
# =============================================================================

@pytest.fixture
def tee_state():
    """Empty selection for the tee."""
    return SelectionState.empty("tee")


@pytest.fixture
def pizza_state():
    """Empty selection for the pizza."""
    return SelectionState.empty("pizza")


@pytest.fixture
def cart_store():
    return RecordingCartStore()


# =============================================================================
# DEMO STORE FIXTURES
# =============================================================================

@pytest.fixture
def demo_config():
    """Load the real demo_store config (not mocked)."""
    return get_config("demo_store")


@pytest.fixture
def demo_catalog():
    return load_catalog("demo_store")
