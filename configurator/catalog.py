"""Product catalog collaborator.

The engine never fetches data itself. A ProductCatalog hands it one CatalogEntry
per product: the product record plus every category, variant, color, flavor and
color/size compatibility row that belongs to it. InMemoryCatalog is the
reference implementation used by tests and by the YAML store fixtures.

Uncategorized items are filed under implicit categories so that every
dimension goes through the same cardinality rules:

- uncategorized sizes   -> SIZE_CATEGORY_ID   (exclusive: one size per line)
- uncategorized add-ons -> ADDON_CATEGORY_ID  (unbounded)
- flavors               -> FLAVOR_CATEGORY_ID (max = product.max_flavor_count)
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from configurator.errors import UnknownOptionError, UnknownProductError
from configurator.models import (
    CategoryKind,
    ColorOption,
    ColorSizeCompatibility,
    Flavor,
    Product,
    Variant,
    VariationCategory,
)

logger = logging.getLogger(__name__)

SIZE_CATEGORY_ID = "__sizes__"
ADDON_CATEGORY_ID = "__addons__"
FLAVOR_CATEGORY_ID = "__flavors__"

# Implicit categories sort after the store-defined ones
_IMPLICIT_DISPLAY_ORDER = 10_000

Item = Union[Variant, Flavor]


@dataclass
class CatalogEntry:
    """Everything the engine needs to configure one product. Read-only after construction."""
    product: Product
    categories: list[VariationCategory] = field(default_factory=list)
    variants: list[Variant] = field(default_factory=list)
    colors: list[ColorOption] = field(default_factory=list)
    flavors: list[Flavor] = field(default_factory=list)
    compatibility: list[ColorSizeCompatibility] = field(default_factory=list)

    def __post_init__(self):
        self._categories_by_id: dict[str, VariationCategory] = {c.id: c for c in self.categories}
        self._variants_by_id = {v.id: v for v in self.variants}
        self._colors_by_id = {c.id: c for c in self.colors}
        self._flavors_by_id = {f.id: f for f in self.flavors}

        self._implicit = {
            SIZE_CATEGORY_ID: VariationCategory(
                id=SIZE_CATEGORY_ID, name="Size", kind=CategoryKind.SIZE,
                is_exclusive=True, display_order=_IMPLICIT_DISPLAY_ORDER,
            ),
            ADDON_CATEGORY_ID: VariationCategory(
                id=ADDON_CATEGORY_ID, name="Add-ons", kind=CategoryKind.ADDON,
                display_order=_IMPLICIT_DISPLAY_ORDER,
            ),
            FLAVOR_CATEGORY_ID: VariationCategory(
                id=FLAVOR_CATEGORY_ID, name="Flavors", kind=CategoryKind.FLAVOR,
                max_items=self.product.max_flavor_count,
                display_order=_IMPLICIT_DISPLAY_ORDER,
            ),
        }

        # category id -> member records, in display order
        members: dict[str, list[Item]] = {}
        for variant in self.variants:
            members.setdefault(self._home_category_id(variant), []).append(variant)
        members[FLAVOR_CATEGORY_ID] = list(self.flavors)
        self._members: dict[str, list[Item]] = {
            cat_id: sorted(items, key=lambda i: (i.display_order, i.name))
            for cat_id, items in members.items()
        }
        self._item_category = {
            item.id: cat_id
            for cat_id, items in self._members.items()
            for item in items
        }

        for row in self.compatibility:
            if row.color_id not in self._colors_by_id or row.size_id not in self._variants_by_id:
                logger.warning(
                    f"Compatibility row ({row.color_id}, {row.size_id}) references an unknown "
                    f"color or size on product '{self.product.id}'"
                )

    def _home_category_id(self, variant: Variant) -> str:
        implicit_id = SIZE_CATEGORY_ID if variant.kind == CategoryKind.SIZE else ADDON_CATEGORY_ID
        if variant.category_id is None:
            return implicit_id

        category = self._categories_by_id.get(variant.category_id)
        if category is None:
            logger.warning(
                f"Variant '{variant.id}' references unknown category '{variant.category_id}', "
                f"filing it under '{implicit_id}'"
            )
            return implicit_id
        if category.kind != variant.kind:
            logger.warning(
                f"Variant '{variant.id}' is a {variant.kind.value} but category "
                f"'{category.id}' holds {category.kind.value} items"
            )
        return category.id

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def category(self, category_id: str) -> VariationCategory:
        if category_id in self._categories_by_id:
            return self._categories_by_id[category_id]
        if category_id in self._implicit:
            return self._implicit[category_id]
        raise UnknownOptionError(category_id, f"categories of '{self.product.id}'")

    def variant(self, variant_id: str) -> Variant:
        try:
            return self._variants_by_id[variant_id]
        except KeyError:
            raise UnknownOptionError(variant_id, f"variants of '{self.product.id}'") from None

    def color(self, color_id: str) -> ColorOption:
        try:
            return self._colors_by_id[color_id]
        except KeyError:
            raise UnknownOptionError(color_id, f"colors of '{self.product.id}'") from None

    def flavor(self, flavor_id: str) -> Flavor:
        try:
            return self._flavors_by_id[flavor_id]
        except KeyError:
            raise UnknownOptionError(flavor_id, f"flavors of '{self.product.id}'") from None

    def item(self, item_id: str) -> Item:
        """A size, add-on or flavor by id."""
        if item_id in self._variants_by_id:
            return self._variants_by_id[item_id]
        if item_id in self._flavors_by_id:
            return self._flavors_by_id[item_id]
        raise UnknownOptionError(item_id, f"items of '{self.product.id}'")

    def category_of(self, item_id: str) -> VariationCategory:
        """The category an item is selected in (explicit or implicit)."""
        try:
            return self.category(self._item_category[item_id])
        except KeyError:
            raise UnknownOptionError(item_id, f"items of '{self.product.id}'") from None

    def item_ids_in(self, category_id: str) -> list[str]:
        """Member ids of a category in display order."""
        return [item.id for item in self._members.get(category_id, [])]

    def items_in(self, category_id: str) -> list[Item]:
        return list(self._members.get(category_id, []))

    # -------------------------------------------------------------------------
    # Dimensions
    # -------------------------------------------------------------------------

    def is_dimension_enabled(self, kind: CategoryKind) -> bool:
        if kind == CategoryKind.SIZE:
            return self.product.has_sizes
        if kind == CategoryKind.FLAVOR:
            return self.product.is_multi_flavor
        return True

    def categories_of(self, kind: CategoryKind) -> list[VariationCategory]:
        """Active categories of one dimension that hold items for this product, in display order.

        Disabled dimensions (has_sizes / is_multi_flavor off) yield nothing.
        """
        if not self.is_dimension_enabled(kind):
            return []
        if kind == CategoryKind.FLAVOR:
            return [self._implicit[FLAVOR_CATEGORY_ID]]

        found = [
            self.category(cat_id)
            for cat_id, items in self._members.items()
            if cat_id != FLAVOR_CATEGORY_ID and items
        ]
        return sorted(
            (c for c in found if c.kind == kind and c.is_active),
            key=lambda c: (c.display_order, c.name),
        )

    def relevant_categories(self) -> list[VariationCategory]:
        """Size and add-on categories checked at confirmation, in display order."""
        categories = self.categories_of(CategoryKind.SIZE) + self.categories_of(CategoryKind.ADDON)
        return sorted(categories, key=lambda c: (c.display_order, c.name))

    def sizes(self) -> list[Variant]:
        return [
            v for c in self.categories_of(CategoryKind.SIZE)
            for v in self.items_in(c.id)
        ]

    def addons(self) -> list[Variant]:
        return [
            v for c in self.categories_of(CategoryKind.ADDON)
            for v in self.items_in(c.id)
        ]

    def offered_colors(self) -> list[ColorOption]:
        if not self.product.has_colors:
            return []
        return sorted(self.colors, key=lambda c: (c.display_order, c.name))

    def offered_flavors(self) -> list[Flavor]:
        if not self.product.is_multi_flavor:
            return []
        return self.items_in(FLAVOR_CATEGORY_ID)


class ProductCatalog(Protocol):
    """Upstream source of catalog entries."""

    def get_entry(self, product_id: str) -> CatalogEntry:
        ...


class InMemoryCatalog:
    """Dictionary-backed ProductCatalog.

    Store-level categories (StoreSettings) are shared by every product added to
    the catalog; products may also carry their own categories.
    """

    def __init__(self, shared_categories: Optional[list[VariationCategory]] = None):
        self.shared_categories = list(shared_categories or [])
        self._entries: dict[str, CatalogEntry] = {}

    def add(self, entry: CatalogEntry) -> CatalogEntry:
        if self.shared_categories:
            own_ids = {c.id for c in entry.categories}
            categories = entry.categories + [c for c in self.shared_categories if c.id not in own_ids]
            entry = CatalogEntry(
                product=entry.product,
                categories=categories,
                variants=entry.variants,
                colors=entry.colors,
                flavors=entry.flavors,
                compatibility=entry.compatibility,
            )
        self._entries[entry.product.id] = entry
        return entry

    def get_entry(self, product_id: str) -> CatalogEntry:
        try:
            return self._entries[product_id]
        except KeyError:
            raise UnknownProductError(product_id) from None

    def product_ids(self) -> list[str]:
        return list(self._entries)

    @classmethod
    def from_dict(cls, data: dict, shared_categories: Optional[list[VariationCategory]] = None) -> "InMemoryCatalog":
        """Build a catalog from the `products:` layout used by tenants/<store>/catalog.yaml."""
        catalog = cls(shared_categories)
        for raw in data.get("products", []):
            product = Product(**{k: v for k, v in raw.items() if k not in _NESTED_KEYS})
            catalog.add(CatalogEntry(
                product=product,
                categories=[VariationCategory(**c) for c in raw.get("categories", [])],
                variants=[Variant(**v) for v in raw.get("variants", [])],
                colors=[ColorOption(**c) for c in raw.get("colors", [])],
                flavors=[Flavor(**f) for f in raw.get("flavors", [])],
                compatibility=[ColorSizeCompatibility(**r) for r in raw.get("compatibility", [])],
            ))
        logger.info(f"Catalog loaded with {len(catalog._entries)} product(s)")
        return catalog


_NESTED_KEYS = {"categories", "variants", "colors", "flavors", "compatibility"}
