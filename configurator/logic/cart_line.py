"""Cart Line Builder.

Runs the full ordered validation of a SelectionState and, on success, freezes it
into an immutable CartLine. Only the first failing rule is reported so the UI
can highlight exactly one unmet requirement:

1. has_sizes and no resolved size           -> MissingRequiredSize
2. has_colors and no color                  -> MissingRequiredColor
3. resolved color + size are incompatible   -> IncompatibleColorSize
4. multi-flavor, flavors required, none     -> InsufficientFlavors
5. relevant category below min_items        -> CategoryBelowMinimum
6. category above its effective maximum     -> LimitExceeded
7. chosen option not offered                -> OptionUnavailable

Rules 6 and 7 only fire for states that did not go through the session gates
(e.g. a saved cart restored after the catalogue changed).

Building is atomic: either a complete line or a failure, never a partial line.
"""

import logging
from dataclasses import asdict, dataclass, replace
from decimal import Decimal
from typing import Optional, Union

from configurator.catalog import CatalogEntry, Item
from configurator.logic.availability import VariantAvailabilityResolver
from configurator.logic.constraints import CategoryConstraintValidator
from configurator.logic.failures import (
    CategoryBelowMinimum,
    IncompatibleColorSize,
    InsufficientFlavors,
    MissingRequiredColor,
    MissingRequiredSize,
    OptionUnavailable,
    ValidationFailure,
)
from configurator.logic.money import round_money, to_decimal
from configurator.logic.pricing import PriceAggregator
from configurator.logic.state import SelectionState
from configurator.models import CategoryKind, VariationCategory

logger = logging.getLogger(__name__)


# =============================================================================
# CART LINE
# =============================================================================

@dataclass(frozen=True)
class SizeLine:
    id: str
    name: str
    price: Decimal
    quantity: int = 1


@dataclass(frozen=True)
class ColorLine:
    id: str
    name: str
    hex_code: str
    price_adjustment: Decimal


@dataclass(frozen=True)
class ItemLine:
    """One add-on or flavor on a cart line."""
    id: str
    name: str
    category_id: str
    category_name: str
    price: Decimal
    quantity: int = 1

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class CartLine:
    """Validated, price-accurate snapshot of one configured product."""
    product_id: str
    product_name: str
    store_id: str
    product_category: Optional[str]
    size: Optional[SizeLine]
    color: Optional[ColorLine]
    addons: tuple[ItemLine, ...]
    flavors: tuple[ItemLine, ...]
    note: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @property
    def display_total(self) -> Decimal:
        return round_money(self.line_total)

    def signature(self) -> tuple:
        """Identity of the configuration, ignoring the overall quantity.

        Two lines with the same signature describe the same purchasable thing.
        """
        return (
            self.product_id,
            self.size.id if self.size else None,
            self.color.id if self.color else None,
            tuple((a.id, a.quantity) for a in self.addons),
            tuple((f.id, f.quantity) for f in self.flavors),
            self.note,
        )

    def with_quantity(self, quantity: int) -> "CartLine":
        quantity = max(1, int(quantity))
        return replace(self, quantity=quantity, line_total=self.unit_price * quantity)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["unit_price"] = str(round_money(self.unit_price))
        data["line_total"] = str(round_money(self.line_total))
        return data


# =============================================================================
# BUILDER
# =============================================================================

class CartLineBuilder:
    """Validates and converts SelectionStates of one catalog entry into CartLines."""

    def __init__(
        self,
        entry: CatalogEntry,
        resolver: Optional[VariantAvailabilityResolver] = None,
        pricing: Optional[PriceAggregator] = None,
        validator: Optional[CategoryConstraintValidator] = None,
    ):
        self.entry = entry
        self.resolver = resolver or VariantAvailabilityResolver(entry)
        self.pricing = pricing or PriceAggregator(entry)
        self.validator = validator or CategoryConstraintValidator(entry)

    def validate(self, selection: SelectionState) -> Optional[ValidationFailure]:
        """First failing rule, or None when the selection can be built.

        Raises:
            ValueError: If the selection belongs to another product.
        """
        product = self.entry.product
        if selection.product_id != product.id:
            raise ValueError(
                f"Selection for '{selection.product_id}' cannot be built against '{product.id}'"
            )

        size_id = selection.resolved_size_id(self.entry)

        # Rule 1
        if product.has_sizes and self.entry.sizes() and size_id is None:
            return MissingRequiredSize()

        # Rule 2
        if product.has_colors and self.entry.offered_colors() and selection.color_id is None:
            return MissingRequiredColor()

        # Rule 3
        if selection.color_id is not None and size_id is not None:
            if not self.resolver.is_compatible(selection.color_id, size_id):
                return IncompatibleColorSize(color_id=selection.color_id, size_id=size_id)

        # Rule 4
        if (
            product.is_multi_flavor
            and product.flavors_required
            and self.entry.offered_flavors()
            and not selection.flavor_ids
        ):
            return InsufficientFlavors()

        # Rule 5
        for category in self.entry.relevant_categories():
            selected = selection.count_in(category.id)
            if selected < category.min_items:
                return CategoryBelowMinimum(
                    category_id=category.id, min_items=category.min_items, selected=selected
                )

        # Rule 6
        over_limit = self.validator.over_limit(selection)
        if over_limit:
            return over_limit[0]

        # Rule 7
        return self._first_unavailable(selection)

    def _first_unavailable(self, selection: SelectionState) -> Optional[OptionUnavailable]:
        if selection.color_id is not None:
            color = self.entry.color(selection.color_id)
            if not self.entry.product.has_colors:
                return OptionUnavailable(option_id=color.id, reason="product has no colors")
            if not color.is_available:
                return OptionUnavailable(option_id=color.id, reason="out of stock")

        for category_id, item_ids in selection.selections.items():
            category = self.entry.category(category_id)
            for item_id in item_ids:
                item = self.entry.item(item_id)
                if not self.entry.is_dimension_enabled(category.kind):
                    return OptionUnavailable(
                        option_id=item_id, reason=f"product has no {category.kind.value} options"
                    )
                if not category.is_active:
                    return OptionUnavailable(option_id=item_id, reason=f"category '{category_id}' is inactive")
                if not item.is_available:
                    return OptionUnavailable(option_id=item_id, reason="out of stock")
        return None

    def build(self, selection: SelectionState) -> Union[CartLine, ValidationFailure]:
        failure = self.validate(selection)
        if failure is not None:
            logger.info(f"Cart line for '{selection.product_id}' rejected: {failure.code.value}")
            return failure

        product = self.entry.product
        line = CartLine(
            product_id=product.id,
            product_name=product.name,
            store_id=product.store_id,
            product_category=product.category,
            size=self._size_line(selection),
            color=self._color_line(selection),
            addons=self._item_lines(selection, self.entry.categories_of(CategoryKind.ADDON)),
            flavors=self._item_lines(selection, self.entry.categories_of(CategoryKind.FLAVOR)),
            note=selection.note,
            quantity=selection.quantity,
            unit_price=self.pricing.unit_price(selection),
            line_total=self.pricing.compute_line_total(selection),
        )
        logger.debug(f"Built cart line for '{product.id}': total {line.line_total}")
        return line

    def _size_line(self, selection: SelectionState) -> Optional[SizeLine]:
        size_id = selection.resolved_size_id(self.entry)
        if size_id is None:
            return None
        size = self.entry.variant(size_id)
        return SizeLine(
            id=size.id,
            name=size.name,
            price=to_decimal(size.price),
            quantity=selection.quantity_of(size.id) if size.allow_quantity else 1,
        )

    def _color_line(self, selection: SelectionState) -> Optional[ColorLine]:
        if selection.color_id is None:
            return None
        color = self.entry.color(selection.color_id)
        return ColorLine(
            id=color.id,
            name=color.name,
            hex_code=color.hex_code,
            price_adjustment=to_decimal(color.price_adjustment),
        )

    def _item_lines(self, selection: SelectionState, categories: list[VariationCategory]) -> tuple[ItemLine, ...]:
        """Chosen items ordered by category display order, then item display order."""
        lines = []
        for category in categories:
            chosen = set(selection.items_in(category.id))
            for item in self.entry.items_in(category.id):
                if item.id in chosen:
                    lines.append(self._item_line(selection, category, item))
        return tuple(lines)

    @staticmethod
    def _item_line(selection: SelectionState, category: VariationCategory, item: Item) -> ItemLine:
        return ItemLine(
            id=item.id,
            name=item.name,
            category_id=category.id,
            category_name=category.name,
            price=to_decimal(item.price),
            quantity=selection.quantity_of(item.id) if item.allow_quantity else 1,
        )
