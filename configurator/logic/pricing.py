"""Price Aggregator.

Computes the unit price and line total of a selection:

1. unit_base = price of the single resolved size (absolute override), else the
   promotional price when present and lower than the base price, else the base
   price. A size price is never a delta on top of base/promotional price.
2. unit_base += color price adjustment (signed)
3. addon_subtotal  = sum(price * quantity) over selected add-ons
4. flavor_subtotal = sum(price * quantity) over selected flavors
5. line_total = (unit_base + addon_subtotal + flavor_subtotal) * overall quantity

Quantity defaults to 1 for items without allow_quantity. All sums are exact
Decimals; rounding is left to display (see money.round_money).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from configurator.catalog import CatalogEntry
from configurator.logic.money import ZERO, round_money, to_decimal
from configurator.logic.state import SelectionState
from configurator.models import CategoryKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceBreakdown:
    """Every intermediate figure of one price computation."""
    base_price: Decimal          # base or promotional, whichever applies
    size_price: Optional[Decimal]
    color_adjustment: Decimal
    unit_base: Decimal
    addon_subtotal: Decimal
    flavor_subtotal: Decimal
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    def to_dict(self) -> dict:
        """Display-rounded figures as strings."""
        return {
            "base_price": str(round_money(self.base_price)),
            "size_price": str(round_money(self.size_price)) if self.size_price is not None else None,
            "color_adjustment": str(round_money(self.color_adjustment)),
            "unit_base": str(round_money(self.unit_base)),
            "addon_subtotal": str(round_money(self.addon_subtotal)),
            "flavor_subtotal": str(round_money(self.flavor_subtotal)),
            "unit_price": str(round_money(self.unit_price)),
            "quantity": self.quantity,
            "line_total": str(round_money(self.line_total)),
        }


class PriceAggregator:
    """Pure price computation for one catalog entry."""

    def __init__(self, entry: CatalogEntry):
        self.entry = entry

    def base_price(self) -> Decimal:
        """Promotional price when present and lower than the base price."""
        product = self.entry.product
        base = to_decimal(product.price)
        if product.promotional_price is not None:
            promotional = to_decimal(product.promotional_price)
            if promotional < base:
                return promotional
        return base

    def size_price(self, selection: SelectionState) -> Optional[Decimal]:
        size_id = selection.resolved_size_id(self.entry)
        if size_id is None:
            return None
        return to_decimal(self.entry.variant(size_id).price)

    def color_adjustment(self, selection: SelectionState) -> Decimal:
        if selection.color_id is None:
            return ZERO
        return to_decimal(self.entry.color(selection.color_id).price_adjustment)

    def unit_base(self, selection: SelectionState) -> Decimal:
        size_price = self.size_price(selection)
        base = size_price if size_price is not None else self.base_price()
        return base + self.color_adjustment(selection)

    def _subtotal(self, selection: SelectionState, kind: CategoryKind) -> Decimal:
        if not self.entry.is_dimension_enabled(kind):
            return ZERO

        total = ZERO
        for category_id, item_ids in selection.selections.items():
            if self.entry.category(category_id).kind != kind:
                continue
            for item_id in item_ids:
                item = self.entry.item(item_id)
                quantity = selection.quantity_of(item_id) if item.allow_quantity else 1
                total += to_decimal(item.price) * quantity
        return total

    def addon_subtotal(self, selection: SelectionState) -> Decimal:
        return self._subtotal(selection, CategoryKind.ADDON)

    def flavor_subtotal(self, selection: SelectionState) -> Decimal:
        return self._subtotal(selection, CategoryKind.FLAVOR)

    def unit_price(self, selection: SelectionState) -> Decimal:
        return (
            self.unit_base(selection)
            + self.addon_subtotal(selection)
            + self.flavor_subtotal(selection)
        )

    def compute_line_total(self, selection: SelectionState) -> Decimal:
        return self.unit_price(selection) * selection.quantity

    def breakdown(self, selection: SelectionState) -> PriceBreakdown:
        size_price = self.size_price(selection)
        unit_base = self.unit_base(selection)
        addon_subtotal = self.addon_subtotal(selection)
        flavor_subtotal = self.flavor_subtotal(selection)
        unit_price = unit_base + addon_subtotal + flavor_subtotal
        line_total = unit_price * selection.quantity

        logger.debug(
            f"Priced '{self.entry.product.id}': unit {unit_price} x {selection.quantity} = {line_total}"
        )
        return PriceBreakdown(
            base_price=self.base_price(),
            size_price=size_price,
            color_adjustment=self.color_adjustment(selection),
            unit_base=unit_base,
            addon_subtotal=addon_subtotal,
            flavor_subtotal=flavor_subtotal,
            unit_price=unit_price,
            quantity=selection.quantity,
            line_total=line_total,
        )
