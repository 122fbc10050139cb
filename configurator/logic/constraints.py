"""Category Constraint Validator.

Enforces per-category cardinality for every dimension (sizes, add-ons and
flavors share one VariationCategory contract, tagged by kind):

- RADIO REPLACE: in an exclusive category, selecting an item replaces whatever
  was selected there. This always succeeds.
- LIMIT: in a non-exclusive category, selecting succeeds only while
  selected_count < max_items. Otherwise the prior state is returned unchanged
  with a LimitExceeded signal. Nothing is ever evicted.
- DESELECT: toggling an already-selected item clears it. Always succeeds.

min_items is NOT enforced here: under-selection is a normal part of browsing
and is only checked by CartLineBuilder at confirmation.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from configurator.catalog import CatalogEntry
from configurator.errors import UnknownOptionError
from configurator.logic.failures import LimitExceeded, ValidationFailure
from configurator.logic.state import SelectionState
from configurator.models import VariationCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a gated mutation: the new state, or the unchanged prior state plus the reason."""
    state: SelectionState
    rejection: Optional[ValidationFailure] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class CategoryConstraintValidator:
    """Accepts or rejects selection mutations for one catalog entry."""

    def __init__(self, entry: CatalogEntry):
        self.entry = entry

    def try_toggle(self, category_id: str, item_id: str, selection: SelectionState) -> ToggleResult:
        """Toggle one item inside its category.

        Raises:
            UnknownOptionError: If the category is unknown or the item is not one of its members.
        """
        category = self.entry.category(category_id)
        if item_id not in self.entry.item_ids_in(category_id):
            raise UnknownOptionError(item_id, f"category '{category_id}'")

        current = selection.items_in(category_id)

        if item_id in current:
            remaining = tuple(i for i in current if i != item_id)
            logger.debug(f"Deselected '{item_id}' in '{category_id}'")
            return ToggleResult(selection.with_items(category_id, remaining))

        if category.is_exclusive:
            return ToggleResult(self._radio_replace(category, item_id, selection))

        limit = category.effective_max_items
        if limit is not None and len(current) >= limit:
            logger.info(
                f"Rejected '{item_id}': category '{category_id}' already holds {len(current)}/{limit}"
            )
            return ToggleResult(selection, LimitExceeded(category_id=category_id, max_items=limit))

        logger.debug(f"Selected '{item_id}' in '{category_id}' ({len(current) + 1}/{limit or 'unbounded'})")
        return ToggleResult(self._start_counter(item_id, selection.with_items(category_id, current + (item_id,))))

    def _radio_replace(self, category: VariationCategory, item_id: str, selection: SelectionState) -> SelectionState:
        """Exclusive categories swap the previous choice for the new one."""
        previous = selection.items_in(category.id)
        if previous:
            logger.debug(f"Radio replace in '{category.id}': {list(previous)} -> '{item_id}'")
        return self._start_counter(item_id, selection.with_items(category.id, (item_id,)))

    def _start_counter(self, item_id: str, selection: SelectionState) -> SelectionState:
        if self.entry.item(item_id).allow_quantity:
            return selection.with_item_quantity(item_id, 1)
        return selection

    # =========================================================================
    # QUANTITIES
    # =========================================================================

    def adjust_quantity(self, item_id: str, delta: int, selection: SelectionState) -> SelectionState:
        """Increment/decrement the counter of a selected allow_quantity item, floored at 1."""
        return self.set_quantity(item_id, selection.quantity_of(item_id) + delta, selection)

    def set_quantity(self, item_id: str, quantity: int, selection: SelectionState) -> SelectionState:
        """Set the counter of a selected allow_quantity item, floored at 1.

        Raises:
            ValueError: If the item does not allow quantities or is not selected.
        """
        item = self.entry.item(item_id)
        if not item.allow_quantity:
            raise ValueError(f"'{item_id}' does not allow a quantity")

        category = self.entry.category_of(item_id)
        if not selection.is_selected(category.id, item_id):
            raise ValueError(f"'{item_id}' is not selected")

        return selection.with_item_quantity(item_id, max(1, int(quantity)))

    # =========================================================================
    # WHOLE-STATE CHECKS
    # =========================================================================

    def over_limit(self, selection: SelectionState) -> list[LimitExceeded]:
        """Categories holding more than their maximum, in display order.

        Unreachable through try_toggle; only a state built elsewhere can get here.
        """
        categories = sorted(
            (self.entry.category(category_id) for category_id in selection.selections),
            key=lambda c: (c.display_order, c.name),
        )
        violations = []
        for category in categories:
            limit = category.effective_max_items
            if limit is not None and selection.count_in(category.id) > limit:
                violations.append(LimitExceeded(category_id=category.id, max_items=limit))
        return violations
