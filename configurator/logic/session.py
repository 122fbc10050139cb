"""Configuration Session.

One shopper configuring one product. Every user event is routed through the
availability resolver (is the option offered right now?) and the constraint
validator (does the category accept it?) before producing a new SelectionState.
The line total is recomputed after every accepted change, and the builder runs
once, at confirmation, handing the line to the cart store exactly once.

Rejected events leave the state untouched and return the reason as a value.
"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Union

from configurator.catalog import FLAVOR_CATEGORY_ID, CatalogEntry, Item, ProductCatalog
from configurator.config_loader import StoreConfig
from configurator.errors import SessionClosedError, UnknownOptionError
from configurator.logic.availability import VariantAvailabilityResolver
from configurator.logic.cart_line import CartLine, CartLineBuilder
from configurator.logic.constraints import CategoryConstraintValidator, ToggleResult
from configurator.logic.failures import OptionUnavailable, ValidationFailure
from configurator.logic.pricing import PriceAggregator, PriceBreakdown
from configurator.logic.state import SelectionState
from configurator.models import CategoryKind, ColorOption, Flavor, Variant

if TYPE_CHECKING:
    from configurator.cart import CartStore

logger = logging.getLogger(__name__)


class ConfigurationSession:
    """Single-product configuration session."""

    def __init__(self, entry: CatalogEntry, default_available: bool = True):
        self.entry = entry
        self.resolver = VariantAvailabilityResolver(entry, default_available=default_available)
        self.validator = CategoryConstraintValidator(entry)
        self.pricing = PriceAggregator(entry)
        self.builder = CartLineBuilder(entry, self.resolver, self.pricing, self.validator)

        self._closed = False
        self._apply(SelectionState.empty(entry.product.id))

    @classmethod
    def start(
        cls,
        catalog: ProductCatalog,
        product_id: str,
        config: Optional[StoreConfig] = None,
    ) -> "ConfigurationSession":
        """Open a session on an empty selection.

        Raises:
            UnknownProductError: If the catalog has no such product.
        """
        entry = catalog.get_entry(product_id)
        default_available = config.compatibility.default_available if config else True
        logger.info(f"Session started for '{product_id}'")
        return cls(entry, default_available=default_available)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def line_total(self) -> Decimal:
        """Current line total, recomputed after every accepted change."""
        return self._line_total

    def breakdown(self) -> PriceBreakdown:
        return self.pricing.breakdown(self.state)

    def _ensure_open(self):
        if self._closed:
            raise SessionClosedError(f"Session for '{self.entry.product.id}' is closed")

    def _apply(self, state: SelectionState):
        # Price first: a state that cannot be priced must not replace the current one.
        line_total = self.pricing.compute_line_total(state)
        self.state = state
        self._line_total = line_total

    def restore(self, state: SelectionState):
        """Replace the selection wholesale, e.g. when editing a saved cart line.

        The restored state is not gated; confirm() re-validates it in full.
        """
        self._ensure_open()
        if state.product_id != self.entry.product.id:
            raise ValueError(
                f"Cannot restore a '{state.product_id}' selection into a '{self.entry.product.id}' session"
            )
        self._apply(state)
        logger.debug(f"Restored selection for '{state.product_id}'")

    # =========================================================================
    # SELECTION EVENTS
    # =========================================================================

    def toggle(self, category_id: str, item_id: str) -> ToggleResult:
        """Select or deselect an item in a category.

        Deselecting always succeeds. Selecting an item that is not offered right
        now yields OptionUnavailable; a full category yields LimitExceeded.
        """
        self._ensure_open()
        category = self.entry.category(category_id)
        if item_id not in self.entry.item_ids_in(category_id):
            raise UnknownOptionError(item_id, f"category '{category_id}'")

        if not self.state.is_selected(category_id, item_id):
            reason = self._unavailable_reason(self.entry.item(item_id), category.kind)
            if reason:
                logger.info(f"Rejected '{item_id}': {reason}")
                return ToggleResult(self.state, OptionUnavailable(option_id=item_id, reason=reason))

        result = self.validator.try_toggle(category_id, item_id, self.state)
        if result.accepted:
            self._apply(result.state)
        return result

    def _unavailable_reason(self, item: Item, kind: CategoryKind) -> Optional[str]:
        if not self.entry.is_dimension_enabled(kind):
            return f"product has no {kind.value} options"
        if not self.entry.category_of(item.id).is_active:
            return "category is inactive"
        if not item.is_available:
            return "out of stock"
        if not self.resolver.is_item_offered(item.id, self.state):
            return f"not available in color '{self.state.color_id}'"
        return None

    def _toggle_kind(self, item_id: str, kind: CategoryKind) -> ToggleResult:
        category = self.entry.category_of(item_id)
        if category.kind != kind:
            raise UnknownOptionError(item_id, f"{kind.value} options of '{self.entry.product.id}'")
        return self.toggle(category.id, item_id)

    def toggle_size(self, size_id: str) -> ToggleResult:
        return self._toggle_kind(size_id, CategoryKind.SIZE)

    def toggle_addon(self, addon_id: str) -> ToggleResult:
        return self._toggle_kind(addon_id, CategoryKind.ADDON)

    def toggle_flavor(self, flavor_id: str) -> ToggleResult:
        self.entry.flavor(flavor_id)
        return self.toggle(FLAVOR_CATEGORY_ID, flavor_id)

    def toggle_color(self, color_id: str) -> ToggleResult:
        """Choose a color, or clear it when it is already chosen."""
        self._ensure_open()
        color = self.entry.color(color_id)

        if self.state.color_id == color.id:
            self._apply(self.state.with_color(None))
            logger.debug(f"Cleared color '{color.id}'")
            return ToggleResult(self.state)

        if not self.resolver.is_color_offered(color.id, self.state):
            if not self.entry.product.has_colors:
                reason = "product has no colors"
            elif not color.is_available:
                reason = "out of stock"
            else:
                reason = "not available in the chosen size"
            logger.info(f"Rejected color '{color.id}': {reason}")
            return ToggleResult(self.state, OptionUnavailable(option_id=color.id, reason=reason))

        self._apply(self.state.with_color(color.id))
        logger.debug(f"Chose color '{color.id}'")
        return ToggleResult(self.state)

    def adjust_quantity(self, item_id: str, delta: int) -> SelectionState:
        """Increment/decrement an allow_quantity item, floored at 1."""
        self._ensure_open()
        self._apply(self.validator.adjust_quantity(item_id, delta, self.state))
        return self.state

    def set_item_quantity(self, item_id: str, quantity: int) -> SelectionState:
        self._ensure_open()
        self._apply(self.validator.set_quantity(item_id, quantity, self.state))
        return self.state

    def set_quantity(self, quantity: int) -> SelectionState:
        """Overall line quantity, floored at 1."""
        self._ensure_open()
        self._apply(self.state.with_quantity(quantity))
        return self.state

    def set_note(self, note: Optional[str]) -> SelectionState:
        self._ensure_open()
        self._apply(self.state.with_note(note))
        return self.state

    # =========================================================================
    # OFFERABLE OPTIONS
    # =========================================================================

    def available_colors(self) -> list[ColorOption]:
        return self.resolver.available_colors(self.state)

    def available_sizes(self) -> list[Variant]:
        return self.resolver.available_sizes(self.state)

    def available_items(self, category_id: str) -> list[Item]:
        return self.resolver.available_items(category_id)

    def available_flavors(self) -> list[Flavor]:
        return self.resolver.available_flavors()

    # =========================================================================
    # CONFIRMATION
    # =========================================================================

    def validate(self) -> Optional[ValidationFailure]:
        return self.builder.validate(self.state)

    def confirm(self, cart_store: "CartStore") -> Union[CartLine, ValidationFailure]:
        """Build the cart line and append it to the cart store.

        On failure the session stays open so the shopper can fix the selection.
        On success the session closes; the line is appended exactly once. If the
        store raises, the session stays open and confirm() can be retried.
        """
        self._ensure_open()
        result = self.builder.build(self.state)
        if isinstance(result, ValidationFailure):
            return result

        cart_store.append(result)
        self._closed = True
        logger.info(
            f"Confirmed '{result.product_id}' x{result.quantity} for {result.line_total}"
        )
        return result

    def cancel(self):
        """Discard the selection. The session cannot be used afterwards."""
        self._ensure_open()
        self._closed = True
        self._apply(SelectionState.empty(self.entry.product.id))
        logger.info(f"Session for '{self.entry.product.id}' cancelled")
