"""Selection State for a single product configuration session.

The state is an immutable value. Every user event produces a new state
(old state + event -> new state), which keeps the availability resolver and the
price aggregator pure functions of (catalogue, state).

This module performs no gating: cardinality is enforced by
CategoryConstraintValidator and offerability by VariantAvailabilityResolver
before a transition is applied. A state built directly (e.g. restored from a
saved cart) may therefore be invalid; CartLineBuilder re-checks everything at
confirmation.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from configurator.catalog import FLAVOR_CATEGORY_ID
from configurator.models import CategoryKind, VariationCategory

if TYPE_CHECKING:
    from configurator.catalog import CatalogEntry


@dataclass(frozen=True)
class SelectionState:
    """Everything the shopper has chosen so far for one product.

    selections and quantities are stored as read-only mappings, so a state is
    hashable and can be used as a cache key. Transitions copy them.

    Raises:
        ValueError: If an item counter or the overall quantity is below 1.
    """
    product_id: str

    # category id -> chosen item ids in selection order (sizes, add-ons and flavors alike)
    selections: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    # item id -> counter, only for allow_quantity items
    quantities: Mapping[str, int] = field(default_factory=dict)

    color_id: Optional[str] = None
    note: str = ""

    # Overall line quantity
    quantity: int = 1

    def __post_init__(self):
        for item_id, count in self.quantities.items():
            if count < 1:
                raise ValueError(f"Counter of '{item_id}' must be at least 1, got {count}")
        if self.quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {self.quantity}")

        selections = {cat_id: tuple(ids) for cat_id, ids in self.selections.items()}
        object.__setattr__(self, "selections", MappingProxyType(selections))
        object.__setattr__(self, "quantities", MappingProxyType(dict(self.quantities)))

    def __hash__(self):
        return hash((
            self.product_id,
            tuple(sorted(self.selections.items())),
            tuple(sorted(self.quantities.items())),
            self.color_id,
            self.note,
            self.quantity,
        ))

    @classmethod
    def empty(cls, product_id: str) -> "SelectionState":
        return cls(product_id=product_id)

    # =========================================================================
    # READS
    # =========================================================================

    def items_in(self, category_id: str) -> tuple[str, ...]:
        return self.selections.get(category_id, ())

    def count_in(self, category_id: str) -> int:
        return len(self.items_in(category_id))

    def is_selected(self, category_id: str, item_id: str) -> bool:
        return item_id in self.items_in(category_id)

    def quantity_of(self, item_id: str) -> int:
        """Per-item counter; items without one count once."""
        return self.quantities.get(item_id, 1)

    def chosen_ids(self, categories: Iterable[VariationCategory]) -> list[str]:
        return [item_id for c in categories for item_id in self.items_in(c.id)]

    def chosen_size_ids(self, entry: "CatalogEntry") -> list[str]:
        return self.chosen_ids(entry.categories_of(CategoryKind.SIZE))

    def resolved_size_id(self, entry: "CatalogEntry") -> Optional[str]:
        """The single size driving the price override.

        With more than one size chosen nothing resolves, so at most one size
        can ever override the price.
        """
        size_ids = self.chosen_size_ids(entry)
        if len(size_ids) == 1:
            return size_ids[0]
        return None

    @property
    def flavor_ids(self) -> tuple[str, ...]:
        return self.items_in(FLAVOR_CATEGORY_ID)

    @property
    def is_empty(self) -> bool:
        return not self.selections and self.color_id is None and not self.note

    # =========================================================================
    # TRANSITIONS (each returns a new state)
    # =========================================================================

    def with_items(self, category_id: str, item_ids: Iterable[str]) -> "SelectionState":
        """Replace the chosen items of one category.

        Counters of items that are no longer chosen are dropped.
        """
        item_ids = tuple(item_ids)
        dropped = set(self.items_in(category_id)) - set(item_ids)

        selections = dict(self.selections)
        if item_ids:
            selections[category_id] = item_ids
        else:
            selections.pop(category_id, None)

        quantities = {k: v for k, v in self.quantities.items() if k not in dropped}
        return replace(self, selections=selections, quantities=quantities)

    def with_item_quantity(self, item_id: str, quantity: Optional[int]) -> "SelectionState":
        """Set (or with None, clear) the counter of one item.

        Raises:
            ValueError: If the counter is below 1.
        """
        quantities = dict(self.quantities)
        if quantity is None:
            quantities.pop(item_id, None)
        else:
            quantities[item_id] = quantity
        return replace(self, quantities=quantities)

    def with_color(self, color_id: Optional[str]) -> "SelectionState":
        return replace(self, color_id=color_id)

    def with_note(self, note: Optional[str]) -> "SelectionState":
        return replace(self, note=(note or "").strip())

    def with_quantity(self, quantity: int) -> "SelectionState":
        """Overall quantity, floored at 1."""
        return replace(self, quantity=max(1, int(quantity)))

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> dict:
        """Serialize state, e.g. to restore an edited cart line into a new session."""
        return {
            "product_id": self.product_id,
            "selections": {cat_id: list(ids) for cat_id, ids in self.selections.items()},
            "quantities": dict(self.quantities),
            "color_id": self.color_id,
            "note": self.note,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SelectionState":
        """Rebuild a saved state.

        Counters are floored at 1 and counters of items that are not selected
        are dropped, so a tampered or stale payload still yields a valid state.
        """
        selections = {
            cat_id: tuple(ids)
            for cat_id, ids in (data.get("selections") or {}).items()
            if ids
        }
        selected = {item_id for ids in selections.values() for item_id in ids}
        return cls(
            product_id=data["product_id"],
            selections=selections,
            quantities={
                k: max(1, int(v))
                for k, v in (data.get("quantities") or {}).items()
                if k in selected
            },
            color_id=data.get("color_id"),
            note=data.get("note") or "",
            quantity=max(1, int(data.get("quantity", 1))),
        )
